"""Pydantic schemas for API requests, responses and stored snapshots."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


# Game schemas
class ActionRequest(BaseModel):
    """Request for player action."""

    action: Literal["hit", "stand"]


class NewSessionResponse(BaseModel):
    session_id: str


class CardResponse(BaseModel):
    """Card representation; `identifier` keys the presentation layer's image."""

    model_config = ConfigDict(from_attributes=True)

    identifier: str
    rank: str
    suit: str
    value: int


class HandResponse(BaseModel):
    """Hand representation."""

    cards: list[CardResponse]
    value: int


class EventResponse(BaseModel):
    """A game event produced by the request."""

    event_type: str
    data: dict[str, Any]


class StatsResponse(BaseModel):
    rounds_played: int = 0
    wins: int = 0
    losses: int = 0
    ties: int = 0


class GameStateResponse(BaseModel):
    """Current table and session state."""

    session_id: str
    state: str
    player_hand: HandResponse
    dealer_hand: HandResponse
    credits: int
    busted: bool
    blackjack: bool
    label: str
    outcome: Literal["win", "loss", "tie"] | None
    message: str
    is_over: bool
    end_reason: str | None
    cards_in_deck: int
    can_deal: bool
    can_hit: bool
    can_stand: bool
    can_reset: bool
    stats: StatsResponse
    events: list[EventResponse] = Field(default_factory=list)


# Session persistence schemas
class RulesData(BaseModel):
    """Serialized table rules."""

    starting_credits: int = 200
    win_credit: int = 15
    loss_credit: int = 5
    dealer_stands_on: int = 17


class SessionSnapshot(BaseModel):
    """Serialized game session for the session store."""

    state: str
    credits: int
    player_cards: list[str] = Field(default_factory=list)
    dealer_cards: list[str] = Field(default_factory=list)
    last_outcome: Literal["win", "loss", "tie"] | None = None
    last_credit_delta: int | None = None
    settlement_applied: bool = False
    is_over: bool = False
    end_reason: str | None = None
    stats: StatsResponse = Field(default_factory=StatsResponse)
    rules: RulesData = Field(default_factory=RulesData)
    created_at: int
    last_activity: int

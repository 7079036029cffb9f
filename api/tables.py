"""Live game sessions, backed by the session store."""

import logging
import time
from typing import Callable, Iterable

from api.schemas import (
    CardResponse,
    EventResponse,
    GameStateResponse,
    HandResponse,
    RulesData,
    SessionSnapshot,
    StatsResponse,
)
from api.session import SessionRegistry
from config import config
from core.cards import Card
from core.game import GameEvent, GameSession, GameState, SessionStats
from core.hand import Hand
from core.rules import RuleSet
from core.settlement import Outcome, Settlement

logger = logging.getLogger(__name__)

GAME_OVER = "GAME_OVER"

# In-memory session cache (for performance, backed by session store)
_sessions: dict[str, GameSession] = {}


class UnknownSessionError(KeyError):
    """No stored game for this session token."""


def serialize_session(session: GameSession, created_at: int | None = None) -> dict:
    """Snapshot a session as JSON-friendly data."""
    now = int(time.time())
    last = session.last_settlement
    snapshot = SessionSnapshot(
        state=session.state.name,
        credits=session.credits,
        player_cards=session.player_hand.identifiers,
        dealer_cards=session.dealer_hand.identifiers,
        last_outcome=last.outcome.value if last else None,
        last_credit_delta=last.credit_delta if last else None,
        settlement_applied=session.settlement_applied,
        is_over=session.is_over,
        end_reason=session.end_reason,
        stats=StatsResponse(**vars(session.stats)),
        rules=RulesData(
            starting_credits=session.rules.starting_credits,
            win_credit=session.rules.win_credit,
            loss_credit=session.rules.loss_credit,
            dealer_stands_on=session.rules.dealer_stands_on,
        ),
        created_at=created_at or now,
        last_activity=now,
    )
    return snapshot.model_dump()


def deserialize_session(data: dict) -> GameSession:
    """Rebuild a session from a stored snapshot."""
    snapshot = SessionSnapshot.model_validate(data)
    session = GameSession(
        rules=RuleSet(**snapshot.rules.model_dump()),
        credits=snapshot.credits,
    )

    settlement = None
    if snapshot.last_outcome is not None and snapshot.last_credit_delta is not None:
        settlement = Settlement(Outcome(snapshot.last_outcome), snapshot.last_credit_delta)

    session.round.restore(
        GameState[snapshot.state],
        [Card.from_identifier(c) for c in snapshot.player_cards],
        [Card.from_identifier(c) for c in snapshot.dealer_cards],
        settlement=settlement,
    )
    session.last_settlement = settlement
    session.settlement_applied = snapshot.settlement_applied
    session.is_over = snapshot.is_over
    session.end_reason = snapshot.end_reason
    session.stats = SessionStats(**snapshot.stats.model_dump())
    return session


def new_session() -> GameSession:
    return GameSession(rules=config.game.to_rules())


async def create_table(registry: SessionRegistry, token: str | None = None) -> tuple[str, GameSession]:
    """
    Start a fresh game, reusing the token when one is given.

    Callers reusing a token must hold that session's lock.
    """
    await sweep_expired(registry)
    token = token or registry.new_token()
    session = new_session()
    _sessions[token] = session
    await save_table(registry, token, session)
    logger.info("New table %s…", token[:8])
    return token, session


async def load_table(registry: SessionRegistry, token: str) -> GameSession:
    """Get the live session for a token, restoring it from the store if needed."""
    if token in _sessions:
        return _sessions[token]

    data = await registry.store.load(token)
    if data is None:
        raise UnknownSessionError(token)

    session = deserialize_session(data)
    _sessions[token] = session
    return session


async def save_table(registry: SessionRegistry, token: str, session: GameSession) -> None:
    previous = await registry.store.load(token)
    created_at = previous.get("created_at") if previous else None
    await registry.store.save(token, serialize_session(session, created_at=created_at))


def forget_table(token: str) -> None:
    _sessions.pop(token, None)


async def finish_table(registry: SessionRegistry, token: str, session: GameSession) -> None:
    """Store a session after an action; finished games leave the cache."""
    await save_table(registry, token, session)
    if session.is_over:
        forget_table(token)


async def sweep_expired(registry: SessionRegistry) -> int:
    """Drop cached and stored games whose session token has expired."""
    expired = [token for token in _sessions if not registry.is_valid(token)]
    for token in expired:
        forget_table(token)
        await registry.discard(token)
    purged = registry.store.purge_expired()
    if expired or purged:
        logger.info("Swept %d expired tables (%d store entries)", len(expired), purged)
    return len(expired)


def run_recorded(session: GameSession, operation: Callable[[GameSession], object]) -> list[GameEvent]:
    """Run an operation on a session and return the events it emitted."""
    recorded: list[GameEvent] = []
    handler = recorded.append
    session.subscribe(handler)
    try:
        operation(session)
    finally:
        session.events.unsubscribe(handler)
    return recorded


def _card_response(card: Card) -> CardResponse:
    return CardResponse(
        identifier=card.identifier,
        rank=str(card.rank),
        suit=card.suit.label,
        value=card.value,
    )


def _hand_response(hand: Hand) -> HandResponse:
    return HandResponse(cards=[_card_response(c) for c in hand.cards], value=hand.value)


def state_response(
    token: str,
    session: GameSession,
    events: Iterable[GameEvent] = (),
) -> GameStateResponse:
    """Convert session state to response."""
    outcome = session.outcome
    return GameStateResponse(
        session_id=token,
        state=GAME_OVER if session.is_over else session.state.name,
        player_hand=_hand_response(session.player_hand),
        dealer_hand=_hand_response(session.dealer_hand),
        credits=session.credits,
        busted=session.busted,
        blackjack=session.blackjack,
        label=session.label,
        outcome=outcome.value if outcome else None,
        message=session.outcome_text,
        is_over=session.is_over,
        end_reason=session.end_reason,
        cards_in_deck=len(session.deck),
        can_deal=session.can_deal,
        can_hit=session.can_hit,
        can_stand=session.can_stand,
        can_reset=session.can_reset,
        stats=StatsResponse(**vars(session.stats)),
        events=[EventResponse(event_type=e.event_type.name, data=e.data) for e in events],
    )

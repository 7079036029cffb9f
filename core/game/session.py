"""Game session: credits carried across rounds and the end-of-game rule."""

import logging
from dataclasses import dataclass
from random import Random
from typing import Callable

from core.cards import Card, Deck
from core.errors import InvalidTransitionError
from core.game.events import EventEmitter, EventType, GameEvent
from core.game.round import Round
from core.game.state import GameState
from core.hand import Hand
from core.rules import RuleSet
from core.settlement import Outcome, Settlement

logger = logging.getLogger(__name__)

END_BANKRUPT = "bankrupt"
END_PLAYER_EXIT = "player_exit"


@dataclass
class SessionStats:
    """Round counters for one session."""

    rounds_played: int = 0
    wins: int = 0
    losses: int = 0
    ties: int = 0

    def record(self, outcome: Outcome) -> None:
        self.rounds_played += 1
        if outcome == Outcome.WIN:
            self.wins += 1
        elif outcome == Outcome.LOSS:
            self.losses += 1
        else:
            self.ties += 1


class GameSession:
    """
    A single player's game against the dealer.

    The session owns the round (and through it the deck and both hands) and
    the credit balance. Settled rounds are credited once; the game ends when
    credits first fall below zero or when the player leaves.
    """

    def __init__(
        self,
        rules: RuleSet | None = None,
        rng: Random | None = None,
        credits: int | None = None,
    ) -> None:
        """
        Initialize a new session.

        Args:
            rules: Table rules (uses defaults if not provided)
            rng: Random number generator for reproducible games
            credits: Starting balance, defaults to the rules' starting credits
        """
        self.rules = rules or RuleSet()
        self.events = EventEmitter()
        self.round = Round(rules=self.rules, events=self.events, rng=rng)

        self.credits = self.rules.starting_credits if credits is None else credits
        self.is_over = False
        self.end_reason: str | None = None
        self.last_settlement: Settlement | None = None
        self.settlement_applied = False
        self.stats = SessionStats()

    def subscribe(
        self,
        handler: Callable[[GameEvent], None],
        event_type: EventType | None = None,
    ) -> None:
        """Subscribe to game events."""
        self.events.subscribe(handler, event_type)

    def _require_active(self, action: str) -> None:
        if self.is_over:
            raise InvalidTransitionError(action, self.state, "The game is over")

    def start_round(self) -> None:
        """Deal a new round."""
        self._require_active("deal")
        self.round.start()
        self._collect_settlement()

    def hit(self) -> Card:
        """Player draws a card."""
        self._require_active("hit")
        card = self.round.hit()
        self._collect_settlement()
        return card

    def stand(self) -> None:
        """Player stands; the dealer plays and the round settles."""
        self._require_active("stand")
        self.round.stand()
        self._collect_settlement()

    def reset_for_new_round(self) -> None:
        """Return the cards to the deck and clear the round. Credits are untouched."""
        self._require_active("reset")
        self.round.reset()
        self.last_settlement = None
        self.settlement_applied = False

    def play_again(self) -> None:
        """Reset the table and deal the next round."""
        self.reset_for_new_round()
        self.start_round()

    def end_session(self) -> None:
        """Player leaves the table. Does nothing if the game already ended."""
        if self.is_over:
            return
        self._end(END_PLAYER_EXIT)

    def apply_delta(self, delta: int) -> bool:
        """
        Add a credit change to the balance.

        Returns:
            True if this change ended the game
        """
        self._require_active("apply_delta")
        self.credits += delta
        self.events.emit_new(EventType.CREDITS_CHANGED, delta=delta, credits=self.credits)

        if self.credits < 0:
            self._end(END_BANKRUPT)
            return True
        return False

    def _collect_settlement(self) -> None:
        settlement = self.round.table.settlement
        if settlement is None or self.settlement_applied:
            return

        self.settlement_applied = True
        self.last_settlement = settlement
        self.stats.record(settlement.outcome)
        self.apply_delta(settlement.credit_delta)

    def _end(self, reason: str) -> None:
        self.round.abort()
        self.is_over = True
        self.end_reason = reason
        logger.info("Game over (%s) with %d credits", reason, self.credits)
        self.events.emit_new(EventType.GAME_ENDED, reason=reason, credits=self.credits)

    @property
    def state(self) -> GameState:
        return self.round.state

    @property
    def deck(self) -> Deck:
        return self.round.deck

    @property
    def player_hand(self) -> Hand:
        return self.round.table.player_hand

    @property
    def dealer_hand(self) -> Hand:
        return self.round.table.dealer_hand

    @property
    def player_value(self) -> int:
        return self.round.table.player_value

    @property
    def dealer_value(self) -> int:
        return self.round.table.dealer_value

    @property
    def busted(self) -> bool:
        return self.round.table.busted

    @property
    def blackjack(self) -> bool:
        return self.round.table.blackjack

    @property
    def label(self) -> str:
        return self.round.table.label

    @property
    def outcome(self) -> Outcome | None:
        return self.last_settlement.outcome if self.last_settlement else None

    @property
    def outcome_text(self) -> str:
        """Message for the last settled round, empty before settlement."""
        return self.last_settlement.message if self.last_settlement else ""

    @property
    def can_deal(self) -> bool:
        return not self.is_over and self.state == GameState.AWAITING_DEAL

    @property
    def can_hit(self) -> bool:
        return not self.is_over and self.state == GameState.PLAYER_TURN

    @property
    def can_stand(self) -> bool:
        return self.can_hit

    @property
    def can_reset(self) -> bool:
        return not self.is_over and self.state in (GameState.SETTLED, GameState.AWAITING_DEAL)

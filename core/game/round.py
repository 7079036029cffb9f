"""Round state machine: deal, player turn, dealer turn, settlement."""

import logging
from dataclasses import dataclass, field
from random import Random
from typing import Iterable

from transitions import Machine, MachineError

from core.cards import Card, Deck
from core.errors import InvalidTransitionError
from core.game.events import EventEmitter, EventType
from core.game.state import GameState
from core.hand import Hand
from core.rules import RuleSet
from core.settlement import Settlement, settle

logger = logging.getLogger(__name__)

PLAYER = "player"
DEALER = "dealer"

INITIAL_PLAYER_CARDS = 2


@dataclass
class RoundState:
    """Cards and flags for the round on the table."""

    player_hand: Hand = field(default_factory=Hand)
    dealer_hand: Hand = field(default_factory=Hand)
    busted: bool = False
    blackjack: bool = False
    settlement: Settlement | None = None

    @property
    def player_value(self) -> int:
        return self.player_hand.value

    @property
    def dealer_value(self) -> int:
        return self.dealer_hand.value

    @property
    def label(self) -> str:
        """Display label for the special-hand flags."""
        if self.busted:
            return "BUSTED"
        if self.blackjack:
            return "BLACKJACK"
        return ""

    def detect_special_hands(self) -> None:
        """Set the bust and blackjack flags from the player's final total."""
        self.busted = self.player_hand.is_busted
        self.blackjack = not self.busted and self.player_hand.is_twenty_one

    def clear(self) -> list[Card]:
        """Clear hands and flags, returning every card that was on the table."""
        cards = self.player_hand.clear() + self.dealer_hand.clear()
        self.busted = False
        self.blackjack = False
        self.settlement = None
        return cards


class Round:
    """
    One table round driven by a state machine.

    The round owns the deck and both hands; together they always hold
    exactly the 52 cards. Actions that do not fit the current state raise
    InvalidTransitionError. Once the dealer's turn begins it runs to
    settlement in one call.
    """

    # State machine states
    STATES = [s.name.lower() for s in GameState]

    # State machine transitions
    TRANSITIONS = [
        {"trigger": "deal_cards", "source": "awaiting_deal", "dest": "player_turn"},
        {"trigger": "player_done", "source": "player_turn", "dest": "dealer_turn"},
        {"trigger": "dealer_done", "source": "dealer_turn", "dest": "settled"},
        {"trigger": "clear_table", "source": ["settled", "awaiting_deal"], "dest": "awaiting_deal"},
        {"trigger": "abandon_round", "source": "*", "dest": "awaiting_deal"},
    ]

    def __init__(
        self,
        rules: RuleSet | None = None,
        deck: Deck | None = None,
        events: EventEmitter | None = None,
        rng: Random | None = None,
    ) -> None:
        """
        Initialize an empty table.

        Args:
            rules: Table rules (uses defaults if not provided)
            deck: Deck to draw from (a fresh full deck if not provided)
            events: Emitter shared with the owning session
            rng: Random number generator for a fresh deck
        """
        self.rules = rules or RuleSet()
        self.deck = deck if deck is not None else Deck(rng=rng)
        self.events = events or EventEmitter()
        self.table = RoundState()

        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial="awaiting_deal",
            auto_transitions=False,
            model_attribute="_machine_state",
        )

    @property
    def state(self) -> GameState:
        """Get current round state as enum."""
        return GameState[self._machine_state.upper()]  # type: ignore

    def _require(self, action: str, *allowed: GameState) -> None:
        if self.state not in allowed:
            logger.warning("Rejected %s in state %s", action, self.state.name)
            raise InvalidTransitionError(action, self.state)

    def _fire(self, trigger: str, action: str) -> None:
        try:
            getattr(self, trigger)()
        except MachineError as exc:
            raise InvalidTransitionError(action, self.state) from exc

    def start(self) -> None:
        """Deal the opening two cards to the player."""
        self._require("deal", GameState.AWAITING_DEAL)
        self._fire("deal_cards", "deal")
        self.events.emit_new(EventType.ROUND_STARTED, cards_in_deck=len(self.deck))

        for _ in range(INITIAL_PLAYER_CARDS):
            # A bust on the deal hands play straight to the dealer
            if self.state != GameState.PLAYER_TURN:
                break
            self._deal_player_card()

    def hit(self) -> Card:
        """Player takes another card."""
        self._require("hit", GameState.PLAYER_TURN)
        self.events.emit_new(EventType.PLAYER_HIT)
        return self._deal_player_card()

    def stand(self) -> None:
        """Player keeps the current hand; the dealer plays and the round settles."""
        self._require("stand", GameState.PLAYER_TURN)
        self.events.emit_new(EventType.PLAYER_STANDS, hand_value=self.table.player_value)
        self._play_dealer()

    def reset(self) -> None:
        """Return all cards to the deck and wait for the next deal."""
        self._require("reset", GameState.SETTLED, GameState.AWAITING_DEAL)
        self._return_cards()
        self._fire("clear_table", "reset")
        self.events.emit_new(EventType.ROUND_RESET, cards_in_deck=len(self.deck))

    def abort(self) -> None:
        """Clear the table from any state, e.g. when the game ends."""
        self._return_cards()
        self._fire("abandon_round", "abort")

    def restore(
        self,
        state: GameState,
        player_cards: Iterable[Card],
        dealer_cards: Iterable[Card],
        settlement: Settlement | None = None,
    ) -> None:
        """Rebuild a stored table, taking its cards out of the deck."""
        self._return_cards()
        for card in player_cards:
            self.table.player_hand.add_card(self.deck.take(card))
        for card in dealer_cards:
            self.table.dealer_hand.add_card(self.deck.take(card))
        if state == GameState.SETTLED:
            self.table.detect_special_hands()
            self.table.settlement = settlement
        self.machine.set_state(state.name.lower())

    def _deal_player_card(self) -> Card:
        card = self._draw(self.table.player_hand, PLAYER)
        if self.table.player_hand.is_busted:
            self.events.emit_new(EventType.PLAYER_BUSTS, hand_value=self.table.player_value)
            self._play_dealer()
        return card

    def _play_dealer(self) -> None:
        """Dealer draws until reaching the stand total, then the round settles."""
        self._fire("player_done", "play dealer")

        hand = self.table.dealer_hand
        while hand.value < self.rules.dealer_stands_on:
            self._draw(hand, DEALER)
            self.events.emit_new(EventType.DEALER_HITS, hand_value=hand.value)

        if hand.is_busted:
            self.events.emit_new(EventType.DEALER_BUSTS, hand_value=hand.value)
        else:
            self.events.emit_new(EventType.DEALER_STANDS, hand_value=hand.value)

        self._settle()

    def _settle(self) -> None:
        self.table.detect_special_hands()
        if self.table.blackjack:
            self.events.emit_new(EventType.PLAYER_BLACKJACK)

        settlement = settle(
            self.table.player_value,
            self.table.dealer_value,
            win_credit=self.rules.win_credit,
            loss_credit=self.rules.loss_credit,
        )
        self.table.settlement = settlement
        self._fire("dealer_done", "settle")

        logger.info(
            "Round settled: player %d, dealer %d, %s (%+d)",
            self.table.player_value,
            self.table.dealer_value,
            settlement.outcome.value,
            settlement.credit_delta,
        )
        self.events.emit_new(
            EventType.ROUND_SETTLED,
            outcome=settlement.outcome.value,
            credit_delta=settlement.credit_delta,
            player_value=self.table.player_value,
            dealer_value=self.table.dealer_value,
            label=self.table.label,
            message=settlement.message,
        )

    def _draw(self, hand: Hand, owner: str) -> Card:
        card = self.deck.draw()
        hand.add_card(card)
        logger.debug("%s draws %s, total %d", owner, card.identifier, hand.value)
        self.events.emit_new(
            EventType.CARD_DRAWN,
            owner=owner,
            card=card.identifier,
            hand_value=hand.value,
        )
        return card

    def _return_cards(self) -> None:
        for card in self.table.clear():
            self.deck.return_card(card)

    @property
    def cards_in_play(self) -> int:
        return len(self.table.player_hand) + len(self.table.dealer_hand)

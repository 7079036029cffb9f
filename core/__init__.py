"""Cards, hands, rules and settlement for a single-player blackjack table."""

from core.cards import Card, Deck, Rank, Suit
from core.errors import (
    BlackjackError,
    DuplicateCardError,
    EmptyDeckError,
    InvalidTransitionError,
)
from core.hand import Hand, evaluate
from core.rules import RuleSet
from core.settlement import Outcome, Settlement, settle

__all__ = [
    "Card",
    "Deck",
    "Rank",
    "Suit",
    "Hand",
    "evaluate",
    "RuleSet",
    "Outcome",
    "Settlement",
    "settle",
    "BlackjackError",
    "DuplicateCardError",
    "EmptyDeckError",
    "InvalidTransitionError",
]

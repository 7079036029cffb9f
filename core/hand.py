"""Hand evaluation for blackjack."""

from dataclasses import dataclass, field
from typing import Iterable, Iterator

from core.cards import Card

BUST_VALUE = 21
ACE_HIGH = 11
ACE_LOW = 1

# Aces dealt into these leading positions always count high
ALWAYS_HIGH_ACE_POSITIONS = 3


def evaluate(cards: Iterable[Card]) -> int:
    """
    Total an ordered sequence of cards.

    Number cards count their face value and face cards count 10. An Ace in
    one of the first three positions counts 11. A later Ace counts 11 only
    if the running total before it is 11 or less, otherwise 1.

    This is a positional rule, evaluated once per Ace in hand order; it is
    not the usual "best total under 22" search, so two leading Aces are 22.
    """
    total = 0
    for position, card in enumerate(cards):
        if not card.is_ace:
            total += card.value
        elif position < ALWAYS_HIGH_ACE_POSITIONS or total <= ACE_HIGH:
            total += ACE_HIGH
        else:
            total += ACE_LOW
    return total


@dataclass
class Hand:
    """An ordered hand of cards belonging to the player or the dealer."""

    cards: list[Card] = field(default_factory=list)

    def add_card(self, card: Card) -> None:
        self.cards.append(card)

    def clear(self) -> list[Card]:
        """Empty the hand and return the cards it held."""
        removed = list(self.cards)
        self.cards.clear()
        return removed

    @property
    def value(self) -> int:
        return evaluate(self.cards)

    @property
    def is_busted(self) -> bool:
        """Check if the hand has busted (value > 21)."""
        return self.value > BUST_VALUE

    @property
    def is_twenty_one(self) -> bool:
        return self.value == BUST_VALUE

    @property
    def identifiers(self) -> list[str]:
        """Card identifiers in the order they were dealt."""
        return [card.identifier for card in self.cards]

    def __len__(self) -> int:
        return len(self.cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards)

    def __str__(self) -> str:
        cards_str = " ".join(str(card) for card in self.cards)
        value_str = "(BUST)" if self.is_busted else f"({self.value})"
        return f"{cards_str} {value_str}"

    def __repr__(self) -> str:
        return f"Hand({self.cards!r}, value={self.value})"

"""Card and Deck classes - immutable cards drawn at random from one deck."""

from dataclasses import dataclass
from enum import Enum, auto
from random import Random
from typing import Iterator

from core.errors import DuplicateCardError, EmptyDeckError


class Suit(Enum):
    """Card suits."""

    HEARTS = auto()
    CLUBS = auto()
    DIAMONDS = auto()
    SPADES = auto()

    def __str__(self) -> str:
        symbols = {
            Suit.HEARTS: "♥",
            Suit.CLUBS: "♣",
            Suit.DIAMONDS: "♦",
            Suit.SPADES: "♠",
        }
        return symbols[self]

    @property
    def label(self) -> str:
        """Lowercase suit name used in card identifiers."""
        return self.name.lower()


class Rank(Enum):
    """Card ranks with blackjack values."""

    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13
    ACE = 14

    def __str__(self) -> str:
        if self.value <= 10:
            return str(self.value)
        return self.name[0]

    @property
    def label(self) -> str:
        """Rank as spelled in card identifiers ('7', 'jack', 'ace')."""
        if self.value <= 10:
            return str(self.value)
        return self.name.lower()

    @property
    def blackjack_value(self) -> int:
        """Return the point value before any Ace adjustment (Ace = 11)."""
        if self.value <= 10:
            return self.value
        if self == Rank.ACE:
            return 11
        return 10

    @property
    def is_ace(self) -> bool:
        return self == Rank.ACE


_RANKS_BY_LABEL = {rank.label: rank for rank in Rank}
_SUITS_BY_LABEL = {suit.label: suit for suit in Suit}


@dataclass(frozen=True, slots=True)
class Card:
    """Immutable playing card."""

    rank: Rank
    suit: Suit

    def __str__(self) -> str:
        return f"{self.rank}{self.suit}"

    def __repr__(self) -> str:
        return f"Card({self.rank.name}, {self.suit.name})"

    @property
    def value(self) -> int:
        return self.rank.blackjack_value

    @property
    def is_ace(self) -> bool:
        return self.rank.is_ace

    @property
    def identifier(self) -> str:
        """Stable identifier for presentation layers, e.g. '7_of_clubs'."""
        return f"{self.rank.label}_of_{self.suit.label}"

    @classmethod
    def from_identifier(cls, identifier: str) -> "Card":
        """Create a card from an identifier like 'queen_of_hearts'."""
        rank_label, sep, suit_label = identifier.strip().lower().partition("_of_")
        if not sep:
            raise ValueError(f"Invalid card identifier: {identifier}")
        if rank_label not in _RANKS_BY_LABEL:
            raise ValueError(f"Invalid rank: {rank_label}")
        if suit_label not in _SUITS_BY_LABEL:
            raise ValueError(f"Invalid suit: {suit_label}")
        return cls(_RANKS_BY_LABEL[rank_label], _SUITS_BY_LABEL[suit_label])


def full_deck() -> list[Card]:
    """All 52 cards, suit by suit."""
    return [Card(rank, suit) for suit in Suit for rank in Rank]


class Deck:
    """
    The cards not currently held by either hand.

    Cards are drawn uniformly at random rather than from the top, so the
    deck is never shuffled; cards in play are handed back with
    ``return_card`` when the table is cleared.
    """

    def __init__(self, rng: Random | None = None) -> None:
        """
        Initialize a full deck.

        Args:
            rng: Source of randomness; anything with a ``choice`` method
        """
        self._rng = rng or Random()
        self._cards: list[Card] = []
        self.reset()

    def reset(self) -> None:
        """Restore all 52 cards."""
        self._cards = full_deck()

    def draw(self) -> Card:
        """Remove and return a random card."""
        if not self._cards:
            raise EmptyDeckError("Cannot draw from empty deck")
        card = self._rng.choice(self._cards)
        self._cards.remove(card)
        return card

    def return_card(self, card: Card) -> None:
        """Put a card that was in play back into the deck."""
        if card in self._cards:
            raise DuplicateCardError(f"{card.identifier} is already in the deck")
        self._cards.append(card)

    def take(self, card: Card) -> Card:
        """Remove a specific card, e.g. when rebuilding a stored table."""
        try:
            self._cards.remove(card)
        except ValueError:
            raise ValueError(f"{card.identifier} is not in the deck") from None
        return card

    @property
    def cards_remaining(self) -> int:
        return len(self._cards)

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self._cards)

    def __contains__(self, card: object) -> bool:
        return card in self._cards

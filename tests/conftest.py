"""Pytest fixtures for blackjack table tests."""

from collections import deque
from random import Random
from typing import Sequence

import pytest

from core.cards import Card, Deck, Rank, Suit
from core.game import GameSession, Round
from core.hand import Hand
from core.rules import RuleSet


class StackedRandom:
    """
    Random source that deals a scripted sequence of cards first.

    Each ``choice`` call returns the next scripted card identifier; once the
    script runs out it falls back to a seeded Random.
    """

    def __init__(self, identifiers: Sequence[str] = (), seed: int = 42) -> None:
        self._script = deque(Card.from_identifier(i) for i in identifiers)
        self._fallback = Random(seed)

    def choice(self, cards):
        if self._script:
            card = self._script.popleft()
            assert card in cards, f"{card.identifier} is not in the deck"
            return card
        return self._fallback.choice(cards)


def make_hand(*identifiers: str) -> Hand:
    """Build a hand from card identifiers."""
    return Hand(cards=[Card.from_identifier(i) for i in identifiers])


def table_cards(session: GameSession) -> list[Card]:
    """Every card in the deck and both hands."""
    return list(session.deck) + session.player_hand.cards + session.dealer_hand.cards


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def deck(rng):
    """A full deck."""
    return Deck(rng=rng)


@pytest.fixture
def rules():
    """Default table rules."""
    return RuleSet()


@pytest.fixture
def empty_hand():
    return Hand()


@pytest.fixture
def ace_of_spades():
    return Card(Rank.ACE, Suit.SPADES)


@pytest.fixture
def stacked_round():
    """Factory for a round whose deck deals the given cards first."""

    def _make(*identifiers: str, rules: RuleSet | None = None) -> Round:
        return Round(rules=rules, rng=StackedRandom(identifiers))

    return _make


@pytest.fixture
def stacked_session():
    """Factory for a session whose deck deals the given cards first."""

    def _make(*identifiers: str, rules: RuleSet | None = None, credits: int | None = None) -> GameSession:
        return GameSession(rules=rules, rng=StackedRandom(identifiers), credits=credits)

    return _make


@pytest.fixture
def session(rng):
    """A new session with a seeded deck."""
    return GameSession(rng=rng)

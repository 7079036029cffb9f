"""Errors raised by the blackjack core.

All of these signal a broken contract between the caller and the engine,
so they are raised to the caller rather than reported through events.
"""


class BlackjackError(Exception):
    """Base class for all core errors."""


class EmptyDeckError(BlackjackError):
    """Raised when drawing from a deck with no cards left."""


class DuplicateCardError(BlackjackError):
    """Raised when returning a card that is already in the deck."""


class InvalidTransitionError(BlackjackError):
    """Raised when an action is not allowed in the current round state."""

    def __init__(self, action: str, state: object, message: str | None = None) -> None:
        self.action = action
        self.state = state
        super().__init__(message or f"Cannot {action} while in state {state}")

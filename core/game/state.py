"""Round state enumeration."""

from enum import Enum, auto


class GameState(Enum):
    """
    Round state machine states.

    Flow: AWAITING_DEAL → PLAYER_TURN → DEALER_TURN → SETTLED → AWAITING_DEAL
    """

    # No cards on the table
    AWAITING_DEAL = auto()

    # Player hits or stands
    PLAYER_TURN = auto()

    # Dealer draws to 17, never interrupted
    DEALER_TURN = auto()

    # Outcome known, waiting for an explicit reset
    SETTLED = auto()

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()


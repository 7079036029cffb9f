"""Round settlement: compare totals and compute the credit change."""

from dataclasses import dataclass
from enum import Enum

from core.hand import BUST_VALUE

CREDIT_WIN = 15
CREDIT_LOST = 5


class Outcome(Enum):
    """Round outcome from the player's point of view."""

    WIN = "win"
    LOSS = "loss"
    TIE = "tie"

    @property
    def message(self) -> str:
        return {
            Outcome.WIN: "You won!",
            Outcome.LOSS: "You lost!",
            Outcome.TIE: "It's a tie!",
        }[self]


@dataclass(frozen=True)
class Settlement:
    """Result of settling one round."""

    outcome: Outcome
    credit_delta: int

    @property
    def message(self) -> str:
        return self.outcome.message


def settle(
    player_total: int,
    dealer_total: int,
    win_credit: int = CREDIT_WIN,
    loss_credit: int = CREDIT_LOST,
) -> Settlement:
    """
    Settle a round from the two final totals.

    The player's bust is checked first, so a bust loses even when the
    dealer busts too. A busted dealer total ranks below every standing
    player total.

    Returns:
        The outcome and the signed credit delta for the player
    """
    if player_total > BUST_VALUE:
        return Settlement(Outcome.LOSS, -loss_credit)
    if player_total == dealer_total:
        return Settlement(Outcome.TIE, 0)
    if player_total == BUST_VALUE or player_total > _rank(dealer_total):
        return Settlement(Outcome.WIN, win_credit)
    return Settlement(Outcome.LOSS, -loss_credit)


def _rank(total: int) -> int:
    return 0 if total > BUST_VALUE else total

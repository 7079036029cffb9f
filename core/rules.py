"""Table rules: credit amounts and dealer policy."""

from dataclasses import dataclass


@dataclass(frozen=True)
class RuleSet:
    """
    Fixed rules for a table.

    There is no betting: every round is worth a flat credit win or loss.
    """

    starting_credits: int = 200

    # Credit deltas applied at settlement
    win_credit: int = 15
    loss_credit: int = 5

    # Dealer draws while below this total, soft or hard
    dealer_stands_on: int = 17

    def __post_init__(self) -> None:
        """Validate rule values."""
        if self.starting_credits < 0:
            raise ValueError("starting_credits must not be negative")
        if self.win_credit < 0 or self.loss_credit < 0:
            raise ValueError("credit amounts must not be negative")
        if not 2 <= self.dealer_stands_on <= 21:
            raise ValueError("dealer_stands_on must be between 2 and 21")

"""
Dice game - bet on the total of two six-sided dice.
One roll can satisfy several bet types at once (7 is both "seven" and "odd").
"""

from casino.core.rng import rng as default_rng, TrueRNG
from casino.core.models import Outcome
from casino.core.money import payout_for
from casino.core.exceptions import ValidationError
from decimal import Decimal
from typing import Callable, Dict, Tuple


class DiceGame:
    """Roll 2 dice, sum 2-12."""

    # bet type -> (multiplier, winning condition on the total)
    BETS: Dict[str, Tuple[int, Callable[[int], bool]]] = {
        "seven": (5, lambda total: total == 7),
        "eleven": (8, lambda total: total == 11),
        "high": (2, lambda total: 8 <= total <= 12),
        "low": (2, lambda total: 2 <= total <= 6),
        "even": (2, lambda total: total % 2 == 0),
        "odd": (2, lambda total: total % 2 == 1),
    }

    def __init__(self, rng: TrueRNG = default_rng):
        self.rng = rng

    def _roll_dice(self) -> tuple:
        """Roll 2 six-sided dice."""
        return self.rng.random_int(1, 6), self.rng.random_int(1, 6)

    def roll(self, stake: Decimal, bet_type: str) -> Outcome:
        """
        Roll the dice and resolve the bet.

        Args:
            stake: Amount wagered
            bet_type: seven, eleven, high, low, even or odd

        Raises:
            ValidationError: unknown bet type
        """
        bet_type = (bet_type or "").lower().strip()
        if bet_type not in self.BETS:
            raise ValidationError(f"Invalid bet type: {bet_type}")

        die1, die2 = self._roll_dice()
        total = die1 + die2

        multiplier, wins = self.BETS[bet_type]
        win = wins(total)

        return Outcome(
            game="dice",
            stake=stake,
            payout=payout_for(stake, multiplier if win else 0),
            classification="win" if win else "loss",
            details={
                "dice1": die1,
                "dice2": die2,
                "total": total,
                "bet_type": bet_type,
                "multiplier": multiplier if win else 0,
            },
        )


# Singleton instance
dice_game = DiceGame()

from casino.core.rng import rng as default_rng, TrueRNG
from casino.core.models import Outcome
from casino.core.money import payout_for
from casino.core.exceptions import ValidationError
from decimal import Decimal
from typing import Union


class RouletteGame:
    """
    Single-zero wheel (37 pockets: 0-36).
    Color follows parity: 0 is green, even numbers black, odd numbers red.
    """

    # Payout multipliers (includes original bet return)
    PAYOUTS = {
        "number": 36,  # Single number (35:1 + bet)
        "color": 2,  # red / black / green
        "even_odd": 2,  # even / odd, zero loses
        "low_high": 2,  # 1-18 / 19-36, zero loses
    }

    BET_VALUES = {
        "color": {"red", "black", "green"},
        "even_odd": {"even", "odd"},
        "low_high": {"low", "high"},
    }

    def __init__(self, rng: TrueRNG = default_rng):
        self.rng = rng

    @staticmethod
    def _get_color(number: int) -> str:
        if number == 0:
            return "green"
        return "black" if number % 2 == 0 else "red"

    def _normalize_bet(self, bet_type: str, bet_value: Union[str, int]):
        bet_type = (bet_type or "").lower().strip()
        if bet_type not in self.PAYOUTS:
            raise ValidationError(f"Invalid bet type: {bet_type}")

        if bet_type == "number":
            try:
                number = int(str(bet_value).strip())
            except ValueError:
                raise ValidationError(f"Invalid number bet: {bet_value}")
            if not 0 <= number <= 36:
                raise ValidationError(f"Invalid number bet: {number}. Must be 0-36.")
            return bet_type, number

        value = str(bet_value).lower().strip()
        if value not in self.BET_VALUES[bet_type]:
            allowed = " or ".join(sorted(self.BET_VALUES[bet_type]))
            raise ValidationError(f"Invalid {bet_type} bet: {bet_value}. Must be {allowed}.")
        return bet_type, value

    def _check_win(self, number: int, bet_type: str, bet_value) -> bool:
        if bet_type == "number":
            return number == bet_value

        if bet_type == "color":
            return self._get_color(number) == bet_value

        # Zero is neither even/odd nor low/high
        if number == 0:
            return False

        if bet_type == "even_odd":
            return (number % 2 == 0) == (bet_value == "even")

        if bet_type == "low_high":
            return (number <= 18) == (bet_value == "low")

        return False

    def spin(self, stake: Decimal, bet_type: str, bet_value: Union[str, int] = "") -> Outcome:
        """
        Spin the wheel and resolve one bet.

        Args:
            stake: Amount wagered
            bet_type: number, color, even_odd or low_high
            bet_value: 0-36 for number; red/black/green; even/odd; low/high

        Raises:
            ValidationError: unknown bet type or value
        """
        bet_type, bet_value = self._normalize_bet(bet_type, bet_value)

        number = self.rng.uniform_int(37)
        win = self._check_win(number, bet_type, bet_value)
        multiplier = self.PAYOUTS[bet_type] if win else 0

        return Outcome(
            game="roulette",
            stake=stake,
            payout=payout_for(stake, multiplier),
            classification="win" if win else "loss",
            details={
                "number": number,
                "color": self._get_color(number),
                "is_win": win,
                "bet_type": bet_type,
                "bet_value": bet_value,
                "multiplier": multiplier,
            },
        )


# Singleton instance
roulette_game = RouletteGame()

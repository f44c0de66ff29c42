from casino.core.rng import rng as default_rng, TrueRNG
from casino.core.models import Outcome
from casino.core.money import payout_for
from decimal import Decimal
from typing import List, Tuple


class SlotsGame:
    """
    3-reel slot machine. Every reel draws independently from the same
    seven equally weighted symbols.
    """

    SYMBOLS = ["🍒", "🍋", "🍊", "🍉", "⭐", "💎", "7️⃣"]

    # Three of a kind; any symbol not listed pays DEFAULT_TRIPLE
    PAYOUTS_3X = {
        "💎": (10, "jackpot"),
        "7️⃣": (7, "big_win"),
        "⭐": (5, "big_win"),
    }
    DEFAULT_TRIPLE = (3, "win")

    # Any two matching reels
    PAIR = (1.5, "small_win")

    def __init__(self, rng: TrueRNG = default_rng):
        self.rng = rng

    def _spin_reel(self) -> str:
        return self.rng.choice(self.SYMBOLS)

    def _calculate_payout(self, reels: List[str]) -> Tuple[float, str]:
        """
        Returns: (multiplier, classification)
        """
        if reels[0] == reels[1] == reels[2]:
            return self.PAYOUTS_3X.get(reels[0], self.DEFAULT_TRIPLE)

        if reels[0] == reels[1] or reels[1] == reels[2] or reels[0] == reels[2]:
            return self.PAIR

        return 0, "loss"

    def spin(self, stake: Decimal) -> Outcome:
        """
        Spin the slot machine.

        Args:
            stake: Amount wagered

        Returns:
            Outcome with the three reels in `details`
        """
        reels = [self._spin_reel() for _ in range(3)]
        multiplier, classification = self._calculate_payout(reels)

        return Outcome(
            game="slots",
            stake=stake,
            payout=payout_for(stake, multiplier),
            classification=classification,
            details={"reels": reels, "multiplier": multiplier},
        )


# Singleton instance
slots_game = SlotsGame()

"""
Baccarat with a simplified third-card rule.

Both initial totals are checked once, before anyone draws:
- both <= 5: player draws, then banker draws
- only one side <= 5: only that side draws
- neither: no third cards
The banker's draw never depends on the player's third card, unlike the
casino tableau.
"""

from decimal import Decimal

from casino.core.deck import baccarat_value, cards_to_list, new_shuffled_deck
from casino.core.exceptions import ValidationError
from casino.core.models import Outcome
from casino.core.money import payout_for
from casino.core.rng import rng as default_rng, TrueRNG


class BaccaratGame:
    SIDES = ("player", "banker", "tie")

    # Multipliers on a winning bet (banker carries a 5% commission)
    PAYOUTS = {
        "player": 2,
        "banker": 1.95,
        "tie": 9,
    }

    DRAW_THRESHOLD = 5

    def __init__(self, rng: TrueRNG = default_rng):
        self.rng = rng

    def _play_hands(self):
        deck = new_shuffled_deck(self.rng)
        player_hand = [deck.pop(), deck.pop()]
        banker_hand = [deck.pop(), deck.pop()]

        player_draws = baccarat_value(player_hand) <= self.DRAW_THRESHOLD
        banker_draws = baccarat_value(banker_hand) <= self.DRAW_THRESHOLD

        if player_draws:
            player_hand.append(deck.pop())
        if banker_draws:
            banker_hand.append(deck.pop())

        return player_hand, banker_hand

    @staticmethod
    def _winner(player_value: int, banker_value: int) -> str:
        if player_value > banker_value:
            return "player"
        if banker_value > player_value:
            return "banker"
        return "tie"

    def deal(self, stake: Decimal, side: str) -> Outcome:
        """
        Deal one coup and settle a bet on `side`.

        A player or banker bet that meets a tie is a push: the stake comes back.

        Raises:
            ValidationError: side is not player, banker or tie
        """
        side = (side or "").lower().strip()
        if side not in self.SIDES:
            raise ValidationError(f"Invalid side: {side}. Must be player, banker or tie.")

        player_hand, banker_hand = self._play_hands()
        player_value = baccarat_value(player_hand)
        banker_value = baccarat_value(banker_hand)
        winner = self._winner(player_value, banker_value)

        if winner == side:
            multiplier, classification = self.PAYOUTS[side], "win"
        elif winner == "tie":
            multiplier, classification = 1, "push"
        else:
            multiplier, classification = 0, "loss"

        return Outcome(
            game="baccarat",
            stake=stake,
            payout=payout_for(stake, multiplier),
            classification=classification,
            details={
                "player_hand": cards_to_list(player_hand),
                "banker_hand": cards_to_list(banker_hand),
                "player_value": player_value,
                "banker_value": banker_value,
                "winner": winner,
                "side": side,
                "multiplier": multiplier,
            },
        )


# Singleton instance
baccarat_game = BaccaratGame()

"""
Single-player poker: 2 hole cards plus 5 community cards from one deck,
paid on the best combination found in all seven.
"""

from collections import Counter
from decimal import Decimal
from typing import List, Tuple

from casino.core.deck import Card, cards_to_list, new_shuffled_deck
from casino.core.models import Outcome
from casino.core.money import payout_for
from casino.core.rng import rng as default_rng, TrueRNG


class PokerGame:
    # Strongest first: (key, display name, multiplier)
    HAND_RANKS = [
        ("four_of_a_kind", "Four of a Kind", 10),
        ("full_house", "Full House", 8),
        ("flush", "Flush", 6),
        ("three_of_a_kind", "Three of a Kind", 4),
        ("two_pair", "Two Pair", 2.5),
        ("pair", "Pair", 1.5),
        ("high_card", "High Card", 0),
    ]

    def __init__(self, rng: TrueRNG = default_rng):
        self.rng = rng

    @staticmethod
    def classify(cards: List[Card]) -> str:
        """Rank key of the best hand, judged by rank counts and suit counts."""
        rank_counts = sorted(Counter(card.rank for card in cards).values(), reverse=True)
        suit_counts = Counter(card.suit for card in cards)
        top = rank_counts[0]
        second = rank_counts[1] if len(rank_counts) > 1 else 0

        if top >= 4:
            return "four_of_a_kind"
        if top == 3 and second >= 2:
            return "full_house"
        if max(suit_counts.values()) >= 5:
            return "flush"
        if top == 3:
            return "three_of_a_kind"
        if top == 2 and second == 2:
            return "two_pair"
        if top == 2:
            return "pair"
        return "high_card"

    def _rank_info(self, key: str) -> Tuple[str, float]:
        for rank_key, name, multiplier in self.HAND_RANKS:
            if rank_key == key:
                return name, multiplier
        raise KeyError(key)

    def deal(self, stake: Decimal) -> Outcome:
        deck = new_shuffled_deck(self.rng)
        player_hand = [deck.pop(), deck.pop()]
        community_cards = [deck.pop() for _ in range(5)]

        key = self.classify(player_hand + community_cards)
        name, multiplier = self._rank_info(key)

        return Outcome(
            game="poker",
            stake=stake,
            payout=payout_for(stake, multiplier),
            classification=key,
            details={
                "player_hand": cards_to_list(player_hand),
                "community_cards": cards_to_list(community_cards),
                "hand_rank": name,
                "multiplier": multiplier,
            },
        )


# Singleton instance
poker_game = PokerGame()

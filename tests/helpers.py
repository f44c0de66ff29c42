"""Deterministic stand-ins for the randomness and deck capabilities."""

from typing import List

from casino.core.deck import Card, build_deck
from casino.core.rng import TrueRNG


class ScriptedRNG(TrueRNG):
    """Hands out pre-chosen integers; shuffle returns a fixed deck if one is given."""

    def __init__(self, ints=(), deck: List[Card] = None):
        self.ints = list(ints)
        self.deck = deck

    def uniform_int(self, n: int) -> int:
        value = self.ints.pop(0)
        assert 0 <= value < n, f"scripted value {value} out of range for n={n}"
        return value

    def shuffle(self, items):
        if self.deck is not None:
            return list(self.deck)
        return list(items)


def card(code: str) -> Card:
    return Card.from_code(code)


def stacked(*codes: str) -> List[Card]:
    """A full 52-card deck whose pop() order starts with `codes`."""
    top = [card(code) for code in codes]
    rest = [c for c in build_deck() if c not in top]
    return rest + list(reversed(top))


class StackedDeckSource:
    """Every round gets the same prearranged deck."""

    def __init__(self, *codes: str):
        self.deck = stacked(*codes)

    def deck_for(self, round_id: str) -> List[Card]:
        return list(self.deck)

    def dealer_shoe(self, round_id: str, hits: int, cards: List[Card]) -> List[Card]:
        # Dealer keeps drawing in stacked order
        return list(cards)

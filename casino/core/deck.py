"""
Standard 52-card deck shared by blackjack, poker and baccarat.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List

from casino.core.rng import TrueRNG

SUITS = ["♠", "♥", "♦", "♣"]
RANKS = ["A", "2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K"]
FACE_RANKS = {"J", "Q", "K"}


@dataclass(frozen=True)
class Card:
    """Represents a playing card."""

    rank: str
    suit: str

    def __post_init__(self):
        if self.rank not in RANKS or self.suit not in SUITS:
            raise ValueError(f"Invalid card: {self.rank!r}{self.suit!r}")

    @property
    def code(self) -> str:
        return f"{self.rank}{self.suit}"

    @property
    def value(self) -> int:
        """Blackjack value of the card."""
        return card_value(self)

    @classmethod
    def from_code(cls, code: str) -> "Card":
        if not isinstance(code, str) or len(code) < 2:
            raise ValueError(f"Invalid card code: {code!r}")
        return cls(rank=code[:-1], suit=code[-1])

    def to_dict(self) -> Dict:
        return {"rank": self.rank, "suit": self.suit, "display": self.code}

    def __repr__(self):
        return self.code


def build_deck() -> List[Card]:
    """All 52 cards in a fixed order."""
    return [Card(rank, suit) for suit in SUITS for rank in RANKS]


def new_shuffled_deck(rng: TrueRNG) -> List[Card]:
    """A fresh, uniformly shuffled deck. Cards are dealt with pop() from the end."""
    return rng.shuffle(build_deck())


def card_value(card: Card) -> int:
    """Ace counts 11, face cards 10, everything else its rank."""
    if card.rank == "A":
        return 11
    if card.rank in FACE_RANKS:
        return 10
    return int(card.rank)


def hand_value(cards: Iterable[Card]) -> int:
    """Best blackjack total: aces drop from 11 to 1 while the hand is over 21."""
    cards = list(cards)
    total = sum(card_value(card) for card in cards)
    aces = sum(1 for card in cards if card.rank == "A")

    while total > 21 and aces > 0:
        total -= 10
        aces -= 1

    return total


def baccarat_value(cards: Iterable[Card]) -> int:
    """Ace 1, ten and face cards 0, others their rank; total modulo 10."""
    total = 0
    for card in cards:
        if card.rank == "A":
            total += 1
        elif card.rank == "10" or card.rank in FACE_RANKS:
            continue
        else:
            total += int(card.rank)
    return total % 10


def cards_to_list(cards: Iterable[Card]) -> List[Dict]:
    return [card.to_dict() for card in cards]

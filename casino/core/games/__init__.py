"""Game modules for the casino round engine."""

from .slots import SlotsGame, slots_game
from .roulette import RouletteGame, roulette_game
from .blackjack import BlackjackGame, BlackjackTurn, blackjack_game
from .poker import PokerGame, poker_game
from .dice import DiceGame, dice_game
from .baccarat import BaccaratGame, baccarat_game

__all__ = [
    "SlotsGame",
    "slots_game",
    "RouletteGame",
    "roulette_game",
    "BlackjackGame",
    "BlackjackTurn",
    "blackjack_game",
    "PokerGame",
    "poker_game",
    "DiceGame",
    "dice_game",
    "BaccaratGame",
    "baccarat_game",
]

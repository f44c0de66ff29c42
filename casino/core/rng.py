import random
import secrets
from typing import List, Sequence, TypeVar

T = TypeVar("T")


class TrueRNG:
    """
    Randomness capability handed to every game.
    Backed by the `secrets` module so outcomes are not predictable from
    previously observed rounds.
    """

    # Resolution of uniform_float()
    FLOAT_PRECISION = 10**12

    def uniform_int(self, n: int) -> int:
        """Returns a random integer in the range [0, n)."""
        if n <= 0:
            raise ValueError("n must be positive")
        return secrets.randbelow(n)

    def uniform_float(self) -> float:
        """Returns a random float in the range [0.0, 1.0)."""
        return self.uniform_int(self.FLOAT_PRECISION) / self.FLOAT_PRECISION

    def random_int(self, min_val: int, max_val: int) -> int:
        """Returns a random integer in the range [min_val, max_val] (inclusive)."""
        if min_val > max_val:
            raise ValueError("min_val must be less than or equal to max_val")
        return min_val + self.uniform_int(max_val - min_val + 1)

    def choice(self, options: Sequence[T]) -> T:
        """Returns a random element from a non-empty sequence."""
        if not options:
            raise IndexError("Cannot choose from an empty sequence")
        return options[self.uniform_int(len(options))]

    def shuffle(self, items: Sequence[T]) -> List[T]:
        """Returns a new list holding a uniform permutation of `items` (Fisher-Yates)."""
        shuffled = list(items)
        for i in range(len(shuffled) - 1, 0, -1):
            j = self.uniform_int(i + 1)
            shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
        return shuffled


class SeededRNG(TrueRNG):
    """Deterministic variant for replaying a round from a seed."""

    def __init__(self, seed):
        self._random = random.Random(seed)

    def uniform_int(self, n: int) -> int:
        if n <= 0:
            raise ValueError("n must be positive")
        return self._random.randrange(n)


rng = TrueRNG()

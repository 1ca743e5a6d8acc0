"""Random and noise primitives shared by the generator and both engines.

Every draw goes through a RandomSource so a whole session can be replayed
from one seed.
"""

from __future__ import annotations

import math
import random
from typing import Sequence, TypeVar

T = TypeVar("T")

# Share of shocks drawn from the widened tail
FAT_TAIL_PROBABILITY = 0.05
FAT_TAIL_SCALE = 2.5
MAX_SHOCK = 4.0


def clamp(value: float, lo: float, hi: float, fallback: float | None = None) -> float:
    """Clamp value into [lo, hi]. Non-finite values become `fallback` (or the nearest bound)."""
    if not math.isfinite(value):
        if fallback is None:
            return lo if value != math.inf else hi
        return fallback
    return max(lo, min(hi, value))


def shift_color(hex_color: str, amount: int, rng: random.Random | None = None) -> str:
    """Jitter each RGB channel of a hex color by up to +/-amount.

    Accepts '#rrggbb' or '#rrggbbaa'; the alpha channel is dropped.
    """
    rng = rng or random.Random()
    color = hex_color.lstrip("#")
    try:
        channels = [int(color[i:i + 2], 16) for i in (0, 2, 4)]
    except ValueError:
        channels = [255, 255, 255]

    shifted = [
        int(clamp(c + rng.randint(-amount, amount), 0, 255))
        for c in channels
    ]
    return "#" + "".join(f"{c:02x}" for c in shifted)


class RandomSource:
    """Seedable source for every stochastic draw in the market.

    Usage:
        rng = RandomSource(seed=7)
        rng.uniform(10, 210)
        rng.pick_multiple_weighted(names, weights, 3)
    """

    def __init__(self, seed: int | None = None) -> None:
        self.seed = seed
        self._rng = random.Random(seed)

    def random(self) -> float:
        return self._rng.random()

    def uniform(self, lo: float, hi: float) -> float:
        return self._rng.random() * (hi - lo) + lo

    def randint(self, lo: int, hi: int) -> int:
        return self._rng.randint(lo, hi)

    def pick(self, items: Sequence[T]) -> T:
        return items[self._rng.randrange(len(items))]

    def pick_multiple(self, items: Sequence[T], lo: int, hi: int) -> list[T]:
        """Pick between lo and hi distinct items (bounded by len(items))."""
        count = min(len(items), self._rng.randint(lo, hi))
        return self._rng.sample(list(items), count)

    def pick_multiple_weighted(
        self,
        items: Sequence[T],
        weights: Sequence[float],
        count: int,
    ) -> list[T]:
        """Weighted sampling without replacement.

        The cumulative distribution is rebuilt after each draw with the
        chosen item removed, so an item is never selected twice.
        """
        pool = list(items)
        pool_weights = [w if math.isfinite(w) and w > 0 else 0.0 for w in weights]
        selected: list[T] = []

        while pool and len(selected) < count:
            total = sum(pool_weights)
            if total <= 0:
                index = self._rng.randrange(len(pool))
            else:
                target = self._rng.random() * total
                cumulative = 0.0
                index = len(pool) - 1
                for i, weight in enumerate(pool_weights):
                    cumulative += weight
                    if target < cumulative:
                        index = i
                        break

            selected.append(pool.pop(index))
            pool_weights.pop(index)

        return selected

    def gaussian(self) -> float:
        """Standard normal draw."""
        return self._rng.gauss(0.0, 1.0)

    def tempered_shock(self) -> float:
        """Mostly-Gaussian shock with an occasional widened tail, bounded."""
        shock = self.gaussian()
        if self._rng.random() < FAT_TAIL_PROBABILITY:
            shock *= FAT_TAIL_SCALE
        return clamp(shock, -MAX_SHOCK, MAX_SHOCK, fallback=0.0)

    def shift_color(self, hex_color: str, amount: int) -> str:
        return shift_color(hex_color, amount, self._rng)

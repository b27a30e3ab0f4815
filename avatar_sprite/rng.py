"""Seeded random source used for every randomized sprite choice.

``SpriteRandom`` wraps :class:`random.Random` and exposes the two draws a
composition needs. Each draw consumes exactly one underlying float, so the
sequence of choices for a seed is fixed by the order in which draws are made.

``random.Random`` hashes ``str``/``bytes`` seeds with SHA-512 rather than
``hash()``, so results are stable across processes regardless of
``PYTHONHASHSEED``.
"""

import math
import random
from typing import Callable

from avatar_sprite.types import Seed


class SpriteRandom:
    """Reproducible draw source bound to one seed.

    Attributes:
        seed: The seed this instance was created with.
    """

    seed: Seed

    def __init__(self, seed: Seed):
        self.seed = seed
        self._random = random.Random(seed)

    def random(self) -> float:
        """Return the next float in ``[0, 1)``."""
        return self._random.random()

    def bool(self, likelihood: float = 50) -> bool:
        """Return ``True`` with ``likelihood`` percent probability.

        ``likelihood=100`` is always ``True`` and ``0`` always ``False``; one
        float is consumed either way.
        """
        if not 0 <= likelihood <= 100:
            raise ValueError(f"likelihood must be within [0, 100], got {likelihood}")
        return self.random() * 100 < likelihood

    def integer(self, min: int, max: int) -> int:
        """Return a uniform integer in the closed range ``[min, max]``."""
        if min > max:
            raise ValueError(f"min ({min}) must not exceed max ({max})")
        return math.floor(self.random() * (max - min + 1) + min)

    def natural(self, min: int = 0, max: int = 9007199254740991) -> int:
        """Like :meth:`integer` but restricted to non-negative bounds."""
        if min < 0:
            raise ValueError(f"min must be non-negative, got {min}")
        return self.integer(min, max)


RngFactory = Callable[[Seed], SpriteRandom]
"""Builds the draw source for one composition from its seed."""

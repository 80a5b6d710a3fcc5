"""Injectable pseudo-random source for the mock data paths.

The keyword mock, the trending hash jitter, candidate generation and the
numbered domain variants all draw from a ``RandomSource``.  By default the
draws are unseeded, so repeated runs differ.  Configure a seed to make every
draw a pure function of ``(seed, key)``.
"""

import random
from typing import Optional

_shared_rng = random.Random()


class RandomSource:
    """Hand out ``random.Random`` instances keyed by the text they serve.

    Usage::

        source = RandomSource(seed=42)
        rng = source.for_key("hydroponics")
        rng.random()

    Args:
        seed: When set, ``for_key`` returns ``random.Random(f"{seed}:{key}")``.
        rng: Explicit generator returned for every key (takes precedence
             over ``seed``).  Handy for tests that need fixed draws.
    """

    def __init__(self, seed: Optional[int] = None, rng: Optional[random.Random] = None):
        self._seed = seed
        self._rng = rng

    @property
    def seed(self) -> Optional[int]:
        return self._seed

    def for_key(self, key: str) -> random.Random:
        if self._rng is not None:
            return self._rng
        if self._seed is None:
            return _shared_rng
        return random.Random(f"{self._seed}:{key}")

    def __repr__(self) -> str:
        return f"<RandomSource seed={self._seed!r} fixed={self._rng is not None}>"

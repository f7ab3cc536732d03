"""Deterministic random engine and uniform distribution over WideInt types."""
from __future__ import annotations

from typing import Optional

import numpy as np

DEFAULT_SEED = 5489


class RandomEngine:
    """64-bit pseudo-random engine on numpy's PCG64 recurrence.

    The output sequence depends only on the seed. An engine carries mutable
    state and is not safe to share between threads without a lock; give
    each thread its own.
    """

    result_bits = 64

    def __init__(self, seed: int = DEFAULT_SEED):
        self.seed(seed)

    def seed(self, seed: int) -> None:
        self._bit_generator = np.random.PCG64(seed)

    def __call__(self) -> int:
        return int(self._bit_generator.random_raw())

    def draw(self, count: int) -> np.ndarray:
        """The next `count` outputs as a uint64 array."""
        return self._bit_generator.random_raw(count)

    def discard(self, count: int) -> None:
        self._bit_generator.advance(count)


class UniformIntDistribution:
    """Uniform values of `value_type` over the closed range [low, high].

    Draws are masked to the bit length of ``high - low`` and rejected when
    they land past it, so every value in range is equally likely.
    """

    def __init__(self, value_type, low=None, high=None):
        self.value_type = value_type
        self.low = value_type.min_value() if low is None else value_type(low)
        self.high = value_type.max_value() if high is None else value_type(high)
        if self.high < self.low:
            raise ValueError(f"empty range [{self.low}, {self.high}]")

        unsigned = value_type.unsigned_type()
        self._unsigned = unsigned
        self._words = -(-unsigned.width // RandomEngine.result_bits)
        self._offset = unsigned(self.low)
        self._span = unsigned(self.high) - self._offset
        self._mask: Optional[object] = None
        if self._span != unsigned.max_value():
            self._mask = (unsigned(1) << (self._span.msb() + 1)) - 1

    def __call__(self, engine: RandomEngine):
        while True:
            raw = self._unsigned.import_bits(
                engine.draw(self._words).tolist(), RandomEngine.result_bits, msv_first=False)
            if self._mask is not None:
                raw = raw & self._mask
                if raw > self._span:
                    continue
            return self.value_type(self._offset + raw)

    def __repr__(self):
        return f"UniformIntDistribution({self.value_type.__name__}, {self.low}, {self.high})"

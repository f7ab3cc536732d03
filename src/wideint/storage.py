from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

import numpy as np


def limb_count(width: int, limb_bits: int) -> int:
    return -(-width // limb_bits)


def top_mask(width: int, limb_bits: int) -> int:
    """Mask of the bits of the most significant limb that lie below `width`."""
    used = width - (limb_count(width, limb_bits) - 1) * limb_bits
    return (1 << used) - 1


@dataclass(frozen=True)
class InlineStorage:
    """The value owns the limb array produced by the kernel directly."""

    def adopt(self, limbs: np.ndarray) -> np.ndarray:
        limbs.flags.writeable = False
        return limbs


@dataclass(frozen=True)
class DynamicStorage:
    """Each value gets exactly one buffer from `allocator`, sized once.

    The allocator is called as ``allocator(shape, dtype=...)`` like
    ``numpy.empty``. The buffer is never resized and never shared with
    another value.
    """

    allocator: Callable[..., np.ndarray] = field(default=np.empty)

    def adopt(self, limbs: np.ndarray) -> np.ndarray:
        buf = self.allocator((limbs.size,), dtype=limbs.dtype)
        if buf.shape != limbs.shape or buf.dtype != limbs.dtype:
            raise ValueError(
                f"allocator returned {buf.dtype}{buf.shape}, "
                f"expected {limbs.dtype}{limbs.shape}")
        buf[...] = limbs
        buf.flags.writeable = False
        return buf

from __future__ import annotations

import functools
from typing import Optional

import numpy as np

from . import division, shifts
from .carry import scan_add, scan_sub
from .multiplication import DigitMultiplier
from .storage import limb_count, top_mask
from .utils import LIMB_DTYPES, fit, int_to_limbs, limbs_to_int


def significant_length(a: np.ndarray) -> int:
    nonzero = np.flatnonzero(a)
    if nonzero.size == 0:
        return 0
    return int(nonzero[-1]) + 1


def compare_magnitudes(a: np.ndarray, b: np.ndarray) -> int:
    """Unsigned comparison of equal-length limb arrays, most significant limb first."""
    diff = np.flatnonzero(a != b)
    if diff.size == 0:
        return 0
    i = diff[-1]
    return 1 if a[i] > b[i] else -1


class LimbKernel:
    """Arithmetic on fixed-length limb arrays of one (width, limb width) pair.

    Every method takes and returns plain unsigned limb arrays of exactly
    `count` limbs with the bits above `width` cleared. Results are always
    fresh arrays; inputs are never written.
    """

    def __init__(self, width: int, limb_bits: int,
                 karatsuba_threshold: int, unroll_hint: Optional[int] = None):
        self.width = width
        self.limb_bits = limb_bits
        self.dtype = LIMB_DTYPES[limb_bits]
        self.count = limb_count(width, limb_bits)
        self.top_mask = top_mask(width, limb_bits)
        self.limb_max = (1 << limb_bits) - 1
        self._sign_limb, self._sign_bit = divmod(width - 1, limb_bits)
        self.multiplier = DigitMultiplier(limb_bits, karatsuba_threshold,
                                          unrolled=unroll_hint == self.count)

    # construction

    def zeros(self) -> np.ndarray:
        return np.zeros(self.count, dtype=self.dtype)

    def ones(self) -> np.ndarray:
        """All `width` bits set."""
        out = np.full(self.count, self.limb_max, dtype=self.dtype)
        out[-1] &= self.top_mask
        return out

    def from_int(self, n: int) -> np.ndarray:
        out = int_to_limbs(n, self.count, self.limb_bits)
        out[-1] &= self.top_mask
        return out

    def to_int(self, a: np.ndarray) -> int:
        return limbs_to_int(a, self.limb_bits)

    def mask(self, a: np.ndarray) -> np.ndarray:
        a[-1] &= self.top_mask
        return a

    def resize(self, a: np.ndarray, src_width: int, sign_extend: bool) -> np.ndarray:
        """Truncate, zero-extend or sign-extend a limb array of another width.

        `a` has the same limb width as this kernel and `src_width` bits.
        """
        negative = sign_extend and self._bit(a, src_width - 1)
        out = fit(a, self.count)
        if negative and src_width < self.width:
            fill = self.shift_left(self.ones(), src_width)
            out |= fill
        return self.mask(out)

    # predicates

    def _bit(self, a: np.ndarray, index: int) -> bool:
        limb, bit = divmod(index, self.limb_bits)
        if limb >= a.size:
            return False
        return bool((int(a[limb]) >> bit) & 1)

    def sign_bit(self, a: np.ndarray) -> bool:
        return bool((int(a[self._sign_limb]) >> self._sign_bit) & 1)

    def is_zero(self, a: np.ndarray) -> bool:
        return not a.any()

    def compare(self, a: np.ndarray, b: np.ndarray) -> int:
        return compare_magnitudes(a, b)

    def significant_length(self, a: np.ndarray) -> int:
        return significant_length(a)

    def bit_length(self, a: np.ndarray) -> int:
        n = significant_length(a)
        if n == 0:
            return 0
        return (n - 1) * self.limb_bits + int(a[n - 1]).bit_length()

    def trailing_zeros(self, a: np.ndarray) -> int:
        nonzero = np.flatnonzero(a)
        if nonzero.size == 0:
            return 0
        i = int(nonzero[0])
        low = int(a[i])
        return i * self.limb_bits + (low & -low).bit_length() - 1

    # add / subtract

    def add(self, a: np.ndarray, b: np.ndarray) -> np.ndarray:
        s, _ = scan_add(a, b)
        return self.mask(s)

    def sub(self, a: np.ndarray, b: np.ndarray) -> np.ndarray:
        d, _ = scan_sub(a, b)
        return self.mask(d)

    def add_int(self, a: np.ndarray, n: int) -> np.ndarray:
        return self.add(a, self.from_int(n))

    def negate(self, a: np.ndarray) -> np.ndarray:
        return self.sub(self.zeros(), a)

    # bitwise

    def invert(self, a: np.ndarray) -> np.ndarray:
        return self.mask(~a)

    def and_(self, a: np.ndarray, b: np.ndarray) -> np.ndarray:
        return a & b

    def or_(self, a: np.ndarray, b: np.ndarray) -> np.ndarray:
        return a | b

    def xor(self, a: np.ndarray, b: np.ndarray) -> np.ndarray:
        return a ^ b

    # shifts

    def shift_left(self, a: np.ndarray, n: int) -> np.ndarray:
        if n >= self.width:
            return self.zeros()
        return self.mask(shifts.shift_left(a, n, self.limb_bits))

    def shift_right(self, a: np.ndarray, n: int, arithmetic: bool = False) -> np.ndarray:
        negative = arithmetic and self.sign_bit(a)
        if n >= self.width:
            return self.ones() if negative else self.zeros()
        out = shifts.shift_right(a, n, self.limb_bits)
        if negative and n:
            out |= self.shift_left(self.ones(), self.width - n)
        return out

    # multiply / divide

    def mul(self, a: np.ndarray, b: np.ndarray) -> np.ndarray:
        na = significant_length(a)
        nb = significant_length(b)
        if na == 0 or nb == 0:
            return self.zeros()
        product = self.multiplier.multiply(a[:na], b[:nb])
        return self.mask(fit(product, self.count))

    def mul_small(self, a: np.ndarray, k: int) -> np.ndarray:
        """a * k for a built-in non-negative integer k, wrapped to the width."""
        return self.mul(a, self.from_int(k))

    def divmod(self, u: np.ndarray, v: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        q, r = division.long_divmod(u, v, self.limb_bits, self.multiplier)
        return fit(q, self.count), fit(r, self.count)

    def divmod_small(self, u: np.ndarray, d: int) -> tuple[np.ndarray, int]:
        """Divide by a single-limb divisor 0 < d < 2**limb_bits."""
        return division.short_divmod(u, d, self.limb_bits)


@functools.lru_cache(maxsize=None)
def get_kernel(width: int, limb_bits: int, karatsuba_threshold: int,
               unroll_hint: Optional[int] = None) -> LimbKernel:
    return LimbKernel(width, limb_bits, karatsuba_threshold, unroll_hint)

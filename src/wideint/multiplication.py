from __future__ import annotations

import numpy as np

from .carry import scan_add, scan_sub
from .utils import LIMB_DTYPES


def _pad(x: np.ndarray, n: int) -> np.ndarray:
    if x.size >= n:
        return x
    out = np.zeros(n, dtype=x.dtype)
    out[:x.size] = x
    return out


class DigitMultiplier:
    """Limb multiplication on half-limb digits.

    Limbs are split into 16-bit digits (8-bit when the limbs themselves are
    8 bits wide) so that a digit product fits in 32 bits and sums of digit
    products accumulate exactly in int64 for any realistic width.
    """

    def __init__(self, limb_bits: int, karatsuba_threshold: int, unrolled: bool = False):
        self.limb_bits = limb_bits
        self.limb_dtype = LIMB_DTYPES[limb_bits]
        self.digit_bits = min(16, limb_bits)
        self.digit_dtype = LIMB_DTYPES[self.digit_bits]
        self.digit_mask = (1 << self.digit_bits) - 1
        self.digits_per_limb = limb_bits // self.digit_bits
        self.karatsuba_threshold = karatsuba_threshold
        self.digit_threshold = karatsuba_threshold * self.digits_per_limb
        self.unrolled = unrolled
        self._shifts = np.arange(0, limb_bits, self.digit_bits, dtype=self.limb_dtype)

    def multiply(self, a: np.ndarray, b: np.ndarray) -> np.ndarray:
        """Full product of two limb arrays, len(a) + len(b) limbs."""
        x = self.to_digits(a)
        y = self.to_digits(b)
        if min(a.size, b.size) > self.karatsuba_threshold:
            digits = self.karatsuba(x, y)
        else:
            digits = self.schoolbook(x, y)
        return self.from_digits(digits, a.size + b.size)

    def to_digits(self, limbs: np.ndarray) -> np.ndarray:
        if self.digits_per_limb == 1:
            return limbs.astype(self.digit_dtype)
        split = (limbs[:, None] >> self._shifts) & self.digit_mask
        return split.reshape(-1).astype(self.digit_dtype)

    def from_digits(self, digits: np.ndarray, count: int) -> np.ndarray:
        digits = _pad(digits[:count * self.digits_per_limb], count * self.digits_per_limb)
        if self.digits_per_limb == 1:
            return digits.astype(self.limb_dtype)
        chunks = digits.reshape(count, self.digits_per_limb).astype(self.limb_dtype)
        return np.bitwise_or.reduce(chunks << self._shifts, axis=1)

    def normalize(self, acc: np.ndarray) -> np.ndarray:
        """Carry-propagate an int64 accumulator of non-negative digit sums.

        The top entry must have room for the final carry; it is dropped.
        """
        while True:
            carries = acc >> self.digit_bits
            acc &= self.digit_mask
            if not carries.any():
                break
            acc[1:] += carries[:-1]
        return acc.astype(self.digit_dtype)

    def schoolbook(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        if x.size > y.size:
            x, y = y, x
        x = x.astype(np.int64)
        y = y.astype(np.int64)
        acc = np.zeros(x.size + y.size, dtype=np.int64)
        if self.unrolled:
            rows = np.arange(x.size)[:, None] + np.arange(y.size)[None, :]
            np.add.at(acc, rows.ravel(), np.outer(x, y).ravel())
        else:
            for i in np.flatnonzero(x):
                acc[i:i + y.size] += x[i] * y
        return self.normalize(acc)

    def karatsuba(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        if min(x.size, y.size) <= self.digit_threshold:
            return self.schoolbook(x, y)

        n = max(x.size, y.size)
        x = _pad(x, n)
        y = _pad(y, n)
        m = n // 2
        x0, x1 = x[:m], x[m:]
        y0, y1 = y[:m], y[m:]

        z0 = self.karatsuba(x0, y0)
        z2 = self.karatsuba(x1, y1)
        z1 = self.karatsuba(add_digits(x0, x1), add_digits(y0, y1))
        mid = sub_digits(sub_digits(z1, z0), z2)

        acc = np.zeros(2 * n + 2, dtype=np.int64)
        acc[:z0.size] += z0
        acc[m:m + mid.size] += mid
        acc[2 * m:2 * m + z2.size] += z2
        return self.normalize(acc)[:2 * n]


def add_digits(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """a + b for digit arrays of any length; one extra digit holds the carry."""
    n = max(a.size, b.size)
    s, carry = scan_add(_pad(a, n), _pad(b, n))
    return np.append(s, s.dtype.type(carry))


def sub_digits(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """a - b for digit arrays with a >= b; the result has len(a) digits."""
    d, _ = scan_sub(a, _pad(b, a.size))
    return d

"""Roots, powers, gcd and primality over WideInt values.

Everything here goes through the public operators of :class:`WideInt` and
companion types derived from the argument's type (its unsigned twin, or a
wider one where intermediate products would otherwise wrap).
"""
from __future__ import annotations

import logging
from typing import Optional, Union

from .errors import DivisionByZero
from .prng import RandomEngine, UniformIntDistribution
from .wide_int import WideInt

logger = logging.getLogger(__name__)

SMALL_PRIMES = (
    2, 3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37, 41, 43, 47, 53, 59, 61, 67, 71,
    73, 79, 83, 89, 97, 101, 103, 107, 109, 113, 127, 131, 137, 139, 149, 151,
    157, 163, 167, 173, 179, 181, 191, 193, 197, 199, 211, 223, 227,
)
_SMALL_PRIME_SET = frozenset(SMALL_PRIMES)
FERMAT_BASE = 228

Exponent = Union[int, WideInt]


def _magnitude(x: WideInt) -> tuple[WideInt, bool]:
    """|x| as a value of the unsigned twin type, and whether x was negative."""
    unsigned = type(x).unsigned_type()
    if x.is_negative():
        return unsigned(-x), True
    return unsigned(x), False


def _exponent(n: Exponent) -> int:
    n = int(n)
    if n < 0:
        raise ValueError("negative exponent")
    return n


def msb(x: WideInt) -> int:
    return x.msb()


def lsb(x: WideInt) -> int:
    return x.lsb()


def sqrt(x: WideInt) -> WideInt:
    """Floor of the square root; 0 for negative signed values."""
    if x.is_negative():
        return type(x)(0)
    return type(x)(_isqrt(type(x).unsigned_type()(x)))


def _isqrt(x: WideInt) -> WideInt:
    if x < 2:
        return x

    # s + x // s can carry out of the top bit of narrow types
    wide = type(x).with_width(type(x).width + 2)
    y = wide(x)
    # start above the root and walk down with Newton steps
    s = wide(1) << (y.msb() // 2 + 1)
    while True:
        u = (s + y // s) >> 1
        if u >= s:
            return type(x)(s)
        s = u


def cbrt(x: WideInt) -> WideInt:
    """Floor of the cube root of |x|, carrying the sign of x."""
    magnitude, negative = _magnitude(x)
    result = type(x)(_iroot(magnitude, 3))
    return -result if negative else result


def root(x: WideInt, k: int) -> WideInt:
    """Floor of the k-th root. Negative x gives 0 except for k == 3."""
    k = int(k)
    if k <= 0:
        raise ValueError("root degree must be positive")
    if k == 3:
        return cbrt(x)
    if x.is_negative():
        return type(x)(0)
    if k == 1:
        return x
    if k == 2:
        return sqrt(x)
    return type(x)(_iroot(type(x).unsigned_type()(x), k))


def _iroot(x: WideInt, k: int) -> WideInt:
    if x < 2:
        return x
    if k >= x.msb() + 1:
        return type(x)(1)

    # (k - 1) * s can spill past the width for narrow types
    wide = type(x).with_width(type(x).width + k.bit_length() + 2)
    y = wide(x)
    s = wide(1) << (y.msb() // k + 1)
    while True:
        t = _bounded_pow(s, k - 1, y)
        u = (s * (k - 1) + (y // t if t is not None else 0)) // k
        if u >= s:
            return type(x)(s)
        s = u


def _bounded_pow(base: WideInt, e: int, limit: WideInt) -> Optional[WideInt]:
    """base ** e, or None once it exceeds limit. base must be at least 2."""
    width = type(base).width
    result = type(base)(1)
    for _ in range(e):
        if result.msb() + base.msb() + 2 > width and result > limit // base:
            return None
        result = result * base
        if result > limit:
            return None
    return result


def pow(x: WideInt, n: Exponent) -> WideInt:
    """x ** n by repeated squaring, wrapping at the width of x."""
    n = _exponent(n)
    result = type(x)(1)
    base = x
    while n:
        if n & 1:
            result = result * base
        n >>= 1
        if n:
            base = base * base
    return result


def powm(x: WideInt, n: Exponent, m: Union[int, WideInt]) -> WideInt:
    """x ** n mod |m|, in [0, |m|).

    Products are formed in an unsigned type of twice the width, so nothing
    wraps before the reduction that follows each multiply.
    """
    cls = type(x)
    n = _exponent(n)
    modulus, _ = _magnitude(m if type(m) is cls else cls(m))
    if not modulus:
        raise DivisionByZero("modulus is zero")

    wide = type(modulus).with_width(2 * cls.width)
    mw = wide(modulus)
    magnitude, negative = _magnitude(x)
    base = wide(magnitude) % mw
    if negative and base:
        base = mw - base

    result = wide(1) % mw
    while n:
        if n & 1:
            result = result * base % mw
        n >>= 1
        if n:
            base = base * base % mw
    return cls(type(modulus)(result))


def gcd(a: WideInt, b: Union[int, WideInt]) -> WideInt:
    """Greatest common divisor of |a| and |b|.

    When one argument is strictly negative and the other strictly positive
    the result is negated; in every other case it is non-negative.
    """
    cls = type(a)
    b = b if type(b) is cls else cls(b)
    ma, neg_a = _magnitude(a)
    mb, neg_b = _magnitude(b)
    result = cls(_binary_gcd(ma, mb))
    if (neg_a and b > 0) or (neg_b and a > 0):
        return -result
    return result


def _binary_gcd(u: WideInt, v: WideInt) -> WideInt:
    if not u:
        return v
    if not v:
        return u
    shift = min(u.lsb(), v.lsb())
    u = u >> u.lsb()
    while True:
        v = v >> v.lsb()
        if u > v:
            u, v = v, u
        v = v - u
        if not v:
            return u << shift


def lcm(a: WideInt, b: Union[int, WideInt]) -> WideInt:
    """Least common multiple of |a| and |b|; 0 if either is 0."""
    cls = type(a)
    b = b if type(b) is cls else cls(b)
    if not a or not b:
        return cls(0)
    ma, _ = _magnitude(a)
    mb, _ = _magnitude(b)
    return cls(ma // _binary_gcd(ma, mb) * mb)


def miller_rabin(n: WideInt, rounds: int = 25, engine: Optional[RandomEngine] = None) -> bool:
    """Probabilistic primality test on |n|.

    False means |n| is composite. True means |n| is prime with error
    probability at most 4 ** -rounds. Witnesses are drawn uniformly from
    [2, |n| - 2] with `engine` (a fresh default-seeded engine if omitted).
    """
    if rounds < 0:
        raise ValueError("rounds must be non-negative")
    candidate, _ = _magnitude(n)
    if candidate <= SMALL_PRIMES[-1]:
        return int(candidate) in _SMALL_PRIME_SET
    for p in SMALL_PRIMES:
        if not candidate % p:
            return False

    n_minus_one = candidate - 1
    k = n_minus_one.lsb()
    q = n_minus_one >> k

    if powm(type(candidate)(FERMAT_BASE), n_minus_one, candidate) != 1:
        logger.debug("%s: composite by Fermat test", type(n).__name__)
        return False

    if engine is None:
        engine = RandomEngine()
    witnesses = UniformIntDistribution(type(candidate), 2, candidate - 2)
    for round_ in range(rounds):
        y = powm(witnesses(engine), q, candidate)
        j = 0
        while y != n_minus_one:
            if y == 1:
                if j == 0:
                    break
                logger.debug("%s: composite at witness round %d", type(n).__name__, round_)
                return False
            j += 1
            if j == k:
                logger.debug("%s: composite at witness round %d", type(n).__name__, round_)
                return False
            y = powm(y, 2, candidate)
    return True

from __future__ import annotations

import numpy as np

from .carry import scan_add, scan_sub
from .errors import DivisionByZero
from .multiplication import DigitMultiplier
from .shifts import shift_left, shift_right


def _trimmed_length(a: np.ndarray) -> int:
    nonzero = np.flatnonzero(a)
    return int(nonzero[-1]) + 1 if nonzero.size else 0


def short_divmod(u: np.ndarray, d: int, limb_bits: int) -> tuple[np.ndarray, int]:
    """Divide a limb array by a single limb, most significant limb first."""
    if d == 0:
        raise DivisionByZero()
    q = np.zeros_like(u)
    r = 0
    for i in range(_trimmed_length(u) - 1, -1, -1):
        q[i], r = divmod((r << limb_bits) | int(u[i]), d)
    return q, r


def mul_limb(v: np.ndarray, k: int, multiplier: DigitMultiplier) -> np.ndarray:
    """v * k for a single-limb k; the result has len(v) + 1 limbs."""
    k_limb = np.array([k], dtype=v.dtype)
    return multiplier.from_digits(
        multiplier.schoolbook(multiplier.to_digits(v), multiplier.to_digits(k_limb)),
        v.size + 1)


def long_divmod(u: np.ndarray, v: np.ndarray, limb_bits: int,
                multiplier: DigitMultiplier) -> tuple[np.ndarray, np.ndarray]:
    """Quotient and remainder of two unsigned limb arrays.

    Classical normalized long division: both operands are shifted left until
    the divisor's top limb has its high bit set, each quotient limb is
    estimated from the top limbs of the running remainder and corrected by
    at most two decrements plus one add-back. Returned arrays have len(u)
    limbs.
    """
    nv = _trimmed_length(v)
    if nv == 0:
        raise DivisionByZero()
    nu = _trimmed_length(u)
    count = u.size

    if nu < nv or (nu == nv and _less(u[:nu], v[:nv])):
        return np.zeros_like(u), u.copy()
    if nv == 1:
        q, r = short_divmod(u, int(v[0]), limb_bits)
        rem = np.zeros_like(u)
        rem[0] = r
        return q, rem

    base = 1 << limb_bits
    s = limb_bits - int(v[nv - 1]).bit_length()
    vn = shift_left(v[:nv], s, limb_bits)
    un = np.zeros(nu + 1, dtype=u.dtype)
    un[:nu] = u[:nu]
    un = shift_left(un, s, limb_bits)

    v_top = int(vn[nv - 1])
    v_next = int(vn[nv - 2])
    v_ext = np.append(vn, vn.dtype.type(0))
    q = np.zeros(count, dtype=u.dtype)

    for j in range(nu - nv, -1, -1):
        num = (int(un[j + nv]) << limb_bits) | int(un[j + nv - 1])
        qhat, rhat = divmod(num, v_top)
        while qhat >= base or qhat * v_next > (rhat << limb_bits) + int(un[j + nv - 2]):
            qhat -= 1
            rhat += v_top
            if rhat >= base:
                break
        if qhat == 0:
            continue

        window = un[j:j + nv + 1]
        diff, borrow = scan_sub(window, mul_limb(vn, qhat, multiplier))
        if borrow:
            # estimate was one too large
            qhat -= 1
            diff, _ = scan_add(diff, v_ext)
        un[j:j + nv + 1] = diff
        q[j] = qhat

    rem = np.zeros_like(u)
    rem[:nv] = shift_right(un[:nv], s, limb_bits)
    return q, rem


def _less(a: np.ndarray, b: np.ndarray) -> bool:
    diff = np.flatnonzero(a != b)
    if diff.size == 0:
        return False
    i = diff[-1]
    return bool(a[i] < b[i])

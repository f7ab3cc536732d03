import numpy as np


def shift_left(a: np.ndarray, n: int, limb_bits: int) -> np.ndarray:
    """Shift a limb array left by n bits; bits leaving the top limb are dropped."""
    count = a.size
    limbs, bits = divmod(n, limb_bits)
    out = np.zeros_like(a)
    if limbs >= count:
        return out
    src = a[:count - limbs]
    if bits:
        out[limbs:] = src << bits
        out[limbs + 1:] |= src[:-1] >> (limb_bits - bits)
    else:
        out[limbs:] = src
    return out


def shift_right(a: np.ndarray, n: int, limb_bits: int) -> np.ndarray:
    """Logical right shift of a limb array by n bits."""
    count = a.size
    limbs, bits = divmod(n, limb_bits)
    out = np.zeros_like(a)
    if limbs >= count:
        return out
    src = a[limbs:]
    if bits:
        out[:count - limbs] = src >> bits
        out[:count - limbs - 1] |= src[1:] << (limb_bits - bits)
    else:
        out[:count - limbs] = src
    return out

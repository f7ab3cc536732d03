from typing import Sequence

import numpy as np

LIMB_DTYPES = {
    8: np.uint8,
    16: np.uint16,
    32: np.uint32,
    64: np.uint64,
}


def int_to_limbs(n: int, count: int, limb_bits: int) -> np.ndarray:
    """Built-in integer -> little-endian limb array of `count` limbs.

    Negative values and values wider than ``count * limb_bits`` wrap modulo
    ``2 ** (count * limb_bits)``.
    """
    n &= (1 << (count * limb_bits)) - 1
    if n == 0:
        return np.zeros(count, dtype=LIMB_DTYPES[limb_bits])
    # hex is the cheapest way out of a big Python int
    return hex_to_limbs(format(n, "x"), count, limb_bits)


def hex_to_limbs(hex_s: str, count: int, limb_bits: int) -> np.ndarray:
    """Hex digits (most significant first) -> `count` limbs, keeping the low ones."""
    chars = limb_bits // 4
    hex_s = hex_s[-count * chars:].zfill(count * chars)

    limbs = [int(hex_s[i:i + chars], 16) for i in range(0, len(hex_s), chars)]
    return np.array(limbs[::-1], dtype=LIMB_DTYPES[limb_bits])


def limbs_to_hex(limbs: np.ndarray, limb_bits: int) -> str:
    chars = limb_bits // 4
    hex_s = "".join(format(val, f"0{chars}x") for val in reversed(limbs.tolist()))
    return hex_s.lstrip("0") or "0"


def limbs_to_int(limbs: np.ndarray, limb_bits: int) -> int:
    out = 0
    for i, val in enumerate(limbs.tolist()):
        out |= val << (i * limb_bits)
    return out


def regroup(chunks: np.ndarray, to_bits: int) -> np.ndarray:
    """Reinterpret a little-endian unsigned array as chunks of `to_bits`.

    The result is padded with zero chunks to a whole number of `to_bits`.
    """
    raw = chunks.astype(chunks.dtype.newbyteorder("<"), copy=False).tobytes()
    step = to_bits // 8
    if len(raw) % step:
        raw += bytes(step - len(raw) % step)
    return np.frombuffer(raw, dtype=np.dtype(LIMB_DTYPES[to_bits]).newbyteorder("<")) \
        .astype(LIMB_DTYPES[to_bits])


def fit(limbs: np.ndarray, count: int, fill: int = 0) -> np.ndarray:
    """Truncate or extend `limbs` to exactly `count` entries."""
    if limbs.size >= count:
        return limbs[:count].copy()
    out = np.full(count, fill, dtype=limbs.dtype)
    out[:limbs.size] = limbs
    return out


def as_chunk_array(values: Sequence[int], chunk_bits: int) -> np.ndarray:
    if chunk_bits not in LIMB_DTYPES:
        raise ValueError(f"chunk_bits must be one of {tuple(LIMB_DTYPES)}, got {chunk_bits!r}")
    limit = 1 << chunk_bits
    values = [int(v) for v in values]
    for v in values:
        if not 0 <= v < limit:
            raise ValueError(f"chunk {v} does not fit in {chunk_bits} bits")
    return np.array(values, dtype=LIMB_DTYPES[chunk_bits])

"""Text, float and bit-chunk conversions between limb arrays and Python values."""
from __future__ import annotations

import math
import re
from typing import Sequence

import numpy as np

from .core import LimbKernel
from .errors import MalformedInput
from .utils import LIMB_DTYPES, as_chunk_array, fit, hex_to_limbs, limbs_to_hex, regroup

_DEC_DIGITS = frozenset("0123456789")
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")

# largest power of ten that fits in one limb, per limb width
_DEC_CHUNK = {8: 2, 16: 4, 32: 9, 64: 19}

_FORMAT_SPEC = re.compile(
    r"(?:(?P<fill>.)?(?P<align>[<>^]))?"
    r"(?P<sign>[-+]?)"
    r"(?P<alt>#?)"
    r"(?P<width>\d*)"
    r"(?P<type>[dxX]?)",
    re.DOTALL,
)


def parse_text(text: str, kernel: LimbKernel) -> np.ndarray:
    """Parse ``[+-]digits`` or ``[+-]0x hexdigits`` into a wrapped limb array."""
    body = text
    negative = False
    if body[:1] in ("+", "-"):
        negative = body[0] == "-"
        body = body[1:]

    if body[:2] in ("0x", "0X"):
        digits = body[2:]
        if not digits:
            raise MalformedInput(text, "no hexadecimal digits")
        bad = set(digits) - _HEX_DIGITS
        if bad:
            raise MalformedInput(text, f"invalid hexadecimal digit {min(bad)!r}")
        limbs = kernel.mask(hex_to_limbs(digits, kernel.count, kernel.limb_bits))
    else:
        if not body:
            raise MalformedInput(text, "empty string" if not text else "no decimal digits")
        bad = set(body) - _DEC_DIGITS
        if bad:
            raise MalformedInput(text, f"invalid decimal digit {min(bad)!r}")
        limbs = _parse_decimal(body, kernel)

    return kernel.negate(limbs) if negative else limbs


def _parse_decimal(digits: str, kernel: LimbKernel) -> np.ndarray:
    chunk = _DEC_CHUNK[kernel.limb_bits]
    head = len(digits) % chunk or chunk
    pieces = [digits[:head]] + [digits[i:i + chunk] for i in range(head, len(digits), chunk)]

    acc = kernel.zeros()
    for piece in pieces:
        acc = kernel.add_int(kernel.mul_small(acc, 10 ** len(piece)), int(piece))
    return acc


def format_text(limbs: np.ndarray, kernel: LimbKernel, signed: bool, base: int = 10,
                uppercase: bool = False, showpos: bool = False, showbase: bool = False) -> str:
    """Render a limb array as text.

    Hexadecimal shows the raw bit pattern, so negative signed values never
    get a minus sign. Decimal shows signed negative values as ``-magnitude``.
    """
    if base == 16:
        text = limbs_to_hex(limbs, kernel.limb_bits)
        prefix = "0x" if showbase else ""
        if uppercase:
            return prefix.upper() + text.upper()
        return prefix + text
    if base != 10:
        raise ValueError(f"base must be 10 or 16, got {base!r}")

    negative = signed and kernel.sign_bit(limbs)
    magnitude = kernel.negate(limbs) if negative else limbs
    chunk = _DEC_CHUNK[kernel.limb_bits]
    divisor = 10 ** chunk

    pieces = []
    while not kernel.is_zero(magnitude):
        magnitude, r = kernel.divmod_small(magnitude, divisor)
        pieces.append(r)
    if pieces:
        text = str(pieces[-1]) + "".join(f"{p:0{chunk}d}" for p in reversed(pieces[:-1]))
    else:
        text = "0"

    if negative:
        return "-" + text
    return "+" + text if showpos else text


def format_spec(limbs: np.ndarray, kernel: LimbKernel, signed: bool, spec: str) -> str:
    """Apply a ``[[fill]align][sign][#][width][type]`` format spec."""
    match = _FORMAT_SPEC.fullmatch(spec)
    if match is None:
        raise ValueError(f"invalid format specifier {spec!r}")
    kind = match["type"] or "d"
    text = format_text(
        limbs, kernel, signed,
        base=10 if kind == "d" else 16,
        uppercase=kind == "X",
        showpos=match["sign"] == "+",
        showbase=bool(match["alt"]) and kind != "d",
    )
    if match["width"]:
        align = match["align"] or ">"
        text = format(text, f"{match['fill'] or ' '}{align}{match['width']}")
    return text


def from_float(value: float, kernel: LimbKernel) -> np.ndarray:
    if not math.isfinite(value):
        raise MalformedInput(value, "not a finite number")
    return kernel.from_int(math.trunc(value))


def to_float(value: int) -> float:
    """Nearest double to `value`; magnitudes past the double range give +-inf."""
    try:
        return float(value)
    except OverflowError:
        return math.inf if value > 0 else -math.inf


def import_bits(chunks: Sequence[int], chunk_bits: int, msv_first: bool,
                kernel: LimbKernel) -> np.ndarray:
    arr = as_chunk_array(chunks, chunk_bits)
    if msv_first:
        arr = arr[::-1]
    if arr.size == 0:
        return kernel.zeros()
    return kernel.mask(fit(regroup(arr, kernel.limb_bits), kernel.count))


def export_bits(limbs: np.ndarray, chunk_bits: int, msv_first: bool,
                kernel: LimbKernel) -> list[int]:
    if chunk_bits not in LIMB_DTYPES:
        raise ValueError(f"chunk_bits must be one of {tuple(LIMB_DTYPES)}, got {chunk_bits!r}")
    count = -(-kernel.width // chunk_bits)
    chunks = fit(regroup(limbs, chunk_bits), count).tolist()
    return chunks[::-1] if msv_first else chunks

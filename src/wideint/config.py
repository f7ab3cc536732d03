from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Optional, Union

from .storage import DynamicStorage, InlineStorage

LIMB_WIDTHS = (8, 16, 32, 64)
DEFAULT_LIMB_BITS = 32
DEFAULT_KARATSUBA_THRESHOLD = 48
MIN_KARATSUBA_THRESHOLD = 4


@dataclass(frozen=True)
class WideIntConfig:
    """Type-level parameters of a fixed-width integer.

    Two configs that compare equal describe the same type; see
    :func:`wideint.wide_int.wide_int_type`.
    """

    width: int
    limb_bits: int = DEFAULT_LIMB_BITS
    signed: bool = False
    storage: Union[InlineStorage, DynamicStorage] = field(default_factory=InlineStorage)
    karatsuba_threshold: int = DEFAULT_KARATSUBA_THRESHOLD
    unroll_hint: Optional[int] = None
    float_interop: bool = True
    formatting: bool = True
    enable_64bit_limbs: bool = True

    def __post_init__(self):
        if not isinstance(self.width, int) or self.width < 1:
            raise ValueError(f"width must be a positive integer, got {self.width!r}")
        if self.limb_bits not in LIMB_WIDTHS:
            raise ValueError(f"limb_bits must be one of {LIMB_WIDTHS}, got {self.limb_bits!r}")
        if self.limb_bits == 64 and not self.enable_64bit_limbs:
            raise ValueError("64-bit limbs are disabled for this configuration")
        if self.karatsuba_threshold < MIN_KARATSUBA_THRESHOLD:
            raise ValueError(
                f"karatsuba_threshold must be at least {MIN_KARATSUBA_THRESHOLD} limbs")
        if self.unroll_hint is not None and self.unroll_hint < 1:
            raise ValueError("unroll_hint must be a positive limb count")
        if not hasattr(self.storage, "adopt"):
            raise ValueError(f"not a storage strategy: {self.storage!r}")

    @property
    def limb_count(self) -> int:
        return -(-self.width // self.limb_bits)

    def replace(self, **changes) -> WideIntConfig:
        return dataclasses.replace(self, **changes)

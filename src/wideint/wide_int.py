from __future__ import annotations

import functools
import logging
from typing import ClassVar, Sequence

import numpy as np

from . import conversion
from .config import DEFAULT_LIMB_BITS, WideIntConfig
from .core import LimbKernel, get_kernel

logger = logging.getLogger(__name__)


class WideInt:
    """Fixed-width integer with built-in integer semantics and wraparound.

    Concrete types come from :func:`wide_int_type`; each carries its
    :class:`WideIntConfig` and the limb kernel for that configuration.
    Values are immutable.
    """

    config: ClassVar[WideIntConfig]
    width: ClassVar[int]
    signed: ClassVar[bool]
    limb_bits: ClassVar[int]
    _kernel: ClassVar[LimbKernel]

    __slots__ = ("_limbs",)

    def __init__(self, value=0):
        if getattr(type(self), "_kernel", None) is None:
            raise TypeError("WideInt is abstract; create a concrete type with wide_int_type()")
        self._limbs = self.config.storage.adopt(self._convert(value))

    @classmethod
    def _convert(cls, value) -> np.ndarray:
        kernel = cls._kernel
        if isinstance(value, WideInt):
            if type(value) is cls:
                return value._limbs.copy()
            if value.limb_bits == cls.limb_bits:
                return kernel.resize(value._limbs, value.width, value.signed)
            return kernel.from_int(value.to_int())
        if isinstance(value, str):
            return conversion.parse_text(value, kernel)
        if isinstance(value, (float, np.floating)):
            if not cls.config.float_interop:
                raise TypeError(f"{cls.__name__} has float interoperability disabled")
            return conversion.from_float(float(value), kernel)
        if isinstance(value, (int, np.integer)):
            return kernel.from_int(int(value))
        raise TypeError(f"cannot convert {type(value).__name__} to {cls.__name__}")

    @classmethod
    def _from_limbs(cls, limbs: np.ndarray) -> WideInt:
        obj = object.__new__(cls)
        obj._limbs = cls.config.storage.adopt(limbs)
        return obj

    # class helpers

    @classmethod
    def from_limbs(cls, limbs: Sequence[int]) -> WideInt:
        """Build a value from its limbs, least significant first."""
        kernel = cls._kernel
        limbs = [int(limb) for limb in limbs]
        if len(limbs) != kernel.count:
            raise ValueError(f"{cls.__name__} has {kernel.count} limbs, got {len(limbs)}")
        if any(not 0 <= limb <= kernel.limb_max for limb in limbs):
            raise ValueError(f"limb out of range for {cls.limb_bits}-bit limbs")
        return cls._from_limbs(kernel.mask(np.array(limbs, dtype=kernel.dtype)))

    @classmethod
    def import_bits(cls, chunks: Sequence[int], chunk_bits: int = 8,
                    msv_first: bool = True) -> WideInt:
        return cls._from_limbs(conversion.import_bits(chunks, chunk_bits, msv_first, cls._kernel))

    @classmethod
    def from_bytes(cls, data: bytes, byteorder: str = "big") -> WideInt:
        if byteorder not in ("big", "little"):
            raise ValueError("byteorder must be either 'little' or 'big'")
        return cls.import_bits(bytes(data), 8, msv_first=byteorder == "big")

    @classmethod
    def min_value(cls) -> WideInt:
        if cls.signed:
            return cls._from_limbs(cls._kernel.shift_left(cls._kernel.from_int(1), cls.width - 1))
        return cls._from_limbs(cls._kernel.zeros())

    @classmethod
    def max_value(cls) -> WideInt:
        ones = cls._kernel.ones()
        if cls.signed:
            return cls._from_limbs(cls._kernel.shift_right(ones, 1))
        return cls._from_limbs(ones)

    @classmethod
    def unsigned_type(cls) -> type[WideInt]:
        return type_for_config(cls.config.replace(signed=False))

    @classmethod
    def signed_type(cls) -> type[WideInt]:
        return type_for_config(cls.config.replace(signed=True))

    @classmethod
    def with_width(cls, width: int) -> type[WideInt]:
        return type_for_config(cls.config.replace(width=width))

    # inspection

    @property
    def limbs(self) -> tuple[int, ...]:
        return tuple(self._limbs.tolist())

    def to_int(self) -> int:
        n = self._kernel.to_int(self._limbs)
        if self.signed and self._kernel.sign_bit(self._limbs):
            n -= 1 << self.width
        return n

    def is_negative(self) -> bool:
        return self.signed and self._kernel.sign_bit(self._limbs)

    def msb(self) -> int:
        """Index of the highest set bit of the raw pattern, 0 for zero."""
        return max(self._kernel.bit_length(self._limbs) - 1, 0)

    def lsb(self) -> int:
        """Index of the lowest set bit of the raw pattern, 0 for zero."""
        return self._kernel.trailing_zeros(self._limbs)

    def export_bits(self, chunk_bits: int = 8, msv_first: bool = True) -> list[int]:
        return conversion.export_bits(self._limbs, chunk_bits, msv_first, self._kernel)

    def to_bytes(self, byteorder: str = "big") -> bytes:
        if byteorder not in ("big", "little"):
            raise ValueError("byteorder must be either 'little' or 'big'")
        return bytes(self.export_bits(8, msv_first=byteorder == "big"))

    # operand handling

    def _coerce(self, other):
        if type(other) is type(self):
            return other._limbs
        if isinstance(other, WideInt):
            return None
        if isinstance(other, (int, np.integer)):
            return self._kernel.from_int(int(other))
        if isinstance(other, float) and self.config.float_interop:
            return conversion.from_float(other, self._kernel)
        return None

    def _binary(self, other, op, reflected=False):
        b = self._coerce(other)
        if b is None:
            return NotImplemented
        if reflected:
            return self._from_limbs(op(b, self._limbs))
        return self._from_limbs(op(self._limbs, b))

    def _magnitude(self, a: np.ndarray) -> tuple[np.ndarray, bool]:
        if self.signed and self._kernel.sign_bit(a):
            return self._kernel.negate(a), True
        return a, False

    def _mul(self, a: np.ndarray, b: np.ndarray) -> np.ndarray:
        kernel = self._kernel
        if not self.signed:
            return kernel.mul(a, b)
        a, neg_a = self._magnitude(a)
        b, neg_b = self._magnitude(b)
        product = kernel.mul(a, b)
        return kernel.negate(product) if neg_a != neg_b else product

    def _divmod(self, a: np.ndarray, b: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        kernel = self._kernel
        if not self.signed:
            return kernel.divmod(a, b)
        a, neg_a = self._magnitude(a)
        b, neg_b = self._magnitude(b)
        q, r = kernel.divmod(a, b)
        if neg_a != neg_b:
            q = kernel.negate(q)
        if neg_a:
            r = kernel.negate(r)
        return q, r

    def _div(self, a, b):
        return self._divmod(a, b)[0]

    def _mod(self, a, b):
        return self._divmod(a, b)[1]

    # arithmetic

    def __add__(self, other):
        return self._binary(other, self._kernel.add)

    __radd__ = __add__

    def __sub__(self, other):
        return self._binary(other, self._kernel.sub)

    def __rsub__(self, other):
        return self._binary(other, self._kernel.sub, reflected=True)

    def __mul__(self, other):
        return self._binary(other, self._mul)

    __rmul__ = __mul__

    def __floordiv__(self, other):
        """Integer division truncating toward zero."""
        return self._binary(other, self._div)

    def __rfloordiv__(self, other):
        return self._binary(other, self._div, reflected=True)

    __truediv__ = __floordiv__
    __rtruediv__ = __rfloordiv__

    def __mod__(self, other):
        """Remainder with the sign of the dividend."""
        return self._binary(other, self._mod)

    def __rmod__(self, other):
        return self._binary(other, self._mod, reflected=True)

    def __divmod__(self, other):
        b = self._coerce(other)
        if b is None:
            return NotImplemented
        q, r = self._divmod(self._limbs, b)
        return self._from_limbs(q), self._from_limbs(r)

    def __rdivmod__(self, other):
        b = self._coerce(other)
        if b is None:
            return NotImplemented
        q, r = self._divmod(b, self._limbs)
        return self._from_limbs(q), self._from_limbs(r)

    def __pow__(self, exponent, modulus=None):
        from . import number_theory

        if modulus is None:
            return number_theory.pow(self, exponent)
        return number_theory.powm(self, exponent, modulus)

    def __rpow__(self, base):
        if self._coerce(base) is None:
            return NotImplemented
        return type(self)(base) ** self

    def __neg__(self):
        return self._from_limbs(self._kernel.negate(self._limbs))

    def __pos__(self):
        return self

    def __abs__(self):
        magnitude, negative = self._magnitude(self._limbs)
        return self._from_limbs(magnitude) if negative else self

    def increment(self) -> WideInt:
        return self._from_limbs(self._kernel.add_int(self._limbs, 1))

    def decrement(self) -> WideInt:
        return self._from_limbs(self._kernel.add_int(self._limbs, -1))

    # bitwise

    def __and__(self, other):
        return self._binary(other, self._kernel.and_)

    __rand__ = __and__

    def __or__(self, other):
        return self._binary(other, self._kernel.or_)

    __ror__ = __or__

    def __xor__(self, other):
        return self._binary(other, self._kernel.xor)

    __rxor__ = __xor__

    def __invert__(self):
        return self._from_limbs(self._kernel.invert(self._limbs))

    @staticmethod
    def _shift_count(n):
        if isinstance(n, WideInt):
            n = n.to_int()
        elif isinstance(n, (int, np.integer)):
            n = int(n)
        else:
            return None
        if n < 0:
            raise ValueError("negative shift count")
        return n

    def __lshift__(self, n):
        n = self._shift_count(n)
        if n is None:
            return NotImplemented
        return self._from_limbs(self._kernel.shift_left(self._limbs, n))

    def __rshift__(self, n):
        """Arithmetic shift for signed types, logical for unsigned."""
        n = self._shift_count(n)
        if n is None:
            return NotImplemented
        return self._from_limbs(self._kernel.shift_right(self._limbs, n, arithmetic=self.signed))

    # comparison

    def _cmp(self, b: np.ndarray) -> int:
        kernel = self._kernel
        a = self._limbs
        if self.signed:
            neg_a = kernel.sign_bit(a)
            neg_b = kernel.sign_bit(b)
            if neg_a != neg_b:
                return -1 if neg_a else 1
        return kernel.compare(a, b)

    def _order(self, other):
        if type(other) is type(self):
            return self._cmp(other._limbs)
        if isinstance(other, WideInt):
            return NotImplemented
        if isinstance(other, (int, np.integer)) or (
                isinstance(other, float) and self.config.float_interop and other == other):
            if isinstance(other, np.integer):
                other = int(other)
            mine = self.to_int()
            return (mine > other) - (mine < other)
        return NotImplemented

    def __eq__(self, other):
        cmp = self._order(other)
        if cmp is NotImplemented:
            return cmp
        return cmp == 0

    def __ne__(self, other):
        cmp = self._order(other)
        if cmp is NotImplemented:
            return cmp
        return cmp != 0

    def __lt__(self, other):
        cmp = self._order(other)
        if cmp is NotImplemented:
            return cmp
        return cmp < 0

    def __le__(self, other):
        cmp = self._order(other)
        if cmp is NotImplemented:
            return cmp
        return cmp <= 0

    def __gt__(self, other):
        cmp = self._order(other)
        if cmp is NotImplemented:
            return cmp
        return cmp > 0

    def __ge__(self, other):
        cmp = self._order(other)
        if cmp is NotImplemented:
            return cmp
        return cmp >= 0

    def __hash__(self):
        return hash(self.to_int())

    # casts

    def __bool__(self):
        return not self._kernel.is_zero(self._limbs)

    def __int__(self):
        return self.to_int()

    __index__ = __int__

    def __float__(self):
        if not self.config.float_interop:
            raise TypeError(f"{type(self).__name__} has float interoperability disabled")
        return conversion.to_float(self.to_int())

    # text

    def _check_formatting(self):
        if not self.config.formatting:
            raise TypeError(f"{type(self).__name__} has text output disabled")

    def to_string(self, base: int = 10, uppercase: bool = False,
                  showpos: bool = False, showbase: bool = False) -> str:
        self._check_formatting()
        return conversion.format_text(self._limbs, self._kernel, self.signed, base=base,
                                      uppercase=uppercase, showpos=showpos, showbase=showbase)

    def __str__(self):
        return self.to_string()

    def __format__(self, spec):
        self._check_formatting()
        return conversion.format_spec(self._limbs, self._kernel, self.signed, spec)

    def __repr__(self):
        if not self.config.formatting:
            return object.__repr__(self)
        return f"{type(self).__name__}({self})"

    # values are immutable

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __reduce__(self):
        return _restore, (self.config, self.limbs)


def _restore(config: WideIntConfig, limbs: Sequence[int]) -> WideInt:
    return type_for_config(config).from_limbs(limbs)


@functools.lru_cache(maxsize=None)
def type_for_config(config: WideIntConfig) -> type[WideInt]:
    """The concrete WideInt type for `config`; equal configs give the same class."""
    kernel = get_kernel(config.width, config.limb_bits,
                        config.karatsuba_threshold, config.unroll_hint)
    name = f"{'int' if config.signed else 'uint'}{config.width}"
    cls = type(name, (WideInt,), {
        "__slots__": (),
        "__module__": __name__,
        "config": config,
        "width": config.width,
        "signed": config.signed,
        "limb_bits": config.limb_bits,
        "_kernel": kernel,
    })
    logger.debug("instantiated %s: %d x %d-bit limbs, storage=%s",
                 name, kernel.count, config.limb_bits, type(config.storage).__name__)
    return cls


def wide_int_type(width: int, limb_bits: int = DEFAULT_LIMB_BITS, signed: bool = False,
                  **options) -> type[WideInt]:
    """Fixed-width integer type of `width` bits.

    `options` are the remaining :class:`WideIntConfig` fields
    (``storage``, ``karatsuba_threshold``, ``unroll_hint``,
    ``float_interop``, ``formatting``, ``enable_64bit_limbs``).
    """
    return type_for_config(WideIntConfig(width, limb_bits, signed, **options))


uint128 = wide_int_type(128)
uint256 = wide_int_type(256)
uint512 = wide_int_type(512)
uint1024 = wide_int_type(1024)
uint2048 = wide_int_type(2048)
uint4096 = wide_int_type(4096)

int128 = wide_int_type(128, signed=True)
int256 = wide_int_type(256, signed=True)
int512 = wide_int_type(512, signed=True)
int1024 = wide_int_type(1024, signed=True)
int2048 = wide_int_type(2048, signed=True)
int4096 = wide_int_type(4096, signed=True)

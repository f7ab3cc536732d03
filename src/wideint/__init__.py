from .config import WideIntConfig
from .errors import DivisionByZero, MalformedInput, WideIntError
from .number_theory import cbrt, gcd, lcm, lsb, miller_rabin, msb, pow, powm, root, sqrt
from .prng import RandomEngine, UniformIntDistribution
from .storage import DynamicStorage, InlineStorage
from .wide_int import (
    WideInt,
    int128,
    int256,
    int512,
    int1024,
    int2048,
    int4096,
    type_for_config,
    uint128,
    uint256,
    uint512,
    uint1024,
    uint2048,
    uint4096,
    wide_int_type,
)

__all__ = [
    "DivisionByZero",
    "DynamicStorage",
    "InlineStorage",
    "MalformedInput",
    "RandomEngine",
    "UniformIntDistribution",
    "WideInt",
    "WideIntConfig",
    "WideIntError",
    "cbrt",
    "gcd",
    "int128",
    "int256",
    "int512",
    "int1024",
    "int2048",
    "int4096",
    "lcm",
    "lsb",
    "miller_rabin",
    "msb",
    "pow",
    "powm",
    "root",
    "sqrt",
    "type_for_config",
    "uint128",
    "uint256",
    "uint512",
    "uint1024",
    "uint2048",
    "uint4096",
    "wide_int_type",
]

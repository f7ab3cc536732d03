import copy
import pickle
import random
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from wideint import (
    DivisionByZero,
    DynamicStorage,
    WideInt,
    int128,
    int256,
    uint128,
    uint256,
    wide_int_type,
)


def wrap(n, width):
    return n & ((1 << width) - 1)


def to_signed(n, width):
    n = wrap(n, width)
    return n - (1 << width) if n >> (width - 1) else n


def tdiv(a, b):
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


def tmod(a, b):
    return a - b * tdiv(a, b)


CONFIGS = [
    pytest.param(64, 8, id="64bit-8"),
    pytest.param(96, 16, id="96bit-16"),
    pytest.param(256, 32, id="256bit-32"),
    pytest.param(200, 64, id="200bit-64"),
    pytest.param(100, 32, id="100bit-32"),
]


def test_add_1_1():
    assert (uint256(1) + uint256(1)).to_int() == 2


def test_add_basic():
    a, b = 10**70, 20**50
    assert (uint256(a) + uint256(b)).to_int() == a + b


def test_add_small_numbers():
    for a in range(0, 30):
        for b in range(0, 30):
            assert (uint128(a) + uint128(b)).to_int() == a + b


def test_sub_basic():
    a, b = 20**50, 10**50
    assert (uint256(a) - uint256(b)).to_int() == a - b


def test_mul_by_zero():
    assert (uint256(10**70) * uint256(0)).to_int() == 0


def test_mul_by_one():
    a = 10**70
    assert (uint256(a) * uint256(1)).to_int() == a


def test_repr():
    assert repr(uint256(42)) == "uint256(42)"
    assert repr(int128(-42)) == "int128(-42)"


def test_from_int_and_to_int_roundtrip():
    for v in [0, 1, 2**32 - 1, 2**32, 2**64, 10**70]:
        assert uint256(v).to_int() == v


def test_abstract_base():
    with pytest.raises(TypeError):
        WideInt(5)


@pytest.mark.parametrize("width,limb_bits", CONFIGS)
class TestUnsignedWraparound:
    def test_random_ops(self, width, limb_bits):
        T = wide_int_type(width, limb_bits)
        rng = random.Random(width * limb_bits)
        for _ in range(40):
            a = rng.getrandbits(width)
            b = rng.getrandbits(rng.randint(1, width)) or 1
            x, y = T(a), T(b)
            assert (x + y).to_int() == wrap(a + b, width)
            assert (x - y).to_int() == wrap(a - b, width)
            assert (y - x).to_int() == wrap(b - a, width)
            assert (x * y).to_int() == wrap(a * b, width)
            assert (x // y).to_int() == a // b
            assert (x % y).to_int() == a % b
            assert (x & y).to_int() == a & b
            assert (x | y).to_int() == a | b
            assert (x ^ y).to_int() == a ^ b
            assert (~x).to_int() == wrap(~a, width)
            assert (-x).to_int() == wrap(-a, width)

    def test_add_then_sub_is_identity(self, width, limb_bits):
        T = wide_int_type(width, limb_bits)
        rng = random.Random(1)
        for _ in range(20):
            a, b = T(rng.getrandbits(width)), T(rng.getrandbits(width))
            assert (a + b) - b == a

    def test_exact_division_recovers_factor(self, width, limb_bits):
        T = wide_int_type(width, limb_bits)
        rng = random.Random(2)
        for _ in range(20):
            a = rng.getrandbits(width // 2)
            b = rng.getrandbits(width // 2 - 1) or 1
            assert (T(a) * T(b)) / T(b) == T(a)

    def test_division_by_zero(self, width, limb_bits):
        T = wide_int_type(width, limb_bits)
        with pytest.raises(DivisionByZero):
            T(7) / T(0)
        with pytest.raises(ZeroDivisionError):
            T(7) % 0
        with pytest.raises(ZeroDivisionError):
            divmod(T(7), T(0))

    def test_bits_above_width_stay_clear(self, width, limb_bits):
        T = wide_int_type(width, limb_bits)
        top = T.max_value()
        assert top.to_int() == (1 << width) - 1
        assert (top + 1).to_int() == 0
        assert (top * top).to_int() == 1
        assert (top << 3).to_int() == wrap(((1 << width) - 1) << 3, width)


@pytest.mark.parametrize("width,limb_bits", CONFIGS)
def test_signed_random_ops(width, limb_bits):
    T = wide_int_type(width, limb_bits, signed=True)
    rng = random.Random(width + limb_bits)
    half = 1 << (width - 1)
    for _ in range(40):
        a = rng.randrange(-half, half)
        b = rng.randrange(-half, half) or -1
        x, y = T(a), T(b)
        assert (x + y).to_int() == to_signed(a + b, width)
        assert (x - y).to_int() == to_signed(a - b, width)
        assert (x * y).to_int() == to_signed(a * b, width)
        assert (x // y).to_int() == to_signed(tdiv(a, b), width)
        assert (x % y).to_int() == tmod(a, b)
        assert (x >> 3).to_int() == a >> 3
        assert (x << 5).to_int() == to_signed(a << 5, width)
        assert (x < y) == (a < b)
        assert (x >= y) == (a >= b)


class TestNegativeNumbers:
    def test_neg_construction(self):
        assert int256(-1).to_int() == -1
        assert int256(-10**70).to_int() == -(10**70)
        assert int256(0).to_int() == 0

    def test_neg_operator(self):
        assert (-int128(5)).to_int() == -5
        assert (-int128(-5)).to_int() == 5
        assert (-int128(0)).to_int() == 0

    def test_abs_operator(self):
        assert abs(int128(-5)).to_int() == 5
        assert abs(int128(5)).to_int() == 5
        assert abs(uint128(5)).to_int() == 5

    def test_add_neg_small_exhaustive(self):
        for a in range(-20, 21):
            for b in range(-20, 21):
                assert (int128(a) + int128(b)).to_int() == a + b

    def test_mul_neg(self):
        assert (int128(-3) * int128(7)).to_int() == -21
        assert (int128(3) * int128(-7)).to_int() == -21
        assert (int128(-3) * int128(-7)).to_int() == 21
        assert (int128(-3) * int128(0)).to_int() == 0

    def test_division_truncates_toward_zero(self):
        assert (int128(-7) // int128(2)).to_int() == -3
        assert (int128(7) // int128(-2)).to_int() == -3
        assert (int128(-7) // int128(-2)).to_int() == 3
        assert (int128(-7) / 2).to_int() == -3

    def test_remainder_takes_dividend_sign(self):
        assert (int128(-7) % int128(2)).to_int() == -1
        assert (int128(7) % int128(-2)).to_int() == 1
        assert (int128(-7) % int128(-2)).to_int() == -1

    def test_divmod_neg(self):
        for a in [-7, 7, -6, 6, -100, 100]:
            for b in [-3, 3, -2, 2, -1, 1]:
                q, r = divmod(int128(a), int128(b))
                assert q.to_int() == tdiv(a, b)
                assert r.to_int() == tmod(a, b)

    def test_min_divided_by_minus_one_wraps(self):
        low = int128.min_value()
        assert low // -1 == low
        assert low % -1 == 0

    def test_min_and_max(self):
        assert int128.min_value().to_int() == -(1 << 127)
        assert int128.max_value().to_int() == (1 << 127) - 1
        assert (int128.max_value() + 1) == int128.min_value()

    def test_arithmetic_shift(self):
        assert (int128(-8) >> 1).to_int() == -4
        assert (int128(-1) >> 500).to_int() == -1
        assert (int128(8) >> 500).to_int() == 0

    def test_unsigned_shift_is_logical(self):
        top = uint128(1) << 127
        assert (top >> 127).to_int() == 1


class TestComparison:
    def test_compare_small_exhaustive(self):
        for a in range(-15, 16):
            for b in range(-15, 16):
                ta, tb = int128(a), int128(b)
                assert (ta == tb) == (a == b)
                assert (ta != tb) == (a != b)
                assert (ta < tb) == (a < b)
                assert (ta <= tb) == (a <= b)
                assert (ta > tb) == (a > b)
                assert (ta >= tb) == (a >= b)

    def test_compare_random_large(self):
        random.seed(42)
        for _ in range(50):
            a = random.randint(-(1 << 200), 1 << 200)
            b = random.randint(-(1 << 200), 1 << 200)
            ta, tb = int256(a), int256(b)
            assert (ta == tb) == (a == b)
            assert (ta < tb) == (a < b)
            assert (ta > tb) == (a > b)

    def test_compare_with_builtin_int(self):
        assert uint128(5) == 5
        assert uint128(5) != 2**128 + 5
        assert int128(-1) < 0
        assert 3 < uint128(5)
        assert uint128(5) <= 5.5

    def test_mixed_types_rejected(self):
        with pytest.raises(TypeError):
            uint128(1) + uint256(1)
        with pytest.raises(TypeError):
            uint128(1) < uint256(1)
        assert uint128(1) != uint256(1)

    def test_hash_matches_int(self):
        assert hash(uint128(5)) == hash(5)
        assert {uint128(5): "x"}[5] == "x"
        assert hash(int128(-9)) == hash(-9)


class TestConstruction:
    def test_from_other_width_sign_extends(self):
        assert uint256(int128(-1)).to_int() == (1 << 256) - 1
        assert int256(int128(-5)).to_int() == -5

    def test_from_other_width_zero_extends(self):
        assert uint256(uint128((1 << 128) - 1)).to_int() == (1 << 128) - 1

    def test_from_other_width_truncates(self):
        assert uint128(uint256(2**200 + 7)).to_int() == 7

    def test_from_other_limb_width(self):
        T8 = wide_int_type(128, limb_bits=8)
        assert T8(int256(-2)).to_int() == (1 << 128) - 2
        assert uint256(T8(300)).to_int() == 300

    def test_from_numpy_integer(self):
        assert uint128(np.uint64(2**63)).to_int() == 2**63
        assert int128(np.int32(-4)).to_int() == -4

    def test_builtin_int_wraps(self):
        assert uint128(-1).to_int() == (1 << 128) - 1
        assert uint128(2**130 + 9).to_int() == 9
        assert int128(2**127).to_int() == -(2**127)

    def test_rejects_unsupported(self):
        with pytest.raises(TypeError):
            uint128([1, 2])

    def test_from_limbs(self):
        assert uint128.from_limbs([1, 0, 0, 0]).to_int() == 1
        assert uint128.from_limbs([0, 0, 0, 1]).to_int() == 1 << 96
        assert uint128(12345).limbs == (12345, 0, 0, 0)
        with pytest.raises(ValueError):
            uint128.from_limbs([1, 2])
        with pytest.raises(ValueError):
            uint128.from_limbs([1 << 32, 0, 0, 0])


class TestOperatorSurface:
    def test_reflected_with_int(self):
        assert (5 + uint128(3)).to_int() == 8
        assert (5 - uint128(3)).to_int() == 2
        assert (3 - uint128(5)).to_int() == (1 << 128) - 2
        assert (100 // uint128(7)).to_int() == 14
        assert (100 % uint128(7)).to_int() == 2
        assert (6 & uint128(3)).to_int() == 2

    def test_compound_assignment_rebinds(self):
        x = uint128(10)
        original = x
        x += 5
        x *= 2
        x <<= 1
        x -= 1
        assert x.to_int() == 59
        assert original.to_int() == 10

    def test_increment_decrement(self):
        assert uint128(9).increment().to_int() == 10
        assert uint128(0).decrement().to_int() == (1 << 128) - 1
        assert int128(-1).increment().to_int() == 0

    def test_pow_operators(self):
        assert (uint128(2) ** 5).to_int() == 32
        assert (uint128(2) ** uint128(4)).to_int() == 16
        assert (3 ** uint128(5)).to_int() == 243
        assert pow(uint128(4), 13, 497).to_int() == 445

    def test_pow_negative_exponent(self):
        with pytest.raises(ValueError):
            uint128(2) ** int128(-3)

    def test_negative_shift_count(self):
        with pytest.raises(ValueError):
            uint128(1) << -1
        with pytest.raises(ValueError):
            uint128(1) >> -1

    def test_shift_by_wide_int(self):
        assert (uint128(1) << uint128(70)).to_int() == 1 << 70

    def test_casts(self):
        assert int(uint128(77)) == 77
        assert list(range(10))[uint128(3)] == 3
        assert hex(uint128(255)) == "0xff"
        assert bool(uint128(0)) is False
        assert bool(int128(-1)) is True

    def test_float_operand(self):
        assert (uint128(10) + 2.9).to_int() == 12
        assert (uint128(10) * 1.5).to_int() == 10


class TestImmutability:
    def test_limbs_are_read_only(self):
        x = uint256(5)
        with pytest.raises(ValueError):
            x._limbs[0] = 1

    def test_operations_do_not_mutate(self):
        a = uint256(10**50)
        before = a.limbs
        _ = a + 1, a * 3, a << 7, -a, ~a, a // 3
        assert a.limbs == before

    def test_copy_and_pickle(self):
        x = int256(-123456789)
        assert copy.copy(x) is x
        assert copy.deepcopy(x) is x
        assert pickle.loads(pickle.dumps(x)) == x
        assert type(pickle.loads(pickle.dumps(x))) is int256

    def test_concurrent_readers(self):
        a = uint256(3**150)
        b = uint256(7**60)
        expected = (a * b + a // b).to_int()
        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(lambda _: (a * b + a // b).to_int(), range(16)))
        assert results == [expected] * 16


class TestStorage:
    def test_dynamic_storage_allocates_once_per_value(self):
        calls = []

        def allocator(shape, dtype):
            calls.append(shape)
            return np.empty(shape, dtype=dtype)

        T = wide_int_type(128, storage=DynamicStorage(allocator))
        a = T(5)
        assert calls == [(4,)]
        b = a + 1
        assert len(calls) == 2
        assert not np.shares_memory(a._limbs, b._limbs)
        assert b.to_int() == 6

    def test_storage_strategies_agree(self):
        T = wide_int_type(256, storage=DynamicStorage())
        a, b = 3**100, 5**70
        assert (T(a) * T(b)).to_int() == (uint256(a) * uint256(b)).to_int()
        assert T is not uint256

    def test_bad_allocator(self):
        T = wide_int_type(128, storage=DynamicStorage(lambda shape, dtype: np.empty(3, dtype)))
        with pytest.raises(ValueError):
            T(1)


class TestKnownValues:
    A = "0xF4DF741DE58BCB2F37F18372026EF9CBCFC456CB80AF54D53BDEED78410065DE"
    B = "0x166D63E0202B3D90ECCEAA046341AB504658F55B974A7FD63733ECF89DD0DF75"

    def test_256bit_product_and_quotient(self):
        a, b = uint256(self.A), uint256(self.B)
        assert a * b == uint256("0xE491A360C57EB4306C61F9A04F7F7D99BE3676AAD2D71C5592D5AE70F84AF076")
        assert a / b == uint256(0xA)

    @pytest.mark.parametrize("limb_bits", [8, 16, 32, 64])
    def test_256bit_scenario_every_limb_width(self, limb_bits):
        T = wide_int_type(256, limb_bits)
        a, b = T(self.A), T(self.B)
        assert (a * b).to_int() == (int(self.A, 16) * int(self.B, 16)) % (1 << 256)
        assert (a // b).to_int() == 0xA

    def test_48bit_matches_masked_64bit(self):
        from wideint import RandomEngine

        T = wide_int_type(48)
        mask48 = (1 << 48) - 1
        mask64 = (1 << 64) - 1
        engine = RandomEngine(48)
        for _ in range(100):
            a = engine() & mask48
            b = engine() & mask48
            x, y = T(a), T(b)
            assert (x + y).to_int() == ((a + b) & mask64) & mask48
            assert (x - y).to_int() == ((a - b) & mask64) & mask48
            assert (x * y).to_int() == ((a * b) & mask64) & mask48
            if b:
                assert (x / y).to_int() == (a // b) & mask48

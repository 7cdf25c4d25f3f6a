"""Tests for discipline.operations.factorize."""

import math

import pytest

from discipline.core.errors import (
    AllocationError,
    ConversionError,
    InjectedTestError,
    RangeError,
    WidthOverflowError,
)
from discipline.operations.factorize import (
    DISABLED,
    FactorRecord,
    FactorSequence,
    UnluckyInjection,
    factorize,
    to_unsigned,
)

# first twelve primes, skipping the unlucky 5
TWELVE_PRIMES = (2, 3, 7, 11, 13, 17, 19, 23, 29, 31, 37, 41)


def _factors(n, pool, **kwargs):
    with factorize(n, pool=pool, **kwargs) as factors:
        return factors.to_list()


class TestFactorize:
    @pytest.mark.parametrize(
        "n, expected",
        [
            (2, [(2, 1)]),
            (12, [(2, 2), (3, 1)]),
            (9, [(3, 2)]),
            (97, [(97, 1)]),
            (2 * 3 * 7 * 7, [(2, 1), (3, 1), (7, 2)]),
            (2**4 * 3**6, [(2, 4), (3, 6)]),
            (1_000_003 * 2, [(2, 1), (1_000_003, 1)]),
        ],
    )
    def test_factorization(self, pool, n, expected):
        assert _factors(n, pool) == expected
        assert pool.live_count == 0

    def test_returns_factor_sequence_of_records(self, pool):
        factors = factorize(12, pool=pool)
        assert isinstance(factors, FactorSequence)
        assert factors[0] == FactorRecord(factor=2, multiplicity=2)
        assert factors[1].multiplicity == 1
        assert factors == [(2, 2), (3, 1)]
        factors.release()
        assert pool.live_count == 0

    def test_only_result_handles_live_on_success(self, pool):
        factors = factorize(2 * 3 * 7, pool=pool)
        reachable = {handle.ident for handle in factors.owned_handles()}
        assert reachable == {handle.ident for handle in pool.live_handles()}
        factors.release()

    def test_sequence_is_trimmed(self, pool):
        with factorize(12, pool=pool) as factors:
            assert factors.capacity == len(factors) == 2

    def test_product_round_trip(self, pool):
        n = 2**3 * 3**2 * 7 * 11**2 * 13
        factors = _factors(n, pool)
        assert math.prod(p**e for p, e in factors) == n

    def test_drop_leftover(self, pool, settings):
        gap = settings.model_copy(update={"include_leftover": False})
        assert _factors(12, pool, settings=gap) == [(2, 2)]
        assert _factors(97, pool, settings=gap) == []
        assert pool.live_count == 0


class TestRange:
    @pytest.mark.parametrize("n", [0, 1, False, True])
    def test_zero_and_one(self, pool, n):
        with pytest.raises(RangeError, match="cannot factorize one or zero"):
            factorize(n, pool=pool)
        assert pool.acquired_total == 0


class TestConversion:
    @pytest.mark.parametrize("value", [12.0, "12", None, [12]])
    def test_non_integers_rejected(self, pool, value):
        with pytest.raises(ConversionError, match="integer argument expected"):
            factorize(value, pool=pool)
        assert pool.acquired_total == 0

    def test_index_protocol_accepted(self, pool):
        class Twelve:
            def __index__(self):
                return 12

        assert _factors(Twelve(), pool) == [(2, 2), (3, 1)]

    def test_wide_values_wrap(self, pool):
        assert _factors(2**64 + 12, pool) == [(2, 2), (3, 1)]

    def test_negative_values_wrap(self):
        assert to_unsigned(-1) == 2**64 - 1

    def test_overflow_when_masking_disabled(self, pool, settings):
        strict = settings.model_copy(update={"mask_overflow": False})
        with pytest.raises(WidthOverflowError) as exc_info:
            factorize(2**64, pool=pool, settings=strict)
        assert exc_info.value.width == 64
        assert isinstance(exc_info.value, OverflowError)

    def test_narrow_width(self):
        assert to_unsigned(0x1FF, width=8) == 0xFF
        with pytest.raises(WidthOverflowError):
            to_unsigned(256, width=8, mask=False)

    def test_wrap_to_zero_is_a_range_error(self, pool):
        with pytest.raises(RangeError):
            factorize(2**64, pool=pool)


class TestUnluckyInjection:
    def test_unlucky_factor(self, pool):
        with pytest.raises(InjectedTestError, match="unlucky factor 5") as exc_info:
            factorize(10, pool=pool)
        assert exc_info.value.hook == "unlucky_factor"
        assert exc_info.value.context.operation == "factorize"
        assert pool.live_count == 0

    def test_unlucky_power(self, pool):
        with pytest.raises(InjectedTestError, match="unlucky power 5") as exc_info:
            factorize(32, pool=pool)
        assert exc_info.value.hook == "unlucky_power"
        assert pool.live_count == 0

    def test_failure_after_records_releases_them(self, pool):
        """2 and 3 are recorded before 5 fails; all of it is released."""
        with pytest.raises(InjectedTestError):
            factorize(2 * 3 * 5 * 7, pool=pool)
        assert pool.acquired_total == 3
        assert pool.released_total == 3

    def test_disabled(self, pool):
        assert _factors(10, pool, injection=DISABLED) == [(2, 1), (5, 1)]
        assert _factors(32, pool, injection=DISABLED) == [(2, 5)]

    def test_disabled_through_settings(self, pool, settings):
        quiet = settings.model_copy(update={"inject_unlucky": False})
        assert _factors(10, pool, settings=quiet) == [(2, 1), (5, 1)]

    def test_custom_value(self, pool):
        injection = UnluckyInjection(value=3)
        with pytest.raises(InjectedTestError, match="unlucky factor 3"):
            factorize(12, pool=pool, injection=injection)
        assert _factors(10, pool, injection=injection) == [(2, 1), (5, 1)]

    def test_from_settings(self, settings):
        injection = UnluckyInjection.from_settings(settings.model_copy(update={"unlucky_value": 7}))
        assert injection == UnluckyInjection(value=7, enabled=True)


class TestGrowth:
    def test_more_factors_than_initial_capacity(self, pool):
        n = math.prod(TWELVE_PRIMES)
        factors = _factors(n, pool)
        assert factors == [(p, 1) for p in TWELVE_PRIMES]
        # initial slab + 12 records + one growth + the final trim
        assert pool.acquired_total == 1 + 12 + 1 + 1
        assert pool.live_count == 0

    def test_small_growth_step(self, pool, settings):
        tiny = settings.model_copy(update={"initial_capacity": 1, "growth_step": 1})
        n = math.prod(TWELVE_PRIMES[:4])
        assert _factors(n, pool, settings=tiny) == [(p, 1) for p in TWELVE_PRIMES[:4]]
        # 1 slab + 4 records + 3 growths, already exact so no trim
        assert pool.acquired_total == 1 + 4 + 3


class TestReleaseOnFailure:
    """Failing the k-th acquisition never leaks and never double-releases."""

    @pytest.mark.parametrize("n", [12, math.prod(TWELVE_PRIMES)])
    def test_allocation_failure_at_each_step(self, pool, n):
        with factorize(n, pool=pool):
            total = pool.acquired_total
        for k in range(1, total + 1):
            before = pool.stats()
            with pool.failing_at(k):
                with pytest.raises(AllocationError):
                    factorize(n, pool=pool)
            after = pool.stats()
            assert after.live == 0
            assert after.acquired - before.acquired == after.released - before.released == k - 1

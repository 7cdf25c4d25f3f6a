"""
factorize - prime factorization by trial division.

Candidates are 2, then 3, 5, 7, ... (the increment is 1 once, then 2). Each
candidate that divides the remaining value is divided out completely and
recorded with its multiplicity. Records are acquired as owned handles and
appended to a GrowableSequence inside a ScopedBuilder, so a failure at any
point (a record acquisition, a growth step, the final trim, or the unlucky
test hook) releases the partial sequence and every stored record.

Trial division stops once ``factor * factor`` exceeds the remaining value.
Whatever is left above 1 at that point is prime and is appended as
``(remaining, 1)``; ``include_leftover=False`` drops it, reproducing the
older behavior for comparison.

Input conversion behaves like an unchecked unsigned 64-bit conversion: any
``__index__``-capable value is accepted and wider values wrap modulo 2**64
without error. This is a known gap; ``mask_overflow=False`` turns it into a
WidthOverflowError.

Examples:
    >>> from discipline.core.handles import ResourcePool
    >>> pool = ResourcePool()
    >>> with factorize(12, pool=pool) as factors:
    ...     factors.to_list()
    [(2, 2), (3, 1)]
    >>> pool.live_count
    0
"""

from __future__ import annotations

import operator
from dataclasses import dataclass
from typing import Any, NamedTuple

from discipline.core.builder import ScopedBuilder
from discipline.core.errors import (
    ConversionError,
    InjectedTestError,
    RangeError,
    WidthOverflowError,
)
from discipline.core.growable import GrowableSequence, SealedSequence
from discipline.core.handles import ResourcePool, get_default_pool
from discipline.core.logging import get_logger
from discipline.core.settings import DisciplineSettings, get_settings

logger = get_logger(__name__)


class FactorRecord(NamedTuple):
    factor: int
    multiplicity: int


class FactorSequence(SealedSequence[FactorRecord]):
    """Sealed sequence of factor records returned by factorize."""

    def to_list(self) -> list[tuple[int, int]]:
        return [tuple(record) for record in self]


@dataclass(frozen=True)
class UnluckyInjection:
    """Test hook: fail when a factor or a multiplicity equals ``value``.

    Exists only to drive the unwind path from the middle of a real
    factorization; it is not a rule about numbers.
    """

    value: int = 5
    enabled: bool = True

    @classmethod
    def from_settings(cls, settings: DisciplineSettings) -> UnluckyInjection:
        return cls(value=settings.unlucky_value, enabled=settings.inject_unlucky)

    def check(self, factor: int, multiplicity: int) -> None:
        if not self.enabled:
            return
        if factor == self.value:
            raise InjectedTestError(f"unlucky factor {self.value}", hook="unlucky_factor")
        if multiplicity == self.value:
            raise InjectedTestError(f"unlucky power {self.value}", hook="unlucky_power")


DISABLED = UnluckyInjection(enabled=False)


def to_unsigned(value: Any, *, width: int = 64, mask: bool = True) -> int:
    """Convert ``value`` to an unsigned integer of ``width`` bits.

    With ``mask`` (the default) out-of-range values wrap silently, negative
    ones included.
    """
    try:
        n = operator.index(value)
    except TypeError as exc:
        raise ConversionError(
            f"integer argument expected, got {type(value).__name__}", cause=exc
        ) from exc
    limit = 1 << width
    if 0 <= n < limit:
        return n
    if not mask:
        raise WidthOverflowError(n, width)
    return n & (limit - 1)


def _record(
    builder: ScopedBuilder,
    sequence: GrowableSequence[FactorRecord],
    injection: UnluckyInjection,
    factor: int,
    multiplicity: int,
) -> None:
    injection.check(factor, multiplicity)
    record = builder.own(builder.pool.acquire(FactorRecord(factor, multiplicity)))
    builder.transfer(sequence.append, record)


def factorize(
    n: Any,
    *,
    pool: ResourcePool | None = None,
    settings: DisciplineSettings | None = None,
    injection: UnluckyInjection | None = None,
) -> FactorSequence:
    """Factorize an unsigned integer >= 2 into (prime, multiplicity) records.

    Args:
        n: Integer (anything supporting ``__index__``)
        pool: Pool to acquire from (default: the process-wide pool)
        settings: Settings override (default: cached settings)
        injection: Unlucky-value test hook (default: from settings)

    Returns:
        A FactorSequence the caller now owns; release it when done.

    Raises:
        ConversionError: ``n`` is not an integer
        WidthOverflowError: ``n`` is too wide and masking is disabled
        RangeError: ``n`` is 0 or 1
        InjectedTestError: the unlucky test hook fired
    """
    settings = settings or get_settings()
    pool = pool or get_default_pool()
    injection = injection or UnluckyInjection.from_settings(settings)

    remaining = to_unsigned(n, width=settings.integer_width, mask=settings.mask_overflow)
    if remaining < 2:
        raise RangeError("cannot factorize one or zero").with_context(
            operation="factorize", value=remaining
        )

    with ScopedBuilder(pool, operation="factorize") as builder:
        sequence = builder.construct(
            GrowableSequence(
                pool,
                initial_capacity=settings.initial_capacity,
                growth_step=settings.growth_step,
                sealed_type=FactorSequence,
            )
        )
        factor, step = 2, 1
        while factor * factor <= remaining:
            if remaining % factor == 0:
                multiplicity = 0
                while remaining % factor == 0:
                    remaining //= factor
                    multiplicity += 1
                builder.acquire(_record, builder, sequence, injection, factor, multiplicity)
            factor += step
            step = 2
        if remaining > 1 and settings.include_leftover:
            builder.acquire(_record, builder, sequence, injection, remaining, 1)
        factors = builder.commit()

    logger.debug("factorize.done", records=len(factors))
    return factors


__all__ = [
    "FactorRecord",
    "FactorSequence",
    "UnluckyInjection",
    "DISABLED",
    "to_unsigned",
    "factorize",
]

"""
makedict - build a mapping from a sequence of (key, value) pairs.

The mapping is assembled inside a ScopedBuilder: each pair is validated, its
key and value are acquired as owned handles and then transferred into the
mapping. Any failure releases everything inserted so far together with the
mapping shell, so the caller either receives a complete mapping or nothing.

Validation, in order, failing fast:

1. ``message`` must be a str (argument parsing, before anything else)
2. a diagnostic line ``makedict says: <message>`` is written (not rolled back)
3. ``pairs`` must be tuple-shaped                  -> ShapeError
4. each element must be a tuple-shaped 2-sequence  -> ShapeError
5. neither element may be the ``ExceptMe`` sentinel -> ForbiddenValueError

Examples:
    >>> from discipline.core.handles import ResourcePool
    >>> pool = ResourcePool()
    >>> mapping = make_mapping([("a", 1), ("b", 2)], "hello", pool=pool)
    makedict says: hello
    >>> mapping.to_dict()
    {'a': 1, 'b': 2}
    >>> mapping.release()
    >>> pool.live_count
    0
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from discipline.core.builder import ScopedBuilder
from discipline.core.errors import DisciplineError, ForbiddenValueError, ShapeError
from discipline.core.handles import Borrowed, ResourcePool, get_default_pool
from discipline.core.logging import get_logger
from discipline.core.mapping import OwnedMapping
from discipline.core.settings import DisciplineSettings, get_settings

logger = get_logger(__name__)


class ExceptMe:
    """sentinel used to trigger exception in makedict"""

    def __init__(self) -> None:
        raise TypeError("ExceptMe is a sentinel and cannot be instantiated")


def _is_tuple_shaped(obj: Any) -> bool:
    return isinstance(obj, (tuple, list))


def _insert_pair(
    builder: ScopedBuilder,
    mapping: OwnedMapping[Any, Any],
    item: Borrowed[Any],
) -> None:
    pair = item.value
    if not _is_tuple_shaped(pair) or len(pair) != 2:
        raise ShapeError("expecting a 2-tuple")
    first, second = Borrowed(pair[0]), Borrowed(pair[1])
    if first.value is ExceptMe or second.value is ExceptMe:
        raise ForbiddenValueError("forbidden value found", value=ExceptMe)
    key = builder.own(builder.pool.acquire(first.value))
    value = builder.own(builder.pool.acquire(second.value))
    builder.transfer(mapping.insert, key, value)


def make_mapping(
    pairs: Any,
    message: str,
    *,
    pool: ResourcePool | None = None,
    sink: Callable[[str], None] | None = None,
    settings: DisciplineSettings | None = None,
) -> OwnedMapping[Any, Any]:
    """Make a mapping from a tuple of (key, value) pairs.

    Args:
        pairs: Tuple (or list) of 2-element tuples
        message: Text echoed on the diagnostic line before validation
        pool: Pool to acquire from (default: the process-wide pool)
        sink: Callable receiving the diagnostic line (default: print)
        settings: Settings override (default: cached settings)

    Returns:
        An OwnedMapping the caller now owns; release it when done.

    Raises:
        ShapeError: ``message`` is not a str, ``pairs`` is not a tuple, or an
            element is not a 2-tuple
        ForbiddenValueError: a key or value is ``ExceptMe``
    """
    if not isinstance(message, str):
        raise ShapeError("expecting a str message").with_context(operation="makedict")
    pool = pool or get_default_pool()
    settings = settings or get_settings()
    emit = sink or print
    emit(f"{settings.diagnostic_prefix}{message}")
    logger.debug("makedict.start", pool=pool.name)

    if not _is_tuple_shaped(pairs):
        raise ShapeError("expecting a tuple").with_context(operation="makedict")

    with ScopedBuilder(pool, operation="makedict") as builder:
        mapping = builder.construct(OwnedMapping(pool))
        for index, item in enumerate(pairs):
            try:
                builder.acquire(_insert_pair, builder, mapping, Borrowed(item))
            except DisciplineError as exc:
                exc.with_context(index=index)
                raise
        return builder.commit()


makedict = make_mapping


__all__ = ["ExceptMe", "make_mapping", "makedict"]

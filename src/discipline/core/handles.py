"""
Owned handles, borrowed references and the pool that issues them.

A ``ResourcePool`` plays the part of the host environment: it hands out
lifetime-tracked handles (``acquire``), takes them back exactly once
(``release``) and counts both, so a test can assert that a failing call left
the pool exactly where it found it.

Ownership is carried by the type:

- ``Owned[T]`` is a handle the holder must eventually release (or hand on).
- ``Borrowed[T]`` is a read-only view. It has no ``release`` and the pool
  refuses it, so releasing a borrowed reference fails loudly instead of
  corrupting the count.

Architecture:
    ::

        ResourcePool
        ┌──────────────────────────────────────────────────────────┐
        │ acquire(value) ──> Owned[T]   (live += 1)                 │
        │ release(Owned) ──> None       (live -= 1, exactly once)   │
        │ borrow(value)  ──> Borrowed[T] (no accounting)            │
        │                                                           │
        │ fail_on / failing_at(k): the k-th acquisition raises      │
        │ AllocationError, to drive every failure path in tests     │
        └──────────────────────────────────────────────────────────┘

Examples:
    >>> pool = ResourcePool()
    >>> handle = pool.acquire("payload")
    >>> pool.live_count
    1
    >>> handle.release()
    >>> pool.live_count
    0
    >>> handle.release()
    Traceback (most recent call last):
    ...
    discipline.core.errors.DoubleReleaseError: handle #1 released twice

Tags:
    ownership, reference-counting, resource-lifetime, discipline
"""

from __future__ import annotations

import itertools
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

from discipline.core.errors import (
    AllocationError,
    DoubleReleaseError,
    LifetimeError,
    ReleaseBorrowedError,
)

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


@runtime_checkable
class Releasable(Protocol):
    """Anything a builder can register and later release exactly once."""

    @property
    def alive(self) -> bool: ...

    def release(self) -> None: ...


class Owned(Generic[T]):
    """An owned handle issued by a ResourcePool.

    The holder is responsible for releasing it, either directly or by
    handing it to a composite that takes over the responsibility.
    """

    __slots__ = ("_pool", "_ident", "_value", "_alive")

    def __init__(self, pool: ResourcePool, ident: int, value: T):
        self._pool = pool
        self._ident = ident
        self._value = value
        self._alive = True

    @property
    def ident(self) -> int:
        return self._ident

    @property
    def value(self) -> T:
        return self._value

    @property
    def alive(self) -> bool:
        return self._alive

    @property
    def pool(self) -> ResourcePool:
        return self._pool

    def borrow(self) -> Borrowed[T]:
        """Return a borrowed view of the value; the caller must not release it."""
        if not self._alive:
            raise LifetimeError(f"handle #{self._ident} borrowed after release")
        return Borrowed(self._value)

    def release(self) -> None:
        self._pool.release(self)

    def __repr__(self) -> str:
        state = "live" if self._alive else "released"
        return f"Owned(#{self._ident}, {self._value!r}, {state})"


@dataclass(frozen=True, slots=True)
class Borrowed(Generic[T_co]):
    """A read-only reference the current context does not own."""

    value: T_co


@dataclass(frozen=True)
class PoolStats:
    """Snapshot of a pool's counters."""

    acquired: int
    released: int
    live: int


class ResourcePool:
    """Issues and reclaims owned handles, counting both.

    Thread-safe: one pool may be shared by concurrent callers, while each
    construction keeps its own bookkeeping in its ScopedBuilder.

    Args:
        name: Label used in logs and reprs
        fail_on: 1-based acquisition number that raises AllocationError
            instead of acquiring (one-shot)
    """

    def __init__(self, name: str = "pool", *, fail_on: int | None = None):
        self.name = name
        self._fail_on = fail_on
        self._ids = itertools.count(1)
        self._live: dict[int, Owned[Any]] = {}
        self._acquired = 0
        self._released = 0
        self._lock = threading.RLock()

    # ── Acquire / release ───────────────────────────────────────

    def acquire(self, value: T) -> Owned[T]:
        """Acquire an owned handle on ``value``.

        Raises:
            AllocationError: If fault injection targets this acquisition
        """
        with self._lock:
            if self._fail_on is not None and self._acquired + 1 >= self._fail_on:
                attempt = self._acquired + 1
                self._fail_on = None
                raise AllocationError(
                    f"injected allocation failure at acquisition {attempt}"
                ).with_context(pool=self.name, attempt=attempt)
            handle = Owned(self, next(self._ids), value)
            self._live[handle.ident] = handle
            self._acquired += 1
            return handle

    def release(self, handle: Owned[Any]) -> None:
        """Release an owned handle exactly once.

        Raises:
            ReleaseBorrowedError: If given a borrowed reference
            LifetimeError: If the handle was issued by another pool
            DoubleReleaseError: If the handle was already released
        """
        if isinstance(handle, Borrowed):
            raise ReleaseBorrowedError("borrowed references must not be released")
        if not isinstance(handle, Owned):
            raise LifetimeError(f"not an owned handle: {handle!r}")
        if handle.pool is not self:
            raise LifetimeError(
                f"handle #{handle.ident} belongs to pool {handle.pool.name!r}, not {self.name!r}"
            )
        with self._lock:
            if not handle._alive:
                raise DoubleReleaseError(handle.ident)
            handle._alive = False
            del self._live[handle.ident]
            self._released += 1

    def borrow(self, value: T) -> Borrowed[T]:
        """Wrap a value the caller does not own."""
        return Borrowed(value)

    # ── Introspection ───────────────────────────────────────────

    @property
    def live_count(self) -> int:
        with self._lock:
            return len(self._live)

    @property
    def acquired_total(self) -> int:
        with self._lock:
            return self._acquired

    @property
    def released_total(self) -> int:
        with self._lock:
            return self._released

    def stats(self) -> PoolStats:
        with self._lock:
            return PoolStats(self._acquired, self._released, len(self._live))

    def live_handles(self) -> list[Owned[Any]]:
        """List live handles in acquisition order."""
        with self._lock:
            return list(self._live.values())

    # ── Fault injection ─────────────────────────────────────────

    @property
    def fail_on(self) -> int | None:
        return self._fail_on

    @contextmanager
    def failing_at(self, k: int) -> Iterator[ResourcePool]:
        """Make the k-th acquisition from now fail, for the duration of the block."""
        if k < 1:
            raise ValueError("k must be >= 1")
        with self._lock:
            previous = self._fail_on
            self._fail_on = self._acquired + k
        try:
            yield self
        finally:
            with self._lock:
                self._fail_on = previous

    def __repr__(self) -> str:
        stats = self.stats()
        return f"ResourcePool({self.name!r}, live={stats.live}, acquired={stats.acquired})"


# ── Default pool ─────────────────────────────────────────────────────────

_default_pool: ResourcePool | None = None
_default_lock = threading.Lock()


def get_default_pool() -> ResourcePool:
    """Get (or create) the process-wide default pool."""
    global _default_pool
    with _default_lock:
        if _default_pool is None:
            _default_pool = ResourcePool("default")
        return _default_pool


def reset_default_pool() -> ResourcePool:
    """Replace the default pool with a fresh one and return it."""
    global _default_pool
    with _default_lock:
        _default_pool = ResourcePool("default")
        return _default_pool


__all__ = [
    "Releasable",
    "Owned",
    "Borrowed",
    "PoolStats",
    "ResourcePool",
    "get_default_pool",
    "reset_default_pool",
]

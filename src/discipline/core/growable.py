"""
Growable output sequence with a fixed growth increment.

``GrowableSequence`` is the composite-under-construction for operations that
produce a variable number of owned records. Its backing storage is a
``Slab`` of fixed capacity, acquired from the pool like any other resource:

- it starts with ``initial_capacity`` slots
- when ``length == capacity`` it grows by ``growth_step`` slots (a fixed
  increment, not doubling) before appending
- ``finish()`` trims the slab to the exact length and returns an immutable
  ``SealedSequence`` that takes over the slab and every record

Growth and trimming acquire the new slab before giving up the old one, so a
failed acquisition leaves the sequence exactly as it was, still owned by the
builder and still releasable as a unit.

Invariants:
    - ``0 <= length <= capacity``
    - slots at ``length`` and beyond are empty and never exposed
    - after ``finish()`` the sequence owns nothing and reports ``alive=False``

Examples:
    >>> from discipline.core.handles import ResourcePool
    >>> pool = ResourcePool()
    >>> seq = GrowableSequence(pool, initial_capacity=2, growth_step=2)
    >>> for n in range(3):
    ...     seq.append(pool.acquire(n))
    >>> seq.capacity, seq.growth_events
    (4, [4])
    >>> sealed = seq.finish()
    >>> list(sealed), sealed.capacity
    ([0, 1, 2], 3)
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Any, Generic, TypeVar, overload

from discipline.core.errors import ConfigError, DoubleReleaseError, LifetimeError
from discipline.core.handles import Owned, ResourcePool
from discipline.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class Slab(Generic[T]):
    """Fixed-capacity backing storage of owned handles."""

    __slots__ = ("slots",)

    def __init__(self, capacity: int):
        self.slots: list[Owned[T] | None] = [None] * capacity

    @property
    def capacity(self) -> int:
        return len(self.slots)

    def __repr__(self) -> str:
        return f"Slab(capacity={self.capacity})"


def _move(pool: ResourcePool, source: Owned[Slab[T]], length: int, capacity: int) -> Owned[Slab[T]]:
    """Acquire a slab of ``capacity`` and move the first ``length`` slots into it.

    The source slab is released only after the target exists.
    """
    target = pool.acquire(Slab(capacity))
    target.value.slots[:length] = source.value.slots[:length]
    source.release()
    return target


class GrowableSequence(Generic[T]):
    """Append-only sequence of owned handles, grown in fixed increments."""

    def __init__(
        self,
        pool: ResourcePool,
        *,
        initial_capacity: int = 10,
        growth_step: int = 10,
        sealed_type: type[SealedSequence[T]] | None = None,
    ):
        if initial_capacity < 1 or growth_step < 1:
            raise ConfigError("initial_capacity and growth_step must be >= 1")
        self._pool = pool
        self._growth_step = growth_step
        self._sealed_type = sealed_type or SealedSequence
        self._slab: Owned[Slab[T]] | None = pool.acquire(Slab(initial_capacity))
        self._length = 0
        self.growth_events: list[int] = []

    @property
    def alive(self) -> bool:
        return self._slab is not None and self._slab.alive

    @property
    def capacity(self) -> int:
        return self._storage().capacity

    def __len__(self) -> int:
        return self._length

    def append(self, item: Owned[T]) -> None:
        """Take ownership of ``item``; on failure the caller keeps it."""
        storage = self._storage()
        if self._length == storage.capacity:
            self._grow()
            storage = self._storage()
        storage.slots[self._length] = item
        self._length += 1

    def _grow(self) -> None:
        slab = self._live_slab()
        new_capacity = slab.value.capacity + self._growth_step
        self._slab = _move(self._pool, slab, self._length, new_capacity)
        self.growth_events.append(new_capacity)
        logger.debug("sequence.grow", capacity=new_capacity, length=self._length)

    def finish(self) -> SealedSequence[T]:
        """Trim to the exact length and hand everything to a SealedSequence."""
        slab = self._live_slab()
        if slab.value.capacity != self._length:
            slab = self._slab = _move(self._pool, slab, self._length, self._length)
        sealed = self._sealed_type(slab)
        self._slab = None
        return sealed

    def release(self) -> None:
        """Release every stored item, newest first, then the slab."""
        if self._slab is None:
            raise LifetimeError("sequence was already finished or released")
        if not self._slab.alive:
            raise DoubleReleaseError(self._slab.ident)
        slots = self._slab.value.slots
        for position in range(self._length - 1, -1, -1):
            item = slots[position]
            slots[position] = None
            if item is not None:
                item.release()
        self._length = 0
        self._slab.release()
        self._slab = None

    def _live_slab(self) -> Owned[Slab[T]]:
        if self._slab is None or not self._slab.alive:
            raise LifetimeError("sequence used after finish or release")
        return self._slab

    def _storage(self) -> Slab[T]:
        return self._live_slab().value

    def __repr__(self) -> str:
        if not self.alive:
            return "GrowableSequence(<finished>)"
        return f"GrowableSequence(length={self._length}, capacity={self.capacity})"


class SealedSequence(Sequence[T], Generic[T]):
    """Immutable result sequence that owns its slab and every item in it."""

    def __init__(self, slab: Owned[Slab[T]]):
        self._slab = slab

    @property
    def alive(self) -> bool:
        return self._slab.alive

    @property
    def capacity(self) -> int:
        return self._items_slab().capacity

    def _items_slab(self) -> Slab[T]:
        if not self._slab.alive:
            raise LifetimeError("sequence used after release")
        return self._slab.value

    @overload
    def __getitem__(self, index: int) -> T: ...

    @overload
    def __getitem__(self, index: slice) -> list[T]: ...

    def __getitem__(self, index):
        slots = self._items_slab().slots
        if isinstance(index, slice):
            return [handle.value for handle in slots[index]]
        return slots[index].value

    def __len__(self) -> int:
        return self._items_slab().capacity

    def __iter__(self) -> Iterator[T]:
        for handle in self._items_slab().slots:
            yield handle.value

    def __eq__(self, other: object) -> bool:
        if isinstance(other, (str, bytes)) or not isinstance(other, Sequence):
            return NotImplemented
        return list(self) == list(other)

    __hash__ = None  # type: ignore[assignment]

    def owned_handles(self) -> list[Owned[Any]]:
        """Every handle this sequence is responsible for, slab first."""
        return [self._slab, *self._items_slab().slots]

    def release(self) -> None:
        """Release every item, newest first, then the slab."""
        if not self._slab.alive:
            raise DoubleReleaseError(self._slab.ident, f"sequence slab #{self._slab.ident} released twice")
        slots = self._slab.value.slots
        for handle in reversed(slots):
            handle.release()
        slots.clear()
        self._slab.release()

    def __enter__(self) -> SealedSequence[T]:
        return self

    def __exit__(self, *args: object) -> None:
        if self.alive:
            self.release()

    def __repr__(self) -> str:
        if not self.alive:
            return "SealedSequence(<released>)"
        return f"{type(self).__name__}({list(self)!r})"


__all__ = ["Slab", "GrowableSequence", "SealedSequence"]

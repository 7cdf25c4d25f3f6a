"""
OwnedMapping - a key/value composite that owns its entries.

The mapping's storage is itself an owned handle (the "shell"), and every key
and value stored in it is an owned handle the mapping took over through
``insert``. Releasing the mapping releases each entry and then the shell,
exactly once.

Insertion follows ordinary dict semantics: for a key that is already present
the original key is kept, the new key handle is released, and the previous
value handle is released before the new value is stored (last write wins).
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any, Generic, TypeVar

from discipline.core.errors import DoubleReleaseError, LifetimeError, ShapeError
from discipline.core.handles import Owned, ResourcePool

K = TypeVar("K")
V = TypeVar("V")


class OwnedMapping(Mapping[K, V], Generic[K, V]):
    """Read-only mapping view over owned key/value handles."""

    def __init__(self, pool: ResourcePool):
        self._pool = pool
        self._shell: Owned[dict[Any, tuple[Owned[K], Owned[V]]]] = pool.acquire({})
        self._sealed = False

    # ── Ownership ───────────────────────────────────────────────

    @property
    def alive(self) -> bool:
        return self._shell.alive

    @property
    def sealed(self) -> bool:
        return self._sealed

    def insert(self, key: Owned[K], value: Owned[V]) -> None:
        """Take ownership of ``key`` and ``value`` (both or neither)."""
        entries = self._entries()
        if self._sealed:
            raise LifetimeError("cannot insert into a sealed mapping")
        try:
            existing = entries.get(key.value)
        except TypeError as exc:
            raise ShapeError(f"unhashable key: {type(key.value).__name__}", cause=exc) from exc
        if existing is None:
            entries[key.value] = (key, value)
            return
        kept_key, replaced = existing
        entries[key.value] = (kept_key, value)
        key.release()
        replaced.release()

    def finish(self) -> OwnedMapping[K, V]:
        """Seal the mapping; it keeps every handle it owns."""
        self._entries()
        self._sealed = True
        return self

    def release(self) -> None:
        """Release every entry, then the shell."""
        if not self._shell.alive:
            raise DoubleReleaseError(self._shell.ident, f"mapping shell #{self._shell.ident} released twice")
        entries = self._shell.value
        for key, value in reversed(list(entries.values())):
            value.release()
            key.release()
        entries.clear()
        self._shell.release()

    def owned_handles(self) -> list[Owned[Any]]:
        """Every handle this mapping is responsible for, shell first."""
        handles: list[Owned[Any]] = [self._shell]
        for key, value in self._entries().values():
            handles.extend((key, value))
        return handles

    def _entries(self) -> dict[Any, tuple[Owned[K], Owned[V]]]:
        if not self._shell.alive:
            raise LifetimeError("mapping used after release")
        return self._shell.value

    # ── Mapping interface ───────────────────────────────────────

    def __getitem__(self, key: K) -> V:
        return self._entries()[key][1].value

    def __iter__(self) -> Iterator[K]:
        return iter(self._entries())

    def __len__(self) -> int:
        return len(self._entries())

    def to_dict(self) -> dict[K, V]:
        return {key.value: value.value for key, value in self._entries().values()}

    def __enter__(self) -> OwnedMapping[K, V]:
        return self

    def __exit__(self, *args: object) -> None:
        if self.alive:
            self.release()

    def __repr__(self) -> str:
        if not self.alive:
            return "OwnedMapping(<released>)"
        return f"OwnedMapping({self.to_dict()!r})"


__all__ = ["OwnedMapping"]

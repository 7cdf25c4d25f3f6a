"""
ScopedBuilder - release-on-every-exit-path for multi-step constructions.

A construction runs a sequence of steps, each of which may acquire owned
handles and may fail. The builder keeps a stack of everything currently owned
by the construction (the composite-under-construction plus scratch handles
not yet handed to it). On the first failure it releases that stack in reverse
order and lets the failure propagate; on commit it hands the finished
composite to the caller and forgets the stack without releasing anything.

Every handle therefore ends up on exactly one of two paths:

- **commit:** owned by the returned result, never released by the builder
- **unwind:** released by the builder, exactly once

Manifesto:
    - **Ownership is a stack:** Registration order is acquisition order,
      release order is its reverse
    - **Transfer, don't copy:** Handing a handle to the composite removes it
      from the builder, so it can only be released through the composite
    - **Fail fast:** The first failing step ends the construction
    - **No partial results:** A caller never sees a half-built composite

Architecture:
    ::

        with ScopedBuilder(pool, operation="makedict") as builder:
            mapping = builder.construct(OwnedMapping(pool))    ─┐ stack: [mapping]
            for pair in pairs:                                   │
                builder.acquire(insert_pair, mapping, pair)     │ step: own(key),
                                                                 │ own(value),
                                                                 │ transfer(insert)
            return builder.commit()                             ─┘ stack: []

        failure in any step ──> unwind: release stack top-down, re-raise
        leaving the block without commit ──> unwind

Examples:
    >>> from discipline.core.handles import ResourcePool
    >>> pool = ResourcePool()
    >>> with ScopedBuilder(pool, operation="demo") as builder:
    ...     scratch = builder.own(pool.acquire("tmp"))
    ...     raise ValueError("step failed")
    Traceback (most recent call last):
    ...
    ValueError: step failed
    >>> scratch.alive, pool.live_count
    (False, 0)

Guardrails:
    ❌ DON'T: Keep a handle registered after inserting it into the composite
    ✅ DO: Insert through transfer(), which deregisters on success only

    ❌ DON'T: Share a builder between calls or threads
    ✅ DO: Create one builder per invocation

Tags:
    resource-lifetime, unwind, ownership-transfer, scoped-cleanup, discipline
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Protocol, TypeVar, runtime_checkable

from discipline.core.errors import DisciplineError, LifetimeError
from discipline.core.handles import Releasable, ResourcePool
from discipline.core.logging import get_logger
from discipline.core.result import Err, Ok

logger = get_logger(__name__)

T = TypeVar("T")
H = TypeVar("H", bound=Releasable)


@runtime_checkable
class Composite(Releasable, Protocol):
    """An aggregate under construction that owns the handles stored in it."""

    def finish(self) -> Any:
        """Return the final, immutable result, taking over every owned handle."""
        ...


class BuilderState(str, Enum):
    OPEN = "open"
    COMMITTED = "committed"
    UNWOUND = "unwound"


class ScopedBuilder:
    """Per-invocation bookkeeping for a fallible multi-step construction.

    Args:
        pool: Pool the construction acquires from
        operation: Operation name stamped on failures and log events
    """

    def __init__(self, pool: ResourcePool, *, operation: str = "build"):
        self.pool = pool
        self.operation = operation
        self._owned: list[Releasable] = []
        self._composite: Composite | None = None
        self._state = BuilderState.OPEN
        self._released = 0

    @classmethod
    def begin(cls, pool: ResourcePool, *, operation: str = "build") -> ScopedBuilder:
        """Start an empty construction context."""
        return cls(pool, operation=operation)

    # ── Introspection ───────────────────────────────────────────

    @property
    def state(self) -> BuilderState:
        return self._state

    @property
    def composite(self) -> Composite | None:
        return self._composite

    @property
    def owned(self) -> tuple[Releasable, ...]:
        """Handles currently owned by the construction, in registration order."""
        return tuple(self._owned)

    @property
    def released_count(self) -> int:
        """Number of handles released by the unwind."""
        return self._released

    # ── Registration ────────────────────────────────────────────

    def construct(self, composite: Composite) -> Any:
        """Register the composite-under-construction and return it."""
        self._check_open()
        if self._composite is not None:
            raise LifetimeError(f"{self.operation}: composite already under construction")
        self._composite = composite
        self._owned.append(composite)
        logger.debug("builder.construct", operation=self.operation, composite=type(composite).__name__)
        return composite

    def own(self, handle: H) -> H:
        """Register a newly owned handle so the unwind will release it."""
        self._check_open()
        if not handle.alive:
            raise LifetimeError(f"{self.operation}: cannot own a released handle")
        self._owned.append(handle)
        return handle

    def transfer(self, sink: Callable[..., T], *handles: Releasable) -> T:
        """Hand ``handles`` to ``sink`` and drop them from the bookkeeping.

        ``sink`` must take ownership of all handles or of none: if it raises,
        the handles stay registered and the unwind releases them.
        """
        self._check_open()
        for handle in handles:
            if not any(owned is handle for owned in self._owned):
                raise LifetimeError(f"{self.operation}: transfer of a handle the builder does not own")
        result = sink(*handles)
        for handle in handles:
            self._forget(handle)
        return result

    def _forget(self, handle: Releasable) -> None:
        for position in range(len(self._owned) - 1, -1, -1):
            if self._owned[position] is handle:
                del self._owned[position]
                return

    # ── Steps ───────────────────────────────────────────────────

    def acquire(self, step: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Run one step of the construction.

        The step may raise or return an ``Err``; either way everything owned
        so far is released and the failure propagates. An ``Ok`` is unwrapped.
        """
        self._check_open()
        step_name = getattr(step, "__name__", repr(step))
        try:
            outcome = step(*args, **kwargs)
            if isinstance(outcome, Err):
                raise outcome.error
        except BaseException as exc:
            if isinstance(exc, DisciplineError):
                exc.with_context(operation=self.operation, step=step_name)
            self._unwind(exc)
            raise
        if isinstance(outcome, Ok):
            return outcome.value
        return outcome

    # ── Exit paths ──────────────────────────────────────────────

    def commit(self) -> Any:
        """Finish the composite and hand it to the caller.

        Nothing is released on this path: the bookkeeping is cleared because
        ownership moved to the returned result.
        """
        self._check_open()
        if self._composite is None:
            raise LifetimeError(f"{self.operation}: nothing to commit")
        stray = [handle for handle in self._owned if handle is not self._composite]
        if stray:
            error = LifetimeError(
                f"{self.operation}: {len(stray)} owned handle(s) would be abandoned at commit"
            )
            self._unwind(error)
            raise error
        try:
            result = self._composite.finish()
        except BaseException as exc:
            if isinstance(exc, DisciplineError):
                exc.with_context(operation=self.operation, step="finish")
            self._unwind(exc)
            raise
        self._owned.clear()
        self._composite = None
        self._state = BuilderState.COMMITTED
        logger.debug("builder.commit", operation=self.operation)
        return result

    def unwind(self) -> int:
        """Release everything owned so far. Returns the number released."""
        self._check_open()
        self._unwind(None)
        return self._released

    def _unwind(self, cause: BaseException | None) -> None:
        if self._state is not BuilderState.OPEN:
            return
        self._state = BuilderState.UNWOUND
        owned, self._owned = self._owned, []
        self._composite = None
        failures: list[Exception] = []
        while owned:
            handle = owned.pop()
            if not handle.alive:
                continue
            try:
                handle.release()
            except Exception as exc:
                logger.error(
                    "builder.release_failed",
                    operation=self.operation,
                    handle=repr(handle),
                    error=str(exc),
                )
                failures.append(exc)
                if cause is not None:
                    cause.add_note(f"release of {handle!r} failed during unwind: {exc}")
            else:
                self._released += 1
        logger.debug(
            "builder.unwind",
            operation=self.operation,
            released=self._released,
            error_type=type(cause).__name__ if cause is not None else None,
        )
        if cause is None and failures:
            raise failures[0]

    def _check_open(self) -> None:
        if self._state is not BuilderState.OPEN:
            raise LifetimeError(f"{self.operation}: builder already {self._state.value}")

    # ── Context manager ─────────────────────────────────────────

    def __enter__(self) -> ScopedBuilder:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._state is BuilderState.OPEN:
            if exc_val is None:
                logger.warning("builder.not_committed", operation=self.operation)
            elif isinstance(exc_val, DisciplineError):
                exc_val.with_context(operation=self.operation)
            self._unwind(exc_val)

    def __repr__(self) -> str:
        return f"ScopedBuilder({self.operation!r}, state={self._state.value}, owned={len(self._owned)})"


__all__ = [
    "Composite",
    "BuilderState",
    "ScopedBuilder",
]

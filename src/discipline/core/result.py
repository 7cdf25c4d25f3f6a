"""
Result envelope for consistent success/failure handling.

Provides a typed Result[T] pattern that makes success/failure explicit: a
builder step may return Ok[T] or Err[T] instead of raising, and surfaces such
as the CLI convert exception-raising operations into Results at their edge.

Manifesto:
    - **Explicit over Implicit:** A step states whether it failed
    - **Bridge to exceptions:** try_result() converts raising code, and
      unwrap() converts back

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                     Result[T]                                │
        ├─────────────────┬─────────────────┬─────────────────────────┤
        │     Ok[T]       │     Err[T]      │     Utilities           │
        ├─────────────────┼─────────────────┼─────────────────────────┤
        │ • value: T      │ • error: Exc    │ • try_result()          │
        │ • unwrap()      │ • unwrap()      │                         │
        │ • to_dict()     │ • to_dict()     │                         │
        └─────────────────┴─────────────────┴─────────────────────────┘

Examples:
    >>> from discipline.core.result import Ok, Err, Result
    >>> def half(x: int) -> Result[int]:
    ...     if x % 2:
    ...         return Err(ValueError("odd"))
    ...     return Ok(x // 2)
    >>> half(10).unwrap()
    5
    >>> half(3).is_err()
    True

Guardrails:
    ❌ DON'T: Use unwrap() without checking is_ok() first
    ✅ DO: Use pattern matching or is_err() for safe extraction

Tags:
    result-pattern, error-handling, discipline
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from discipline.core.errors import DisciplineError

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """
    Successful result containing a value.

    Examples:
        >>> Ok(10).unwrap()
        10
    """

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Get the value. Safe for Ok."""
        return self.value

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"ok": True, "value": self.value}

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[T]):
    """
    Failed result containing an error.

    unwrap() raises the wrapped error.

    Examples:
        >>> Err(ValueError("x")).is_err()
        True
    """

    error: Exception

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> T:
        """Raise the error."""
        raise self.error

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        if isinstance(self.error, DisciplineError):
            return {"ok": False, "error": self.error.to_dict()}
        return {
            "ok": False,
            "error": {
                "error_type": type(self.error).__name__,
                "message": str(self.error),
            },
        }

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


# Type alias for Result
Result = Ok[T] | Err[T]


def try_result(f: Callable[[], T]) -> Result[T]:
    """
    Execute a function and wrap result in Result.

    Examples:
        >>> try_result(lambda: int("42")).unwrap()
        42
        >>> try_result(lambda: int("x")).is_err()
        True
    """
    try:
        return Ok(f())
    except Exception as e:
        return Err(e)


__all__ = [
    "Ok",
    "Err",
    "Result",
    "try_result",
]

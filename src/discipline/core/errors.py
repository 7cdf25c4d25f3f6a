"""
Structured error types for the discipline package.

Provides a small hierarchy of typed errors with metadata for categorization,
reporting and root cause analysis through error chaining.

Every failure a construction can hit is local to one call: no retry, no
partial result. What the caller needs is *which* rule was broken and *where*
in the multi-step construction it happened. DisciplineError and its
subclasses carry:
- **Category:** What kind of failure (validation, conversion, resource, ...)
- **Context:** Operation, step and element index where the failure surfaced
- **Cause:** Chained underlying exception for root cause analysis

Each concrete error also derives from the builtin exception a Python caller
would expect (``TypeError`` for shape problems, ``ValueError`` for forbidden
or out-of-range values, ``MemoryError`` for allocation failures), so plain
``except ValueError`` keeps working.

Manifesto:
    - **Typed Error Hierarchy:** One error type per failure kind
    - **Builtin compatible:** Subclasses mix in the matching builtin error
    - **Rich Context:** Errors carry the step that failed
    - **Error Chaining:** Preserve original exceptions while adding context

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                      DisciplineError                             │
        │              (category, context, cause)                          │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  ShapeError          ForbiddenValueError     RangeError          │
        │  (TypeError)         (ValueError)            (ValueError)        │
        │                                                                  │
        │  InjectedTestError   ConversionError         AllocationError     │
        │  (ValueError)        (TypeError)             (MemoryError)       │
        │                           │                                      │
        │                      WidthOverflowError      LifetimeError       │
        │                      (OverflowError)              │              │
        │                                          DoubleReleaseError      │
        │                                          ReleaseBorrowedError    │
        └─────────────────────────────────────────────────────────────────┘

Examples:
    >>> error = ShapeError("expecting a tuple")
    >>> isinstance(error, TypeError)
    True
    >>> error.category
    <ErrorCategory.VALIDATION: 'VALIDATION'>

    >>> error = RangeError("cannot factorize one or zero").with_context(
    ...     operation="factorize"
    ... )
    >>> error.context.operation
    'factorize'

Guardrails:
    ❌ DON'T: Raise bare ValueError/TypeError from an operation
    ✅ DO: Raise the DisciplineError subclass for that failure kind

    ❌ DON'T: Swallow a release failure during unwind
    ✅ DO: Attach it to the propagating error (the builder does this)

Tags:
    error-handling, exception-hierarchy, error-context, discipline
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and reporting.

    Attributes:
        VALIDATION: Structural input errors, forbidden or out-of-range values
        CONVERSION: Input cannot be represented as the expected integer
        RESOURCE: Acquisition failed or a lifetime rule was broken
        INJECTED: Deliberate test-only failure used to exercise unwinding
        CONFIG: Invalid settings
        INTERNAL: Bugs, unexpected state
        UNKNOWN: Uncategorized errors
    """

    VALIDATION = "VALIDATION"     # Shape, sentinel, range
    CONVERSION = "CONVERSION"     # Integer width / type conversion

    RESOURCE = "RESOURCE"         # Allocation, double release
    INJECTED = "INJECTED"         # Test hooks

    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata context for errors.

    Attributes:
        operation: Name of the operation (e.g. "makedict", "factorize")
        step: Name of the builder step that failed
        index: Element index within the input, when the failure is per-element
        metadata: Additional key-value pairs
    """

    operation: str | None = None
    step: str | None = None
    index: int | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["operation", "step", "index"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class DisciplineError(Exception):
    """
    Base exception for all discipline errors.

    All DisciplineError instances carry:
    - **category:** ErrorCategory enum for classification
    - **context:** ErrorContext with structured metadata
    - **cause:** Optional underlying exception for chaining

    Subclasses set ``default_category`` to provide sensible defaults.

    Examples:
        >>> error = DisciplineError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.to_dict()["error_type"]
        'DisciplineError'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> DisciplineError:
        """
        Add context to this error (fluent API).

        Known fields are only filled when still unset, so the innermost
        location of a failure wins.

        Usage:
            raise ShapeError("expecting a 2-tuple").with_context(index=3)
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                if getattr(self.context, key) is None:
                    setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ShapeError(DisciplineError, TypeError):
    """Structural input has the wrong type or arity."""

    default_category = ErrorCategory.VALIDATION


class ForbiddenValueError(DisciplineError, ValueError):
    """A designated sentinel value was found in the input."""

    default_category = ErrorCategory.VALIDATION

    def __init__(self, message: str, *, value: Any = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.value = value


class RangeError(DisciplineError, ValueError):
    """Input lies outside the valid domain of the operation."""

    default_category = ErrorCategory.VALIDATION


# =============================================================================
# TEST HOOK ERRORS
# =============================================================================


class InjectedTestError(DisciplineError, ValueError):
    """
    Deliberate failure raised by a test hook.

    Not a domain rule: it exists so that unwinding can be exercised from the
    middle of a real construction.
    """

    default_category = ErrorCategory.INJECTED

    def __init__(self, message: str, *, hook: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.hook = hook


# =============================================================================
# CONVERSION ERRORS
# =============================================================================


class ConversionError(DisciplineError, TypeError):
    """Input cannot be converted to the expected integer type."""

    default_category = ErrorCategory.CONVERSION


class WidthOverflowError(ConversionError, OverflowError):
    """Input does not fit the expected integer width."""

    def __init__(self, value: int, width: int, message: str | None = None):
        self.value = value
        self.width = width
        super().__init__(message or f"value {value} does not fit in {width} unsigned bits")


# =============================================================================
# RESOURCE ERRORS
# =============================================================================


class AllocationError(DisciplineError, MemoryError):
    """A resource acquisition failed."""

    default_category = ErrorCategory.RESOURCE


class LifetimeError(DisciplineError):
    """An ownership rule was broken (leak, double release, reuse)."""

    default_category = ErrorCategory.RESOURCE


class DoubleReleaseError(LifetimeError):
    """A handle was released more than once."""

    def __init__(self, ident: int, message: str | None = None):
        self.ident = ident
        super().__init__(message or f"handle #{ident} released twice")


class ReleaseBorrowedError(LifetimeError):
    """A borrowed reference was passed to release."""

    pass


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(DisciplineError, ValueError):
    """Configuration value is invalid."""

    default_category = ErrorCategory.CONFIG


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def categorize_error(error: BaseException) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, DisciplineError):
        return error.category
    if isinstance(error, MemoryError):
        return ErrorCategory.RESOURCE
    if isinstance(error, OverflowError):
        return ErrorCategory.CONVERSION
    if isinstance(error, (TypeError, ValueError)):
        return ErrorCategory.VALIDATION
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "DisciplineError",
    # Validation
    "ShapeError",
    "ForbiddenValueError",
    "RangeError",
    # Test hooks
    "InjectedTestError",
    # Conversion
    "ConversionError",
    "WidthOverflowError",
    # Resources
    "AllocationError",
    "LifetimeError",
    "DoubleReleaseError",
    "ReleaseBorrowedError",
    # Config
    "ConfigError",
    # Utilities
    "categorize_error",
]

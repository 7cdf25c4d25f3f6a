"""Discipline Core -- ownership primitives for fallible constructions.

Architecture::

    Layer 1 -- Type System & Errors
        errors.py      Structured error hierarchy (DisciplineError, ShapeError, ...)
        result.py      Result[T] envelope (Ok / Err / try_result)

    Layer 2 -- Ambient
        logging.py     structlog configuration
        settings.py    pydantic-settings configuration (DISCIPLINE_*)

    Layer 3 -- Ownership
        handles.py     ResourcePool, Owned[T], Borrowed[T]
        builder.py     ScopedBuilder (unwind on failure, transfer on commit)

    Layer 4 -- Composites
        mapping.py     OwnedMapping
        growable.py    GrowableSequence, SealedSequence
"""

from discipline.core.builder import BuilderState, Composite, ScopedBuilder
from discipline.core.errors import (
    AllocationError,
    ConfigError,
    ConversionError,
    DisciplineError,
    DoubleReleaseError,
    ErrorCategory,
    ErrorContext,
    ForbiddenValueError,
    InjectedTestError,
    LifetimeError,
    RangeError,
    ReleaseBorrowedError,
    ShapeError,
    WidthOverflowError,
    categorize_error,
)
from discipline.core.growable import GrowableSequence, SealedSequence, Slab
from discipline.core.handles import (
    Borrowed,
    Owned,
    PoolStats,
    Releasable,
    ResourcePool,
    get_default_pool,
    reset_default_pool,
)
from discipline.core.mapping import OwnedMapping
from discipline.core.result import Err, Ok, Result, try_result

__all__ = [
    # builder
    "BuilderState",
    "Composite",
    "ScopedBuilder",
    # errors
    "AllocationError",
    "ConfigError",
    "ConversionError",
    "DisciplineError",
    "DoubleReleaseError",
    "ErrorCategory",
    "ErrorContext",
    "ForbiddenValueError",
    "InjectedTestError",
    "LifetimeError",
    "RangeError",
    "ReleaseBorrowedError",
    "ShapeError",
    "WidthOverflowError",
    "categorize_error",
    # composites
    "GrowableSequence",
    "SealedSequence",
    "Slab",
    "OwnedMapping",
    # handles
    "Borrowed",
    "Owned",
    "PoolStats",
    "Releasable",
    "ResourcePool",
    "get_default_pool",
    "reset_default_pool",
    # result
    "Err",
    "Ok",
    "Result",
    "try_result",
]

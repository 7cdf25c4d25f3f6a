"""The two carrier operations built on ScopedBuilder.

- ``make_mapping`` / ``makedict``: mapping from (key, value) pairs
- ``factorize``: trial-division factorization into a growable sequence
"""

from discipline.operations.factorize import (
    DISABLED,
    FactorRecord,
    FactorSequence,
    UnluckyInjection,
    factorize,
    to_unsigned,
)
from discipline.operations.makedict import ExceptMe, make_mapping, makedict

__all__ = [
    "DISABLED",
    "ExceptMe",
    "FactorRecord",
    "FactorSequence",
    "UnluckyInjection",
    "factorize",
    "make_mapping",
    "makedict",
    "to_unsigned",
]

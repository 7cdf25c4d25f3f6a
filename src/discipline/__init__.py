"""
discipline - exactly-once resource release for fallible, multi-step constructions.

- discipline.core: ResourcePool, ScopedBuilder, composites, errors, settings
- discipline.operations: make_mapping / makedict and factorize
- discipline.cli: command line interface
"""

__version__ = "0.1.0"

from discipline.core import *  # noqa
from discipline.core import __all__ as _core_all
from discipline.operations import *  # noqa
from discipline.operations import __all__ as _operations_all

__all__ = ["__version__", *_core_all, *_operations_all]

"""
CLI layer for discipline.

Provides a Typer application whose commands delegate to
``discipline.operations``. This package handles only terminal transport:
argument parsing, coloured output and table formatting.

Entry point::

    discipline --help
"""

from discipline.cli.app import app

__all__ = ["app"]

"""
Shared pytest fixtures and configuration for discipline tests.

This module provides:
- A fresh ResourcePool per test
- Settings cache and default pool isolation
- A capturing sink for the makedict diagnostic line

Usage:
    Fixtures are auto-discovered by pytest. Use them as function arguments.

    def test_something(pool, lines):
        ...
"""

import sys
from pathlib import Path
from typing import Generator

import pytest

# Ensure discipline package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from discipline.core.handles import ResourcePool, reset_default_pool
from discipline.core.logging import clear_context, configure_default_logging
from discipline.core.settings import DisciplineSettings, clear_settings_cache


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)

        if "cli" in test_path.parts:
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration", "slow"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """
    Clear cached settings, the default pool and logging state around each test.

    DISCIPLINE_* variables from the developer's shell would otherwise change
    the documented defaults the tests rely on.
    """
    import os

    for key in list(os.environ):
        if key.startswith("DISCIPLINE_"):
            monkeypatch.delenv(key)
    clear_settings_cache()
    reset_default_pool()
    yield
    clear_settings_cache()
    reset_default_pool()
    clear_context()
    configure_default_logging()


# =============================================================================
# Pool & Settings Fixtures
# =============================================================================


@pytest.fixture
def pool() -> ResourcePool:
    """A fresh, empty pool."""
    return ResourcePool("test")


@pytest.fixture
def settings() -> DisciplineSettings:
    """Default settings, ignoring any .env file in the working directory."""
    return DisciplineSettings(_env_file=None)


@pytest.fixture
def lines() -> list[str]:
    """Collects diagnostic lines; pass ``lines.append`` as a sink."""
    return []

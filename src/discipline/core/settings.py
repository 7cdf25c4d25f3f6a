"""Settings for the discipline package.

Every tunable the operations consult lives on ``DisciplineSettings``:
logging, the growth policy of the factor sequence, the integer width of the
factorize input, and the injected test-only failure.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.

    - **Pydantic validation:** Type-checked at load, not deep inside a step
    - **Environment-driven:** Reads ``DISCIPLINE_*`` env vars and .env files
    - **Sensible defaults:** The defaults reproduce the documented behavior
      (fixed growth step of 10, unlucky value 5, 64-bit masked input)

Examples:
    >>> from discipline.core.settings import DisciplineSettings
    >>> DisciplineSettings().growth_step
    10
    >>> DisciplineSettings(growth_step=32).growth_step
    32

Tags:
    settings, configuration, pydantic, environment, discipline
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DisciplineSettings(BaseSettings):
    """Configuration for the discipline operations.

    Fields
    ──────
    log_level         : structlog log level
    json_logs         : JSON log output (None = auto-detect from tty)
    initial_capacity  : Slots allocated before the first factor is stored
    growth_step       : Fixed number of slots added when the sequence is full
    integer_width     : Unsigned width of the factorize input, in bits
    mask_overflow     : Wrap wider inputs modulo 2**width instead of failing
    include_leftover  : Append the prime cofactor left after trial division
    inject_unlucky    : Enable the unlucky-value test hook in factorize
    unlucky_value     : Factor/multiplicity that triggers the test hook
    diagnostic_prefix : Prefix of the line makedict writes before validating
    """

    model_config = SettingsConfigDict(
        env_prefix="DISCIPLINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = "WARNING"
    json_logs: bool | None = None

    # ── Growth policy ────────────────────────────────────────────
    initial_capacity: int = Field(default=10, ge=1)
    growth_step: int = Field(default=10, ge=1)

    # ── Factorize input ──────────────────────────────────────────
    integer_width: int = Field(default=64, ge=8, le=4096)
    mask_overflow: bool = True
    include_leftover: bool = True

    # ── Test hooks ───────────────────────────────────────────────
    inject_unlucky: bool = True
    unlucky_value: int = Field(default=5, ge=1)

    # ── makedict ─────────────────────────────────────────────────
    diagnostic_prefix: str = "makedict says: "

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value}")
        return level


_settings_cache: dict[str, DisciplineSettings] = {}


def get_settings(*, _force_reload: bool = False) -> DisciplineSettings:
    """Load, validate, and cache a :class:`DisciplineSettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]
    settings = DisciplineSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Drop the cached settings (tests, or after changing the environment)."""
    _settings_cache.clear()


__all__ = [
    "DisciplineSettings",
    "get_settings",
    "clear_settings_cache",
]

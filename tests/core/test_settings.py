"""Tests for discipline.core.settings module."""

import pytest
from pydantic import ValidationError

from discipline.core.settings import DisciplineSettings, clear_settings_cache, get_settings


class TestDefaults:
    def test_documented_defaults(self, settings):
        assert settings.log_level == "WARNING"
        assert settings.json_logs is None
        assert settings.initial_capacity == 10
        assert settings.growth_step == 10
        assert settings.integer_width == 64
        assert settings.mask_overflow is True
        assert settings.include_leftover is True
        assert settings.inject_unlucky is True
        assert settings.unlucky_value == 5
        assert settings.diagnostic_prefix == "makedict says: "


class TestEnvironment:
    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("DISCIPLINE_GROWTH_STEP", "3")
        monkeypatch.setenv("DISCIPLINE_INJECT_UNLUCKY", "false")
        settings = DisciplineSettings(_env_file=None)
        assert settings.growth_step == 3
        assert settings.inject_unlucky is False

    def test_log_level_is_uppercased(self, monkeypatch):
        monkeypatch.setenv("DISCIPLINE_LOG_LEVEL", "debug")
        assert DisciplineSettings(_env_file=None).log_level == "DEBUG"

    def test_unknown_log_level(self):
        with pytest.raises(ValidationError, match="unknown log level"):
            DisciplineSettings(_env_file=None, log_level="chatty")

    @pytest.mark.parametrize(
        "field, value",
        [("initial_capacity", 0), ("growth_step", 0), ("integer_width", 4), ("unlucky_value", 0)],
    )
    def test_bounds(self, field, value):
        with pytest.raises(ValidationError):
            DisciplineSettings(_env_file=None, **{field: value})

    def test_unrelated_env_ignored(self, monkeypatch):
        monkeypatch.setenv("DISCIPLINE_NOT_A_FIELD", "1")
        DisciplineSettings(_env_file=None)


class TestCache:
    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_force_reload(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("DISCIPLINE_UNLUCKY_VALUE", "7")
        assert get_settings() is first
        reloaded = get_settings(_force_reload=True)
        assert reloaded.unlucky_value == 7
        assert get_settings() is reloaded

    def test_clear_cache(self):
        first = get_settings()
        clear_settings_cache()
        assert get_settings() is not first

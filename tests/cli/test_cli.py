"""Tests for the discipline CLI (typer app)."""

import json

import pytest
from typer.testing import CliRunner

from discipline import __version__
from discipline.cli.app import app
from discipline.core.handles import get_default_pool

runner = CliRunner()


def _json(text: str):
    """Parse the JSON document in ``text``, skipping any leading diagnostic line."""
    start = min(i for i in (text.find("{"), text.find("[")) if i >= 0)
    return json.loads(text[start:])


class TestRoot:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"discipline {__version__}" in result.output

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert "makedict" in result.output
        assert "factorize" in result.output


class TestFactorizeCommand:
    def test_table_output(self):
        result = runner.invoke(app, ["factorize", "12"])
        assert result.exit_code == 0, result.output
        assert "Factors" in result.output
        assert "multiplicity" in result.output

    def test_json_output(self):
        result = runner.invoke(app, ["factorize", "12", "--json"])
        assert result.exit_code == 0, result.output
        assert _json(result.stdout) == [[2, 2], [3, 1]]

    def test_base_prefixed_input(self):
        result = runner.invoke(app, ["factorize", "0x20", "--json", "--no-inject"])
        assert result.exit_code == 0, result.output
        assert _json(result.stdout) == [[2, 5]]

    def test_injected_failure(self):
        result = runner.invoke(app, ["factorize", "10"])
        assert result.exit_code == 1
        assert "Error (INJECTED): unlucky factor 5" in result.output
        assert get_default_pool().live_count == 0

    def test_no_inject(self):
        result = runner.invoke(app, ["factorize", "10", "--json", "--no-inject"])
        assert result.exit_code == 0, result.output
        assert _json(result.stdout) == [[2, 1], [5, 1]]

    def test_drop_leftover(self):
        result = runner.invoke(app, ["factorize", "12", "--json", "--drop-leftover"])
        assert result.exit_code == 0, result.output
        assert _json(result.stdout) == [[2, 2]]

    @pytest.mark.parametrize(
        "arg, category, message",
        [
            ("1", "VALIDATION", "cannot factorize one or zero"),
            ("twelve", "CONVERSION", "invalid integer"),
        ],
    )
    def test_errors(self, arg, category, message):
        result = runner.invoke(app, ["factorize", arg])
        assert result.exit_code == 1
        assert f"Error ({category})" in result.output
        assert message in result.output

    def test_json_error(self):
        result = runner.invoke(app, ["factorize", "32", "--json"])
        assert result.exit_code == 1
        assert '"error_type": "InjectedTestError"' in result.output

    def test_settings_from_environment(self, monkeypatch):
        monkeypatch.setenv("DISCIPLINE_INJECT_UNLUCKY", "false")
        result = runner.invoke(app, ["factorize", "10", "--json"])
        assert result.exit_code == 0, result.output
        assert _json(result.stdout) == [[2, 1], [5, 1]]

    def test_verbose_logs_builder_events(self):
        result = runner.invoke(app, ["-v", "factorize", "12"])
        assert result.exit_code == 0, result.output
        assert "builder.commit" in result.output

    def test_builder_events_carry_command_name(self, monkeypatch):
        monkeypatch.setenv("DISCIPLINE_JSON_LOGS", "true")
        result = runner.invoke(app, ["-v", "factorize", "12"])
        assert result.exit_code == 0, result.output
        assert '"command": "factorize"' in result.output


class TestMakedictCommand:
    def test_pairs(self):
        result = runner.invoke(app, ["makedict", "a=1", "b=2", "-m", "hello"])
        assert result.exit_code == 0, result.output
        assert "makedict says: hello" in result.output
        assert "a: 1" in result.output
        assert "b: 2" in result.output

    def test_json_last_write_wins(self):
        result = runner.invoke(app, ["makedict", "k=1", "k=2", "--json"])
        assert result.exit_code == 0, result.output
        assert _json(result.stdout) == {"k": "2"}

    def test_value_may_contain_equals(self):
        result = runner.invoke(app, ["makedict", "expr=a=b", "--json"])
        assert _json(result.stdout) == {"expr": "a=b"}

    def test_no_pairs(self):
        result = runner.invoke(app, ["makedict", "-m", "empty"])
        assert result.exit_code == 0, result.output
        assert "No items." in result.output

    def test_bad_pair(self):
        result = runner.invoke(app, ["makedict", "a=1", "solo", "-m", "hi"])
        assert result.exit_code == 1
        assert "makedict says: hi" in result.output
        assert "Error (VALIDATION): expecting a 2-tuple" in result.output
        assert get_default_pool().live_count == 0


class TestConfigCommand:
    def test_table(self):
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0, result.output
        assert "growth_step" in result.output

    def test_json(self):
        result = runner.invoke(app, ["config", "show", "--format", "json"])
        assert result.exit_code == 0, result.output
        data = _json(result.stdout)
        assert data["unlucky_value"] == 5
        assert data["diagnostic_prefix"] == "makedict says: "

    def test_env(self):
        result = runner.invoke(app, ["config", "show", "-f", "env"])
        assert result.exit_code == 0, result.output
        assert "DISCIPLINE_GROWTH_STEP=10" in result.output
        assert "DISCIPLINE_INCLUDE_LEFTOVER=True" in result.output

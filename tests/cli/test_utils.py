"""
Tests for CLI utilities.
"""

from __future__ import annotations

import json

import pytest
import typer

from discipline.cli import utils
from discipline.cli.utils import output_result
from discipline.core.errors import InjectedTestError
from discipline.core.result import Err, Ok


@pytest.fixture
def consoles(monkeypatch):
    """Route both rich consoles to in-memory buffers."""
    from rich.console import Console

    out = Console(record=True, width=100)
    err = Console(record=True, width=100, stderr=True)
    monkeypatch.setattr(utils, "console", out)
    monkeypatch.setattr(utils, "err_console", err)
    return out, err


class TestOutputResult:
    def test_table_rows(self, consoles):
        out, _ = consoles
        output_result(Ok([(2, 2), (3, 1)]), title="Factors", columns=("factor", "multiplicity"))
        text = out.export_text()
        assert "Factors" in text
        assert "multiplicity" in text

    def test_dict(self, consoles):
        out, _ = consoles
        output_result(Ok({"a": "1"}), title="Mapping")
        text = out.export_text()
        assert "Mapping" in text
        assert "a: 1" in text

    def test_empty(self, consoles):
        out, _ = consoles
        output_result(Ok([]))
        assert "No items." in out.export_text()

    def test_json(self, consoles):
        out, _ = consoles
        output_result(Ok({"k": 1}), as_json=True)
        assert json.loads(out.export_text()) == {"k": 1}

    def test_err_exits_with_category(self, consoles):
        _, err = consoles
        with pytest.raises(typer.Exit) as exc_info:
            output_result(Err(InjectedTestError("unlucky factor 5")))
        assert exc_info.value.exit_code == 1
        assert "Error (INJECTED): unlucky factor 5" in err.export_text()

    def test_err_message_is_not_markup(self, consoles):
        _, err = consoles
        with pytest.raises(typer.Exit):
            output_result(Err(ValueError("bad [bold]input[/bold]")))
        assert "bad [bold]input[/bold]" in err.export_text()

    def test_err_json(self, consoles):
        _, err = consoles
        with pytest.raises(typer.Exit):
            output_result(Err(InjectedTestError("unlucky power 5")), as_json=True)
        payload = json.loads(err.export_text())
        assert payload["ok"] is False
        assert payload["error"]["category"] == "INJECTED"

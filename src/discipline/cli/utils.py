"""
CLI utility helpers: output formatting for operation results.
"""

from __future__ import annotations

import json
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from discipline.core.errors import categorize_error
from discipline.core.result import Result

console = Console()
err_console = Console(stderr=True)


def output_result(
    result: Result[Any],
    *,
    as_json: bool = False,
    title: str = "",
    columns: tuple[str, ...] = (),
) -> None:
    """Render a ``Result`` to the terminal, exiting 1 on ``Err``."""
    if result.is_err():
        err = result.error
        category = categorize_error(err).value
        if as_json:
            err_console.print_json(json.dumps(result.to_dict(), default=str))
        else:
            err_console.print(f"[bold red]Error[/bold red] ({category}): {escape(str(err))}", highlight=False)
        raise typer.Exit(code=1)

    data = result.unwrap()

    if as_json:
        console.print_json(json.dumps(data, default=str))
        return

    if isinstance(data, dict):
        _print_dict(data, title=title)
    else:
        _print_table(list(data), title=title, columns=columns)


# ── Private helpers ──────────────────────────────────────────────────────


def _print_table(rows: list, *, title: str = "", columns: tuple[str, ...] = ()) -> None:
    """Render a list of row tuples as a Rich table."""
    if not rows:
        console.print("[dim]No items.[/dim]")
        return
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in columns or tuple(f"col{i}" for i in range(len(rows[0]))):
        table.add_column(col, overflow="fold")
    for row in rows:
        table.add_row(*(str(v) for v in row))
    console.print(table)


def _print_dict(data: dict[str, Any], *, title: str = "") -> None:
    """Render a single dict as key-value pairs."""
    if title:
        console.print(f"[bold]{title}[/bold]")
    if not data:
        console.print("[dim]No items.[/dim]")
    for k, v in data.items():
        console.print(f"  [cyan]{k}[/cyan]: {v}", highlight=False)

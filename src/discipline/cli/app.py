"""
Root Typer application for the discipline CLI.

Commands:
    makedict   Build a mapping from KEY=VALUE pairs
    factorize  Factorize an unsigned integer by trial division
    config     Show effective settings
"""

from __future__ import annotations

import typer
from typer import Typer

from discipline.cli.utils import console, output_result
from discipline.core.errors import ConversionError
from discipline.core.logging import LogContext, clear_context, configure_logging
from discipline.core.result import try_result
from discipline.core.settings import get_settings

app = Typer(
    name="discipline",
    help="discipline: exactly-once resource release for fallible constructions.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from discipline import __version__

        typer.echo(f"discipline {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log builder events at DEBUG."),
) -> None:
    """Run the makedict and factorize operations from a shell."""
    clear_context()
    settings = get_settings()
    configure_logging(
        level="DEBUG" if verbose else settings.log_level,
        json_format=settings.json_logs,
    )


# ── Commands ─────────────────────────────────────────────────────────────


def _parse_pair(text: str) -> tuple[str, ...]:
    """``KEY=VALUE`` becomes a 2-tuple; anything else is passed through as-is."""
    if "=" not in text:
        return (text,)
    key, value = text.split("=", 1)
    return (key, value)


@app.command("makedict")
def makedict_command(
    pairs: list[str] = typer.Argument(None, help="KEY=VALUE pairs, in order."),
    message: str = typer.Option("", "--message", "-m", help="Text for the diagnostic line."),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Build a mapping from KEY=VALUE pairs (later keys overwrite earlier ones)."""
    from discipline.operations.makedict import make_mapping

    items = tuple(_parse_pair(text) for text in pairs or [])

    def sink(line: str) -> None:
        typer.echo(line, err=json_out)

    def run() -> dict[str, str]:
        with make_mapping(items, message, sink=sink) as mapping:
            return mapping.to_dict()

    with LogContext(command="makedict"):
        outcome = try_result(run)
    output_result(outcome, as_json=json_out, title="Mapping")


@app.command("factorize")
def factorize_command(
    n: str = typer.Argument(..., help="Unsigned integer >= 2."),
    json_out: bool = typer.Option(False, "--json"),
    no_inject: bool = typer.Option(False, "--no-inject", help="Disable the unlucky-value test hook."),
    drop_leftover: bool = typer.Option(
        False, "--drop-leftover", help="Do not append the prime cofactor left after trial division."
    ),
) -> None:
    """Factorize N into (prime, multiplicity) records."""
    from discipline.operations.factorize import DISABLED, factorize

    settings = get_settings()
    if drop_leftover:
        settings = settings.model_copy(update={"include_leftover": False})

    def run() -> list[tuple[int, int]]:
        try:
            value = int(n, 0)
        except ValueError as exc:
            raise ConversionError(f"invalid integer: {n!r}", cause=exc) from exc
        with factorize(value, settings=settings, injection=DISABLED if no_inject else None) as factors:
            return factors.to_list()

    with LogContext(command="factorize"):
        outcome = try_result(run)
    output_result(
        outcome,
        as_json=json_out,
        title="Factors",
        columns=("factor", "multiplicity"),
    )


config_app = typer.Typer(no_args_is_help=True)
app.add_typer(config_app, name="config", help="Configuration inspection.")


@config_app.command("show")
def show_config(
    format: str = typer.Option("table", "--format", "-f", help="Output format: table, json, env"),
) -> None:
    """Show current configuration."""
    settings = get_settings()

    if format == "json":
        console.print_json(settings.model_dump_json())
        return

    if format == "env":
        for key, value in sorted(settings.model_dump().items()):
            console.print(f"DISCIPLINE_{key.upper()}={value}", highlight=False)
        return

    from rich.table import Table

    table = Table(title="Settings")
    table.add_column("Setting")
    table.add_column("Value")
    for key, value in settings.model_dump().items():
        table.add_row(key, repr(value))
    console.print(table)

"""
Root Typer application for the dbmanager CLI.
"""

from __future__ import annotations

import sys

import typer
from typer import Typer

from dbmanager import __version__
from dbmanager.core.logging import configure_logging

app = Typer(
    name="dbmanager",
    help="dbmanager: browse and edit SQLite, PostgreSQL and MySQL databases.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"dbmanager {__version__}")
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
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log engine events to stderr."),
) -> None:
    """dbmanager CLI: inspect databases and run the REST API."""
    # stdout carries command output (and --json documents) only
    configure_logging(
        level="INFO" if verbose else "WARNING",
        json_format=False,
        stream=sys.stderr,
    )


# ── Sub-command registration ─────────────────────────────────────────────

from dbmanager.cli.db import app as db_app  # noqa: E402
from dbmanager.cli.serve import app as serve_app  # noqa: E402

app.add_typer(db_app, name="db", help="Inspect and repair configured databases.")
app.add_typer(serve_app, name="serve", help="Start the API server.")

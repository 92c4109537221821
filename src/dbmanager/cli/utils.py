"""
CLI utility helpers: output formatting and registry management.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from dbmanager.api.settings import DbManagerSettings
from dbmanager.core.backends import build_registry
from dbmanager.core.errors import ConfigError
from dbmanager.ops.context import OperationContext
from dbmanager.ops.result import OperationResult

console = Console()
err_console = Console(stderr=True)


# ── Context helper ───────────────────────────────────────────────────────


@contextmanager
def make_context(config: str | None = None) -> Iterator[OperationContext]:
    """Build the backend registry from settings and yield an ``OperationContext``.

    ``config`` overrides ``DBMANAGER_CONFIG_FILE``.  Pools are disposed on
    exit.  A configuration error ends the command with exit code 2.
    """
    settings = DbManagerSettings()
    if config:
        settings = settings.model_copy(update={"config_file": config})
    try:
        registry = build_registry(settings.backend_configs())
    except ConfigError as e:
        err_console.print(f"[bold red]Configuration error[/bold red]: {e.message}")
        raise typer.Exit(code=2) from e
    try:
        yield OperationContext(registry=registry, caller="cli")
    finally:
        registry.close()


# ── Output helpers ───────────────────────────────────────────────────────


def _to_plain(obj: Any) -> Any:
    """Convert dataclass / pydantic model to plain data; scalars pass through."""
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    if hasattr(obj, "__dataclass_fields__"):
        return asdict(obj)
    return obj


def _to_row(obj: Any) -> dict[str, Any]:
    plain = _to_plain(obj)
    return plain if isinstance(plain, dict) else {"value": plain}


def output_result(
    result: OperationResult,
    *,
    as_json: bool = False,
    title: str = "",
) -> None:
    """Render an ``OperationResult`` to the terminal."""
    if not result.success:
        err = result.error
        msg = err.message if err else "Unknown error"
        code = err.code if err else "ERROR"
        err_console.print(f"[bold red]Error[/bold red] ({code}): {msg}")
        if err is not None:
            for field_error in err.details.get("errors", []):
                err_console.print(f"  [red]{field_error['field']}[/red]: {field_error['message']}")
        raise typer.Exit(code=1)

    data = result.data

    if as_json:
        payload = [_to_plain(d) for d in data] if isinstance(data, list | tuple) else _to_plain(data)
        console.print_json(json.dumps(payload, default=str))
    elif isinstance(data, list):
        if not data:
            console.print("[dim]No items.[/dim]")
        else:
            _print_table(data, title=title)
    elif isinstance(data, dict) or hasattr(data, "__dataclass_fields__"):
        _print_dict(_to_row(data), title=title)
    else:
        console.print(f"[bold]{title}[/bold]: {data}" if title else str(data))

    for warning in result.warnings:
        err_console.print(f"[yellow]Warning[/yellow]: {warning}")


# ── Private helpers ──────────────────────────────────────────────────────


def _print_table(items: list, *, title: str = "") -> None:
    """Render a list of dataclasses/dicts/scalars as a Rich table."""
    first = _to_row(items[0])
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in first:
        table.add_column(col, overflow="fold")
    for item in items:
        d = _to_row(item)
        table.add_row(*(str(v) for v in d.values()))
    console.print(table)


def _print_dict(data: dict[str, Any], *, title: str = "") -> None:
    """Render a single dict as key-value pairs."""
    if title:
        console.print(f"[bold]{title}[/bold]")
    for k, v in data.items():
        console.print(f"  [cyan]{k}[/cyan]: {v}")

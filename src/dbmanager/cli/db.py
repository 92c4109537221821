"""
CLI: ``dbmanager db``, inspect and repair configured databases.
"""

from __future__ import annotations

import typer

from dbmanager.cli.utils import make_context, output_result
from dbmanager.ops import data as data_ops
from dbmanager.ops import databases as database_ops
from dbmanager.ops import tables as table_ops
from dbmanager.ops.requests import RepairRequest, TableRequest

app = typer.Typer(no_args_is_help=True)

ConfigOption = typer.Option(None, "--config", "-c", help="YAML file with a 'databases:' list")
JsonOption = typer.Option(False, "--json", help="JSON output")


@app.command("list")
def list_(
    config: str | None = ConfigOption,
    json_out: bool = JsonOption,
) -> None:
    """List configured databases."""
    with make_context(config) as ctx:
        output_result(database_ops.list_databases(ctx), as_json=json_out, title="Databases")


@app.command()
def tables(
    database: str = typer.Argument(..., help="Logical database name"),
    config: str | None = ConfigOption,
    json_out: bool = JsonOption,
) -> None:
    """List the user tables of a database."""
    with make_context(config) as ctx:
        result = table_ops.list_tables(ctx, TableRequest(database=database))
        output_result(result, as_json=json_out, title=f"Tables in {database}")


@app.command()
def columns(
    database: str = typer.Argument(..., help="Logical database name"),
    table: str = typer.Argument(..., help="Table name"),
    config: str | None = ConfigOption,
    json_out: bool = JsonOption,
) -> None:
    """Show the columns of a table."""
    with make_context(config) as ctx:
        result = table_ops.list_columns(ctx, TableRequest(database=database, table=table))
        output_result(result, as_json=json_out, title=f"{database}.{table}")


@app.command()
def count(
    database: str = typer.Argument(..., help="Logical database name"),
    table: str = typer.Argument(..., help="Table name"),
    config: str | None = ConfigOption,
    json_out: bool = JsonOption,
) -> None:
    """Count the rows of a table."""
    with make_context(config) as ctx:
        result = data_ops.count_rows(ctx, TableRequest(database=database, table=table))
        output_result(result, as_json=json_out, title=f"Rows in {database}.{table}")


@app.command()
def repair(
    database: str | None = typer.Argument(None, help="Logical database name (default: all)"),
    config: str | None = ConfigOption,
    json_out: bool = JsonOption,
) -> None:
    """Add a missing auto-increment ``id`` column to every table."""
    with make_context(config) as ctx:
        result = database_ops.repair_databases(ctx, RepairRequest(database=database))
        output_result(result, as_json=json_out, title="Repair")

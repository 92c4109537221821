"""
CLI: ``dbmanager serve``, start the API server.
"""

from __future__ import annotations

import os

import typer
import uvicorn

from dbmanager.api.deps import get_settings
from dbmanager.cli.utils import console

app = typer.Typer(no_args_is_help=True)


@app.command("start")
def start(
    host: str | None = typer.Option(None, "--host", "-h", help="Bind address (default from settings)"),
    port: int | None = typer.Option(None, "--port", "-p", help="Bind port (default from settings)"),
    config: str | None = typer.Option(
        None, "--config", "-c", help="YAML file with a 'databases:' list"
    ),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on changes"),
    log_level: str = typer.Option("info", "--log-level"),
) -> None:
    """Start the dbmanager REST API server."""
    if config:
        # The factory runs in the server process and reads settings from the environment
        os.environ["DBMANAGER_CONFIG_FILE"] = config
        get_settings.cache_clear()
    settings = get_settings()
    host = host or settings.host
    port = port or settings.port

    console.print(
        f"[bold green]Starting dbmanager API[/bold green] on {host}:{port}{settings.api_prefix}"
    )
    uvicorn.run(
        "dbmanager.api:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
    )

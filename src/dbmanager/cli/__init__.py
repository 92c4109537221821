"""
CLI layer for dbmanager.

Provides a Typer application with sub-commands that delegate to the
operations layer (``dbmanager.ops``).  All business logic lives in ops;
this package handles argument parsing and coloured table output.

Entry point::

    dbmanager --help
"""

from dbmanager.cli.app import app

__all__ = ["app"]

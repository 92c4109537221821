"""
dbmanager: schema introspection and generic CRUD over SQLite, PostgreSQL
and MySQL, served as a REST API and a CLI.

Packages
--------
core    backends, dialects, catalog repair, schema and data operations
ops     transport-agnostic operations returning ``OperationResult``
api     FastAPI application
cli     Typer command line
"""

__version__ = "0.1.0"

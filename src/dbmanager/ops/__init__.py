"""
Operations layer.

Transport-agnostic functions shared by the REST API and the CLI.  Each
takes an :class:`~dbmanager.ops.context.OperationContext` plus a typed
request and returns an :class:`~dbmanager.ops.result.OperationResult`;
none of them raises for expected failures.

Modules
-------
context     OperationContext (registry, request id, caller)
requests    Frozen request dataclasses
result      OperationResult envelope + error classification
databases   list_databases, repair_databases
tables      list/create/update/drop tables, list_columns
data        list_data, count_rows, insert/update/delete rows
"""

from dbmanager.ops.context import OperationContext
from dbmanager.ops.result import OperationError, OperationResult

__all__ = [
    "OperationContext",
    "OperationError",
    "OperationResult",
]

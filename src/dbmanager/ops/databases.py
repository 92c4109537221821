"""
Database operations.

Listing of the configured logical databases and on-demand ``id`` repair.
"""

from __future__ import annotations

from dbmanager.core.catalog import CatalogInspector, RepairReport
from dbmanager.core.logging import get_logger
from dbmanager.ops.context import OperationContext
from dbmanager.ops.requests import RepairRequest
from dbmanager.ops.result import OperationResult, result_from_exception, start_timer

logger = get_logger(__name__)


def list_databases(ctx: OperationContext) -> OperationResult[list[str]]:
    """Logical database names in registration order."""
    timer = start_timer()
    return OperationResult.ok(ctx.registry.names(), elapsed_ms=timer.elapsed_ms)


def repair_databases(
    ctx: OperationContext,
    request: RepairRequest | None = None,
) -> OperationResult[list[RepairReport]]:
    """Give every table lacking one an ``id`` column.

    Repairs one database when ``request.database`` is set, otherwise all of
    them.  Per-table and per-backend failures are reported as warnings, not
    as a failed result.
    """
    request = request or RepairRequest()
    timer = start_timer()

    try:
        if request.database is not None:
            backends = [ctx.backend(request.database)]
        else:
            backends = list(ctx.registry)
        reports = [CatalogInspector(backend).repair() for backend in backends]
    except Exception as exc:
        return result_from_exception(exc, timer, "repair_databases")

    warnings: list[str] = []
    for report in reports:
        if report.error:
            warnings.append(f"{report.backend}: {report.error}")
        for table, message in report.failed.items():
            warnings.append(f"{report.backend}.{table}: {message}")
    logger.info(
        "repair_finished",
        backends=len(reports),
        repaired=sum(len(r.repaired) for r in reports),
        warnings=len(warnings),
        request_id=ctx.request_id,
    )
    return OperationResult.ok(reports, warnings=warnings, elapsed_ms=timer.elapsed_ms)

"""
Migration operations.

Wrap :class:`~casebook.core.migrations.MigrationRunner` for the API, the
startup hook and the CLI. Runner exceptions become ``OperationResult.fail``
with a stable error code:

==================  ==========================================
Code                Raised by
==================  ==========================================
MIGRATION_FAILED    one or more files failed to apply
LOCKED              another run held the lock past the timeout
STORAGE             ledger creation/read, connection loss
FILESYSTEM          listing or reading migration files
INTERNAL            anything else
==================  ==========================================
"""

from __future__ import annotations

from casebook.core.errors import (
    CasebookError,
    FileSystemError,
    MigrationError,
    MigrationLockedError,
    StorageError,
)
from casebook.core.logging import get_logger
from casebook.core.migrations import MigrationRunner, MigrationStatus, MigrationSummary
from casebook.ops.context import OperationContext
from casebook.ops.requests import MigrationStatusRequest, RunMigrationsRequest
from casebook.ops.result import OperationResult, start_timer

logger = get_logger(__name__)


def check_migration_status(
    ctx: OperationContext,
    request: MigrationStatusRequest | None = None,
) -> OperationResult[MigrationStatus]:
    """Report applied and pending migrations without changing anything."""
    request = request or MigrationStatusRequest()
    timer = start_timer()

    try:
        runner = MigrationRunner(ctx.conn, request.migrations_dir, table=request.table)
        status = runner.status()
    except Exception as exc:
        return _failure(exc, "Failed to check migration status", timer.elapsed_ms)

    return OperationResult.ok(status, elapsed_ms=timer.elapsed_ms)


def run_migrations(
    ctx: OperationContext,
    request: RunMigrationsRequest | None = None,
) -> OperationResult[MigrationSummary]:
    """Apply all pending migrations.

    With ``ctx.dry_run`` nothing is applied; the pending names are returned
    in ``metadata["pending"]`` alongside an empty summary.
    """
    request = request or RunMigrationsRequest()
    timer = start_timer()

    try:
        runner = MigrationRunner(
            ctx.conn,
            request.migrations_dir,
            table=request.table,
            statement_timeout=request.statement_timeout,
            lock_timeout=request.lock_timeout,
        )
        if ctx.dry_run:
            pending = runner.pending()
            return OperationResult.ok(
                MigrationSummary(),
                elapsed_ms=timer.elapsed_ms,
                metadata={"dry_run": True, "pending": pending},
            )
        summary = runner.run()
    except Exception as exc:
        return _failure(exc, "Failed to run migrations", timer.elapsed_ms)

    logger.info(
        "migrations.completed",
        caller=ctx.caller,
        request_id=ctx.request_id,
        applied=summary.applied_count,
    )
    return OperationResult.ok(summary, elapsed_ms=timer.elapsed_ms)


def _failure(exc: Exception, title: str, elapsed_ms: float) -> OperationResult:
    if isinstance(exc, MigrationError):
        logger.error("op_failed", error=str(exc), failed=exc.failed_count)
        summary = exc.summary
        return OperationResult.fail(
            "MIGRATION_FAILED",
            f"{title}: {exc.message}",
            category=exc.category,
            details={
                "applied": summary.applied_count if summary else 0,
                "failed": exc.failed_count,
                "failures": dict(summary.failed) if summary else {},
            },
            elapsed_ms=elapsed_ms,
        )

    if isinstance(exc, CasebookError):
        logger.error("op_failed", error=str(exc), **exc.context.to_dict())
        if isinstance(exc, MigrationLockedError):
            code = "LOCKED"
        elif isinstance(exc, StorageError):
            code = "STORAGE"
        elif isinstance(exc, FileSystemError):
            code = "FILESYSTEM"
        else:
            code = "INTERNAL"
        return OperationResult.fail(
            code,
            f"{title}: {exc.message}",
            category=exc.category,
            retryable=exc.retryable,
            elapsed_ms=elapsed_ms,
        )

    logger.exception("op_failed", error=str(exc))
    return OperationResult.fail("INTERNAL", f"{title}: {exc}", elapsed_ms=elapsed_ms)

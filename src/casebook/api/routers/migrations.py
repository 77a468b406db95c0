"""
Migrations router: status and manual run.

GET  /migrations/status
POST /migrations/run
"""

from __future__ import annotations

from fastapi import APIRouter, Query, Request

from casebook.api.deps import OpContext, Settings
from casebook.api.schemas.common import SuccessResponse
from casebook.api.schemas.migrations import (
    MigrationCountsSchema,
    MigrationRunSchema,
    MigrationStatusSchema,
)
from casebook.api.utils import _handle_error
from casebook.ops.migrations import check_migration_status, run_migrations
from casebook.ops.requests import MigrationStatusRequest, RunMigrationsRequest

router = APIRouter(prefix="/migrations")


@router.get("/status", response_model=SuccessResponse[MigrationStatusSchema])
def migration_status(request: Request, ctx: OpContext, settings: Settings):
    """Report applied and pending migrations.

    Example:
        GET /api/migrations/status

        Response:
        {
            "data": {
                "applied": ["001_create_projects"],
                "pending": ["002_create_test_suites"],
                "total": 2,
                "appliedCount": 1,
                "pendingCount": 1
            }
        }
    """
    result = check_migration_status(
        ctx,
        MigrationStatusRequest(
            migrations_dir=settings.migrations_dir,
            table=settings.migrations_table,
        ),
    )
    if not result.success:
        return _handle_error(
            result,
            title="Failed to check migration status",
            debug=settings.debug,
            instance=str(request.url),
        )
    return SuccessResponse(
        data=MigrationStatusSchema(**result.data.to_dict()),
        elapsed_ms=result.elapsed_ms,
        warnings=result.warnings,
    )


@router.post(
    "/run",
    response_model=SuccessResponse[MigrationRunSchema],
    response_model_exclude_none=True,
)
def migration_run(
    request: Request,
    ctx: OpContext,
    settings: Settings,
    dry_run: bool = Query(False, description="Report pending migrations without applying them"),
):
    """Apply all pending migrations.

    Example:
        POST /api/migrations/run

        Response:
        {
            "data": {
                "message": "Migrations completed",
                "result": {"applied": 2, "failed": 0}
            }
        }
    """
    ctx.dry_run = dry_run
    result = run_migrations(
        ctx,
        RunMigrationsRequest(
            migrations_dir=settings.migrations_dir,
            table=settings.migrations_table,
            statement_timeout=settings.migration_statement_timeout,
            lock_timeout=settings.migration_lock_timeout,
        ),
    )
    if not result.success:
        return _handle_error(
            result,
            title="Failed to run migrations",
            debug=settings.debug,
            instance=str(request.url),
        )

    payload = MigrationRunSchema(result=MigrationCountsSchema(**result.data.to_dict()))
    if result.metadata.get("dry_run"):
        payload.dry_run = True
        payload.pending = result.metadata["pending"]
    return SuccessResponse(data=payload, elapsed_ms=result.elapsed_ms, warnings=result.warnings)

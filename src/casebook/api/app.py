"""
FastAPI application factory.

``create_app()`` wires middleware, routers, error handlers and lifespan
events into a single ``FastAPI`` instance. On startup the lifespan hook
brings the schema up to date; a failed migration aborts startup so the
server never serves against a half-migrated database.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from casebook.api.deps import get_settings
from casebook.api.middleware.errors import unhandled_exception_handler
from casebook.api.middleware.request_id import RequestIDMiddleware
from casebook.api.settings import CasebookAPISettings
from casebook.core.connection import create_connection
from casebook.core.errors import MigrationError
from casebook.core.logging import configure_logging, get_logger
from casebook.ops.context import OperationContext
from casebook.ops.migrations import run_migrations
from casebook.ops.requests import RunMigrationsRequest


def _migrate_on_startup(settings: CasebookAPISettings) -> None:
    log = get_logger("casebook.api")
    conn, info = create_connection(settings.database_url, data_dir=settings.data_dir)
    try:
        result = run_migrations(
            OperationContext(conn=conn, caller="startup"),
            RunMigrationsRequest(
                migrations_dir=settings.migrations_dir,
                table=settings.migrations_table,
                statement_timeout=settings.migration_statement_timeout,
                lock_timeout=settings.migration_lock_timeout,
            ),
        )
    finally:
        conn.close()

    if not result.success:
        log.error("startup.migrations_failed", code=result.error.code, error=result.error.message)
        raise MigrationError(result.error.message)

    log.info("startup.migrations_completed", backend=info.backend, applied=result.data.applied_count)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup / shutdown hooks."""
    settings: CasebookAPISettings = app.state.settings
    log = get_logger("casebook.api")
    log.info("casebook API starting", version=app.version)

    if settings.auto_migrate:
        _migrate_on_startup(settings)

    yield
    log.info("casebook API shutting down")


def create_app(*, settings: CasebookAPISettings | None = None) -> FastAPI:
    """Build and return a fully-configured FastAPI application.

    Parameters
    ----------
    settings : CasebookAPISettings | None
        Override settings (useful for testing). When ``None`` the cached
        singleton from :func:`get_settings` is used.
    """
    settings = settings or get_settings()

    configure_logging(
        level=settings.log_level,
        json_format=settings.log_json,
        service="casebook-api",
    )

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
        docs_url=f"{settings.api_prefix}/docs",
        openapi_url=f"{settings.api_prefix}/openapi.json",
    )

    # Stash settings on app state for middleware and lifespan access
    app.state.settings = settings

    # Override DI so endpoints use the provided settings
    app.dependency_overrides[get_settings] = lambda: settings

    # ── Middleware (outermost → innermost) ────────────────────────────
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Exception handlers ───────────────────────────────────────────
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # ── Routers ──────────────────────────────────────────────────────
    from casebook.api.routers import migrations

    app.include_router(migrations.router, prefix=settings.api_prefix, tags=["migrations"])

    return app

"""
Typed request objects for operations.

Each dataclass is the input contract for one operation function. Requests
carry validated, transport-agnostic data only: no HTTP bodies, no Typer
params.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from casebook.core.settings import DEFAULT_MIGRATIONS_DIR


@dataclass(frozen=True, slots=True)
class MigrationStatusRequest:
    """Request for :func:`casebook.ops.migrations.check_migration_status`."""

    migrations_dir: Path | str = DEFAULT_MIGRATIONS_DIR
    table: str = "migrations"


@dataclass(frozen=True, slots=True)
class RunMigrationsRequest:
    """Request for :func:`casebook.ops.migrations.run_migrations`.

    Attributes:
        migrations_dir: Directory holding the ``.sql`` files.
        table: Ledger table name.
        statement_timeout: Per-migration timeout in seconds (``None`` → unbounded).
        lock_timeout: Seconds to wait for the run lock (``None`` → block).
    """

    migrations_dir: Path | str = DEFAULT_MIGRATIONS_DIR
    table: str = "migrations"
    statement_timeout: float | None = None
    lock_timeout: float | None = None

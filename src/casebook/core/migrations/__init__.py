"""Schema-versioned SQL migrations.

Usage::

    from casebook.core.migrations import MigrationRunner

    runner = MigrationRunner(conn, "database/migrations")
    runner.status().pending     # ['003_create_test_cases']
    runner.run()                # MigrationSummary(applied=[...], ...)
"""

from casebook.core.migrations.lock import RunLock, advisory_key, database_identity
from casebook.core.migrations.models import (
    SQL_EXTENSION,
    MigrationFile,
    MigrationRecord,
    MigrationStatus,
    MigrationSummary,
    migration_name,
)
from casebook.core.migrations.runner import MigrationRunner
from casebook.core.migrations.source import LocalMigrationSource

__all__ = [
    "SQL_EXTENSION",
    "LocalMigrationSource",
    "MigrationFile",
    "MigrationRecord",
    "MigrationRunner",
    "MigrationStatus",
    "MigrationSummary",
    "RunLock",
    "advisory_key",
    "database_identity",
    "migration_name",
]

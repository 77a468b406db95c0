"""casebook core: reusable primitives below the ops layer.

Architecture::

    Layer 1 -- Type System & Errors
        errors.py          Structured error hierarchy (CasebookError, ...)
        protocols.py       Connection, MigrationSource protocols
        logging.py         structlog configuration
        settings.py        pydantic-settings base configuration

    Layer 2 -- Database
        dialect.py         SQLite / PostgreSQL SQL fragments
        connection.py      Connection factory (create_connection)
        adapters/          sqlite3 adapter, SQLAlchemy bridge

    Layer 3 -- Migrations
        migrations/        Runner, ledger, run lock, file source
"""

from casebook.core.errors import (
    CasebookError,
    ConfigError,
    DatabaseConnectionError,
    ErrorCategory,
    FileSystemError,
    MigrationError,
    MigrationLockedError,
    MigrationTimeoutError,
    StorageError,
    ValidationError,
)

__all__ = [
    "CasebookError",
    "ConfigError",
    "DatabaseConnectionError",
    "ErrorCategory",
    "FileSystemError",
    "MigrationError",
    "MigrationLockedError",
    "MigrationTimeoutError",
    "StorageError",
    "ValidationError",
]

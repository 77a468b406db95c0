"""
Protocol definitions for casebook's injected collaborators.

The migration runner never imports a database driver or touches ``pathlib``
directly: it depends on the *shape* of a connection and of a file source.
Tests substitute fakes; production wires ``SqliteConnection``,
``SAConnectionBridge`` and ``LocalMigrationSource``.

Architecture:
    ::

        protocols.py
        ├── Connection       : sync DB handle (sqlite3 adapter, SQLAlchemy bridge)
        └── MigrationSource  : directory listing + text reads

    Consumers:
        core/migrations/runner.py, core/migrations/lock.py, ops/migrations.py

Guardrails:
    ❌ DON'T: Add implementation logic to protocol classes
    ✅ DO: Keep protocols pure contracts: implementations live in adapters

Tags:
    protocol, connection, filesystem, contracts, casebook
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Connection(Protocol):
    """
    Minimal synchronous database handle.

    Architecture:
        ::

            ┌────────────────────────────────────────────────────────┐
            │ execute(sql, params)   → Execute single statement      │
            │ executescript(sql)     → Execute a multi-statement     │
            │                          batch, no implicit commit     │
            │ fetchone()             → Get one result row            │
            │ fetchall()             → Get all result rows           │
            │ commit()               → Commit transaction            │
            │ rollback()             → Rollback transaction          │
            └────────────────────────────────────────────────────────┘

    Placeholders are always ``?``; adapters translate for their driver.
    """

    def execute(self, sql: str, params: tuple = ()) -> Any:
        """Execute SQL statement with optional parameters."""
        ...

    def executescript(self, sql: str) -> Any:
        """Execute a migration body inside the current transaction."""
        ...

    def fetchone(self) -> Any:
        """Fetch one row from last query."""
        ...

    def fetchall(self) -> list:
        """Fetch all rows from last query."""
        ...

    def commit(self) -> None:
        """Commit current transaction."""
        ...

    def rollback(self) -> None:
        """Rollback current transaction."""
        ...


@runtime_checkable
class MigrationSource(Protocol):
    """
    Read-only access to the directory holding migration files.

    ``list_entries`` must tolerate a missing directory by returning an empty
    list; any other failure surfaces as ``FileSystemError``.
    """

    def list_entries(self, directory: str) -> list[str]:
        """Return the file names in *directory* (unordered)."""
        ...

    def read_text(self, path: str) -> str:
        """Return the UTF-8 contents of *path*."""
        ...


__all__ = ["Connection", "MigrationSource"]

"""SQL dialect abstraction for the migration runner.

The runner issues a handful of statements whose syntax differs between
backends: the ledger DDL, opening a transaction, bounding a statement's
runtime, and taking a cross-process lock. ``Dialect`` methods return those
fragments so the runner itself stays backend-agnostic.

All statements use ``?`` placeholders; connection adapters translate them for
their driver.

Architecture::

    ┌──────────────────────────────────────────────────────────────────┐
    │                     Dialect Abstraction Layer                     │
    └──────────────────────────────────────────────────────────────────┘

              ┌──────────────────────┐   ┌──────────────────────────┐
              │ SQLiteDialect        │   │ PostgreSQLDialect        │
              │ AUTOINCREMENT        │   │ SERIAL                   │
              │ strftime(... 'now')  │   │ CURRENT_TIMESTAMP        │
              │ BEGIN                │   │ (autobegin)              │
              │ no statement timeout │   │ SET LOCAL statement_...  │
              │ no advisory lock     │   │ pg_advisory_lock(?)      │
              └──────────────────────┘   └──────────────────────────┘

Examples:
    >>> from casebook.core.dialect import get_dialect
    >>> d = get_dialect("postgresql")
    >>> d.statement_timeout(2.5)
    'SET LOCAL statement_timeout = 2500'
    >>> get_dialect("sqlite").advisory_lock() is None
    True

Tags:
    dialect, sql, portability, database, casebook
"""

from __future__ import annotations

import sqlite3
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract.

    Methods returning ``None`` mean "not supported by this backend"; callers
    skip the step.
    """

    @property
    def name(self) -> str:
        """Human-readable dialect name (e.g. ``'sqlite'``)."""
        ...

    def auto_increment(self) -> str:
        """Surrogate identity column type."""
        ...

    def timestamp_default_now(self) -> str:
        """Column default that stamps the insert time."""
        ...

    def ledger_ddl(self, table: str) -> str:
        """``CREATE TABLE IF NOT EXISTS`` for the migration ledger."""
        ...

    def begin(self) -> str | None:
        """Statement that opens a transaction, if the driver doesn't autobegin."""
        ...

    def statement_timeout(self, seconds: float) -> str | None:
        """Statement bounding the runtime of the current transaction's statements."""
        ...

    def advisory_lock(self) -> str | None:
        """Blocking session-level lock taking one integer key parameter."""
        ...

    def try_advisory_lock(self) -> str | None:
        """Non-blocking variant returning a boolean row."""
        ...

    def advisory_unlock(self) -> str | None:
        """Release the session-level lock taken with the same key."""
        ...

    def table_exists_query(self) -> str:
        """Query returning a row when the table named by the single parameter exists."""
        ...


# =========================================================================
# Concrete Dialect Implementations
# =========================================================================


def _ledger_ddl(dialect: Dialect, table: str) -> str:
    return (
        f"CREATE TABLE IF NOT EXISTS {table} (\n"
        f"    id {dialect.auto_increment()},\n"
        f"    migration_name VARCHAR(255) UNIQUE NOT NULL,\n"
        f"    applied_at TIMESTAMP {dialect.timestamp_default_now()}\n"
        f")"
    )


class SQLiteDialect:
    """SQLite dialect: explicit ``BEGIN``, no server-side timeout or locks."""

    @property
    def name(self) -> str:
        return "sqlite"

    def auto_increment(self) -> str:
        return "INTEGER PRIMARY KEY AUTOINCREMENT"

    def timestamp_default_now(self) -> str:
        return "DEFAULT (strftime('%Y-%m-%d %H:%M:%f', 'now'))"

    def ledger_ddl(self, table: str) -> str:
        return _ledger_ddl(self, table)

    def begin(self) -> str | None:
        # sqlite3 does not open a transaction before DDL on its own
        return "BEGIN"

    def statement_timeout(self, seconds: float) -> str | None:  # noqa: ARG002
        return None

    def advisory_lock(self) -> str | None:
        return None

    def try_advisory_lock(self) -> str | None:
        return None

    def advisory_unlock(self) -> str | None:
        return None

    def table_exists_query(self) -> str:
        return "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?"


class PostgreSQLDialect:
    """PostgreSQL dialect: ``SERIAL``, transactional DDL, advisory locks."""

    @property
    def name(self) -> str:
        return "postgresql"

    def auto_increment(self) -> str:
        return "SERIAL PRIMARY KEY"

    def timestamp_default_now(self) -> str:
        return "DEFAULT CURRENT_TIMESTAMP"

    def ledger_ddl(self, table: str) -> str:
        return _ledger_ddl(self, table)

    def begin(self) -> str | None:
        return None

    def statement_timeout(self, seconds: float) -> str | None:
        return f"SET LOCAL statement_timeout = {int(seconds * 1000)}"

    def advisory_lock(self) -> str | None:
        return "SELECT pg_advisory_lock(?)"

    def try_advisory_lock(self) -> str | None:
        return "SELECT pg_try_advisory_lock(?)"

    def advisory_unlock(self) -> str | None:
        return "SELECT pg_advisory_unlock(?)"

    def table_exists_query(self) -> str:
        return (
            "SELECT table_name FROM information_schema.tables "
            "WHERE table_schema = current_schema() AND table_name = ?"
        )


# =========================================================================
# Registry / Factory
# =========================================================================

# Pre-instantiated singletons (dialects are stateless)
_DIALECTS: dict[str, Dialect] = {
    "sqlite": SQLiteDialect(),
    "postgresql": PostgreSQLDialect(),
    "postgres": PostgreSQLDialect(),  # alias
}


def get_dialect(source: Any) -> Dialect:
    """Get a dialect by name or detect it from a connection.

    Args:
        source: A dialect name (``'sqlite'``, ``'postgresql'``, ``'postgres'``)
            or a connection object. Connections advertise their backend via a
            ``dialect_name`` attribute; a raw ``sqlite3.Connection`` and
            anything without the attribute resolve to SQLite.

    Raises:
        ValueError: If a name is given that is not recognised.

    Example:
        >>> get_dialect("postgres").name
        'postgresql'
    """
    if isinstance(source, str):
        key = source.lower()
    elif isinstance(source, sqlite3.Connection):
        key = "sqlite"
    else:
        key = str(getattr(source, "dialect_name", "sqlite")).lower()

    if key not in _DIALECTS:
        raise ValueError(
            f"Unknown dialect '{key}'. "
            f"Supported: {sorted(set(_DIALECTS) - {'postgres'})}"
        )
    return _DIALECTS[key]


__all__ = [
    "Dialect",
    "SQLiteDialect",
    "PostgreSQLDialect",
    "get_dialect",
]

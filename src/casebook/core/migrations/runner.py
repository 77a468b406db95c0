"""SQL migration runner.

Reads ``.sql`` files from the migrations directory, tracks applied
migrations in a ledger table, and applies pending ones in filename order.

Each migration body and its ledger row are written in one transaction, so a
file is either applied and recorded or neither. Concurrent ``run()`` calls
serialise through :class:`~casebook.core.migrations.lock.RunLock`.
"""

from __future__ import annotations

import re
import time
import uuid
from pathlib import Path
from typing import Any

from casebook.core.dialect import Dialect, get_dialect
from casebook.core.errors import (
    CasebookError,
    ConfigError,
    MigrationError,
    MigrationTimeoutError,
    StorageError,
    ValidationError,
)
from casebook.core.logging import LogContext, get_logger
from casebook.core.migrations.lock import RunLock
from casebook.core.migrations.models import (
    SQL_EXTENSION,
    MigrationFile,
    MigrationRecord,
    MigrationStatus,
    MigrationSummary,
    migration_name,
)
from casebook.core.migrations.source import LocalMigrationSource
from casebook.core.protocols import MigrationSource

logger = get_logger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# SQLSTATE query_canceled, raised by PostgreSQL when statement_timeout fires
_PG_QUERY_CANCELED = "57014"


class MigrationRunner:
    """Applies SQL migrations from a directory.

    Parameters
    ----------
    conn
        Database handle satisfying :class:`~casebook.core.protocols.Connection`.
        Owned by the caller; the runner never closes it.
    migrations_dir
        Directory containing ``.sql`` files whose names encode their order
        (``001_create_projects.sql``, ``002_create_test_suites.sql``).
    source
        File reader. Defaults to :class:`LocalMigrationSource`.
    dialect
        SQL dialect. Detected from ``conn`` when omitted.
    lock
        Run lock. Defaults to a :class:`RunLock` scoped to ``table``.
    lock_timeout
        Seconds the default lock waits before raising ``MigrationLockedError``.
    table
        Ledger table name.
    statement_timeout
        Per-migration statement timeout in seconds, where the backend
        supports one.

    Example::

        from casebook.core.adapters import SqliteConnection
        from casebook.core.migrations import MigrationRunner

        conn = SqliteConnection("casebook.db")
        runner = MigrationRunner(conn, "database/migrations")
        summary = runner.run()
        print(f"Applied {summary.applied_count} migrations")
    """

    def __init__(
        self,
        conn: Any,
        migrations_dir: Path | str,
        *,
        source: MigrationSource | None = None,
        dialect: Dialect | None = None,
        lock: RunLock | None = None,
        lock_timeout: float | None = None,
        table: str = "migrations",
        statement_timeout: float | None = None,
    ) -> None:
        if not _IDENTIFIER.match(table):
            raise ConfigError(f"Invalid ledger table name {table!r}").with_context(table=table)

        self._conn = conn
        self._migrations_dir = Path(migrations_dir)
        self._source = source or LocalMigrationSource()
        self._dialect = dialect or get_dialect(conn)
        self._table = table
        self._statement_timeout = statement_timeout
        self._lock = lock or RunLock(conn, self._dialect, table, timeout=lock_timeout)
        self.last_error: CasebookError | None = None

        if statement_timeout is not None and self._dialect.statement_timeout(statement_timeout) is None:
            logger.debug(
                "migration.statement_timeout_unsupported",
                dialect=self._dialect.name,
                timeout=statement_timeout,
            )

    @property
    def migrations_dir(self) -> Path:
        return self._migrations_dir

    @property
    def table(self) -> str:
        return self._table

    @property
    def dialect(self) -> Dialect:
        return self._dialect

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(self) -> MigrationSummary:
        """Apply every pending migration in filename order.

        A failing file is logged and counted, and the loop moves on to the
        next one. When any file failed, ``MigrationError`` is raised after
        the loop with the summary attached; the files that succeeded stay
        committed.

        Raises:
            StorageError: The ledger could not be created or read.
            FileSystemError: The directory could not be listed or a file read.
            MigrationLockedError: Another run held the lock past the timeout.
            MigrationError: One or more migrations failed to apply.
        """
        run_id = uuid.uuid4().hex[:12]
        summary = MigrationSummary()

        with LogContext(run_id=run_id), self._lock:
            self.ensure_ledger()
            applied = set(self.list_applied())
            available = self.discover()

            logger.info(
                "migration.run_started",
                directory=str(self._migrations_dir),
                available=len(available),
                already_applied=len(applied),
            )

            for migration in available:
                if migration.name in applied:
                    summary.skipped.append(migration.name)
                    logger.debug("migration.skipped", migration=migration.name)
                    continue

                body = self.read_body(migration)
                if self.apply_one(migration.name, body):
                    summary.applied.append(migration.name)
                else:
                    summary.failed[migration.name] = str(self.last_error)

            logger.info(
                "migration.run_finished",
                applied=summary.applied_count,
                skipped=len(summary.skipped),
                failed=summary.failed_count,
            )

        if summary.failed:
            raise MigrationError(
                f"{summary.failed_count} migrations failed to apply",
                summary=summary,
            ).with_context(table=self._table, run_id=run_id)

        return summary

    def apply_one(self, name: str, body: str) -> bool:
        """Execute *body* and record *name* in the ledger, atomically.

        Returns ``True`` on success. On failure the transaction is rolled
        back, the error is logged and kept in ``last_error``, and ``False``
        is returned.
        """
        self.last_error = None

        if not body.strip():
            self.last_error = ValidationError(
                f"Migration {name} has an empty body", field="body"
            ).with_context(migration=name, table=self._table)
            logger.error("migration.failed", migration=name, error=self.last_error.message)
            return False

        logger.info("migration.applying", migration=name)
        started = time.perf_counter()
        try:
            begin = self._dialect.begin()
            if begin:
                self._conn.execute(begin)
            if self._statement_timeout is not None:
                timeout_sql = self._dialect.statement_timeout(self._statement_timeout)
                if timeout_sql:
                    self._conn.execute(timeout_sql)
            self._conn.executescript(body)
            self._conn.execute(
                f"INSERT INTO {self._table} (migration_name) VALUES (?)",
                (name,),
            )
            self._conn.commit()
        except Exception as e:
            self._rollback_quietly()
            self.last_error = self._classify_failure(name, e)
            logger.error(
                "migration.failed",
                migration=name,
                error=str(e),
                category=self.last_error.category.value,
            )
            return False

        logger.info(
            "migration.applied",
            migration=name,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return True

    def status(self) -> MigrationStatus:
        """Diff the ledger against the directory without writing anything.

        A database that has never been migrated has no ledger yet; it reports
        every file as pending rather than creating the table.
        """
        applied = self.list_applied() if self.ledger_exists() else []
        available = self.list_available()
        applied_set = set(applied)
        return MigrationStatus(
            applied=applied,
            pending=[name for name in available if name not in applied_set],
            total=len(available),
        )

    def pending(self) -> list[str]:
        """Names of migrations on disk that are not in the ledger, in apply order."""
        return self.status().pending

    # ------------------------------------------------------------------
    # Ledger
    # ------------------------------------------------------------------

    def ensure_ledger(self) -> None:
        """Create the ledger table if it doesn't exist."""
        try:
            self._conn.execute(self._dialect.ledger_ddl(self._table))
            self._conn.commit()
        except Exception as e:
            self._rollback_quietly()
            raise StorageError(f"Failed to create ledger table: {e}", cause=e).with_context(
                table=self._table
            ) from e

    def ledger_exists(self) -> bool:
        try:
            self._conn.execute(self._dialect.table_exists_query(), (self._table,))
            row = self._conn.fetchone()
            self._conn.commit()
        except Exception as e:
            self._rollback_quietly()
            raise StorageError(f"Failed to inspect ledger table: {e}", cause=e).with_context(
                table=self._table
            ) from e
        return row is not None

    def get_applied(self) -> list[MigrationRecord]:
        """Ledger rows in the order they were applied."""
        rows = self._query_ledger(f"SELECT migration_name, applied_at FROM {self._table} ORDER BY applied_at, id")
        return [MigrationRecord(name=row[0], applied_at=row[1]) for row in rows]

    def list_applied(self) -> list[str]:
        return [record.name for record in self.get_applied()]

    def _query_ledger(self, sql: str) -> list:
        try:
            self._conn.execute(sql)
            rows = self._conn.fetchall()
            self._conn.commit()
        except Exception as e:
            self._rollback_quietly()
            raise StorageError(f"Failed to read ledger table: {e}", cause=e).with_context(
                table=self._table
            ) from e
        return rows

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def discover(self) -> list[MigrationFile]:
        """``.sql`` files in the directory, sorted by filename as plain strings."""
        entries = self._source.list_entries(str(self._migrations_dir))
        filenames = sorted(entry for entry in entries if entry.endswith(SQL_EXTENSION))
        return [
            MigrationFile(
                name=migration_name(filename),
                filename=filename,
                path=str(self._migrations_dir / filename),
            )
            for filename in filenames
        ]

    def list_available(self) -> list[str]:
        return [migration.name for migration in self.discover()]

    def read_body(self, migration: MigrationFile) -> str:
        return self._source.read_text(migration.path)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _classify_failure(self, name: str, exc: Exception) -> CasebookError:
        if _is_statement_timeout(exc):
            error: CasebookError = MigrationTimeoutError(
                f"Migration {name} exceeded the {self._statement_timeout}s statement timeout",
                cause=exc,
            )
        else:
            error = StorageError(f"Migration {name} failed: {exc}", cause=exc)
        return error.with_context(migration=name, table=self._table)

    def _rollback_quietly(self) -> None:
        try:
            self._conn.rollback()
        except Exception as e:
            logger.warning("migration.rollback_failed", error=str(e))


def _is_statement_timeout(exc: BaseException) -> bool:
    """True when *exc* (or the DBAPI error it wraps) is a cancelled statement."""
    candidates = [exc, getattr(exc, "orig", None), exc.__cause__]
    for candidate in candidates:
        if candidate is None:
            continue
        if getattr(candidate, "pgcode", None) == _PG_QUERY_CANCELED:
            return True
        if type(candidate).__name__ == "QueryCanceled":
            return True
    return False

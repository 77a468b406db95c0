"""
In-memory doubles for the connection and migration-source protocols.

Usage::

    from tests._support.fakes import FakeSource, RecordingConnection
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any

from casebook.core.errors import FileSystemError


def table_names(conn: Any) -> set[str]:
    """Tables in a SQLite database."""
    conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
    return {row[0] for row in conn.fetchall()}


class FakeSource:
    """In-memory :class:`~casebook.core.protocols.MigrationSource`.

    ``files`` maps filename → body. ``None`` for the whole mapping simulates a
    missing directory; ``unreadable`` lists files whose read fails.
    """

    def __init__(
        self,
        files: dict[str, str] | None = None,
        *,
        unreadable: set[str] | None = None,
        list_error: Exception | None = None,
    ) -> None:
        self.files = files
        self.unreadable = unreadable or set()
        self.list_error = list_error
        self.reads: list[str] = []

    def list_entries(self, directory: str) -> list[str]:
        if self.list_error is not None:
            raise self.list_error
        if self.files is None:
            return []
        return list(self.files)

    def read_text(self, path: str) -> str:
        filename = Path(path).name
        self.reads.append(filename)
        if filename in self.unreadable:
            raise FileSystemError(f"Cannot read migration file {path}").with_context(path=path)
        return self.files[filename]


class RecordingConnection:
    """Connection double that records SQL and returns scripted rows.

    ``fail_on`` maps a SQL substring to the exception raised when a statement
    containing it is executed.
    """

    def __init__(
        self,
        *,
        dialect_name: str = "postgresql",
        rows: list[Any] | None = None,
        fail_on: dict[str, Exception] | None = None,
    ) -> None:
        self.dialect_name = dialect_name
        self.executed: list[tuple[str, tuple]] = []
        self.rows = list(rows or [])
        self.fail_on = fail_on or {}
        self.commits = 0
        self.rollbacks = 0

    def _maybe_fail(self, sql: str) -> None:
        for fragment, exc in self.fail_on.items():
            if fragment in sql:
                raise exc

    def execute(self, sql: str, params: tuple = ()) -> Any:
        self.executed.append((sql, tuple(params)))
        self._maybe_fail(sql)
        return self

    def executescript(self, sql: str) -> Any:
        self.executed.append((sql, ()))
        self._maybe_fail(sql)
        return self

    def fetchone(self) -> Any:
        return self.rows.pop(0) if self.rows else None

    def fetchall(self) -> list:
        rows, self.rows = self.rows, []
        return rows

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1

    def close(self) -> None:
        pass

    @property
    def statements(self) -> list[str]:
        return [sql for sql, _ in self.executed]


class BrokenConnection(RecordingConnection):
    """SQLite-flavoured connection whose every statement fails."""

    def __init__(self, message: str = "disk I/O error") -> None:
        super().__init__(dialect_name="sqlite", fail_on={"": sqlite3.OperationalError(message)})

"""SQLite connection adapter.

Wraps a raw :class:`sqlite3.Connection` to satisfy the
:class:`~casebook.core.protocols.Connection` protocol.

A bare ``sqlite3.Connection`` exposes ``execute()`` (returns a cursor) but not
``fetchone()`` / ``fetchall()`` at the connection level, and its own
``executescript()`` commits before running. This adapter keeps a single
cursor and runs migration bodies statement by statement inside the caller's
transaction.

Usage::

    from casebook.core.adapters.sqlite import SqliteConnection

    conn = SqliteConnection(":memory:")
    conn.execute("BEGIN")
    conn.executescript("CREATE TABLE t (id INTEGER); INSERT INTO t VALUES (1);")
    conn.rollback()                # both statements undone
    conn.close()
"""

from __future__ import annotations

import os
import sqlite3
from typing import Any


def split_statements(script: str) -> list[str]:
    """Split a SQL script into complete statements.

    Semicolons inside string literals, comments and trigger bodies do not end
    a statement; ``sqlite3.complete_statement`` decides. An unterminated tail
    is returned as-is so executing it raises the driver's syntax error.

    >>> split_statements("CREATE TABLE a (x); INSERT INTO a VALUES (';');")
    ['CREATE TABLE a (x);', "INSERT INTO a VALUES (';');"]
    """
    statements: list[str] = []
    buffer = ""
    pieces = script.split(";")
    for piece in pieces[:-1]:
        buffer += piece + ";"
        if sqlite3.complete_statement(buffer):
            statement = buffer.strip()
            if statement != ";":
                statements.append(statement)
            buffer = ""
    buffer += pieces[-1]
    if buffer.strip():
        statements.append(buffer.strip())
    return statements


class SqliteConnection:
    """Adapter: ``sqlite3.Connection`` → ``Connection`` protocol.

    Maintains a single cursor so that ``execute`` / ``fetchone`` /
    ``fetchall`` operate on the same result set.
    """

    dialect_name = "sqlite"

    def __init__(self, path: str = ":memory:", *, row_factory: Any = sqlite3.Row) -> None:
        self._path = path
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._conn.row_factory = row_factory
        self._cursor = self._conn.cursor()

    # -- Connection protocol -----------------------------------------------

    def execute(self, sql: str, params: tuple = ()) -> Any:
        self._cursor.execute(sql, params)
        return self._cursor

    def executescript(self, sql: str) -> Any:
        for statement in split_statements(sql):
            self._cursor.execute(statement)
        return self._cursor

    def fetchone(self) -> Any:
        return self._cursor.fetchone()

    def fetchall(self) -> list:
        return self._cursor.fetchall()

    def commit(self) -> None:
        self._conn.commit()

    def rollback(self) -> None:
        self._conn.rollback()

    def close(self) -> None:
        self._conn.close()

    # -- convenience -------------------------------------------------------

    @property
    def database_id(self) -> str:
        """Resolved file path; each in-memory database is its own."""
        if self._path in ("", ":memory:"):
            return f"sqlite::memory:{id(self)}"
        return f"sqlite:{os.path.realpath(self._path)}"

    @property
    def in_transaction(self) -> bool:
        return self._conn.in_transaction

    @property
    def raw(self) -> sqlite3.Connection:
        """Access the underlying ``sqlite3.Connection`` (e.g. for pragmas)."""
        return self._conn

    def __repr__(self) -> str:
        return f"SqliteConnection({self._path!r})"

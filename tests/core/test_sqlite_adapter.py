"""Tests for the SQLite connection adapter."""

from __future__ import annotations

import sqlite3

import pytest

from casebook.core.adapters.sqlite import SqliteConnection, split_statements
from casebook.core.protocols import Connection


class TestSplitStatements:
    def test_simple(self):
        assert split_statements("CREATE TABLE a (x);\nCREATE TABLE b (y);") == [
            "CREATE TABLE a (x);",
            "CREATE TABLE b (y);",
        ]

    def test_semicolon_in_literal(self):
        assert split_statements("INSERT INTO a VALUES (';');") == ["INSERT INTO a VALUES (';');"]

    def test_trigger_body_kept_whole(self):
        script = (
            "CREATE TRIGGER t AFTER INSERT ON a BEGIN\n"
            "  UPDATE a SET x = 1;\n"
            "  UPDATE a SET x = 2;\n"
            "END;"
        )
        assert split_statements(script) == [script]

    def test_unterminated_tail(self):
        assert split_statements("SELECT 1; SELECT 2") == ["SELECT 1;", "SELECT 2"]

    def test_blank_and_stray_semicolons(self):
        assert split_statements("  ;\n;\n") == []
        assert split_statements("") == []


class TestSqliteConnection:
    def test_satisfies_protocol(self, conn):
        assert isinstance(conn, Connection)
        assert conn.dialect_name == "sqlite"

    def test_fetch(self, conn):
        conn.execute("CREATE TABLE t (v INTEGER)")
        conn.execute("INSERT INTO t VALUES (?)", (1,))
        conn.execute("INSERT INTO t VALUES (?)", (2,))
        conn.commit()
        conn.execute("SELECT v FROM t ORDER BY v")
        assert conn.fetchone()[0] == 1
        assert [r[0] for r in conn.fetchall()] == [2]

    def test_executescript_does_not_commit(self, conn):
        conn.execute("BEGIN")
        conn.executescript("CREATE TABLE a (x INTEGER); INSERT INTO a VALUES (1);")
        assert conn.in_transaction
        conn.rollback()
        conn.execute("SELECT name FROM sqlite_master WHERE name = 'a'")
        assert conn.fetchone() is None

    def test_executescript_error_propagates(self, conn):
        with pytest.raises(sqlite3.OperationalError):
            conn.executescript("CREATE TABLE ok (x); SELEC nonsense;")

    def test_raw(self, conn):
        assert isinstance(conn.raw, sqlite3.Connection)

"""Tests for the migration run lock."""

from __future__ import annotations

import threading

import pytest

from casebook.core.adapters.sqlite import SqliteConnection
from casebook.core.dialect import PostgreSQLDialect, SQLiteDialect
from casebook.core.errors import MigrationLockedError, StorageError
from casebook.core.migrations import RunLock, advisory_key, database_identity
from tests._support.fakes import RecordingConnection


class TestAdvisoryKey:
    def test_deterministic(self):
        assert advisory_key("migrations") == advisory_key("migrations")

    def test_signed_64_bit(self):
        key = advisory_key("migrations")
        assert -(2**63) <= key < 2**63

    def test_differs_per_table(self):
        assert advisory_key("migrations") != advisory_key("schema_history")


class TestProcessLock:
    def test_sqlite_takes_no_advisory_lock(self):
        fake = RecordingConnection(dialect_name="sqlite")
        with RunLock(fake, SQLiteDialect(), "lock_sqlite"):
            pass
        assert fake.executed == []

    def test_reentrant_use_after_release(self):
        lock = RunLock(None, SQLiteDialect(), "lock_reuse")
        with lock:
            pass
        with lock:
            pass

    def test_second_holder_times_out(self):
        holder = RunLock(None, SQLiteDialect(), "lock_contended")
        waiter = RunLock(None, SQLiteDialect(), "lock_contended", timeout=0.05)
        with holder:
            with pytest.raises(MigrationLockedError) as exc:
                waiter.acquire()
        assert exc.value.retryable is True
        assert exc.value.context.table == "lock_contended"

    def test_different_tables_do_not_contend(self):
        with RunLock(None, SQLiteDialect(), "lock_one"):
            with RunLock(None, SQLiteDialect(), "lock_two", timeout=0.05):
                pass

    def test_waiter_proceeds_after_release(self):
        holder = RunLock(None, SQLiteDialect(), "lock_handoff")
        order: list[str] = []
        holder.acquire()

        def wait_then_record() -> None:
            with RunLock(None, SQLiteDialect(), "lock_handoff", timeout=5):
                order.append("waiter")

        t = threading.Thread(target=wait_then_record)
        t.start()
        order.append("holder")
        holder.release()
        t.join(timeout=5)
        assert order == ["holder", "waiter"]


class TestLockScope:
    def test_different_databases_do_not_contend(self, tmp_path):
        first = SqliteConnection(str(tmp_path / "first.db"))
        second = SqliteConnection(str(tmp_path / "second.db"))
        try:
            with RunLock(first, SQLiteDialect(), "lock_per_database"):
                with RunLock(second, SQLiteDialect(), "lock_per_database", timeout=0.05):
                    pass
        finally:
            first.close()
            second.close()

    def test_same_database_file_contends(self, tmp_path):
        path = str(tmp_path / "shared.db")
        first, second = SqliteConnection(path), SqliteConnection(path)
        try:
            with RunLock(first, SQLiteDialect(), "lock_shared_file"):
                with pytest.raises(MigrationLockedError):
                    RunLock(second, SQLiteDialect(), "lock_shared_file", timeout=0.05).acquire()
        finally:
            first.close()
            second.close()

    def test_in_memory_databases_are_distinct(self):
        first, second = SqliteConnection(), SqliteConnection()
        try:
            assert database_identity(first) != database_identity(second)
        finally:
            first.close()
            second.close()

    def test_identity_falls_back_to_connection_object(self):
        fake = RecordingConnection()
        assert database_identity(fake) == f"connection:{id(fake)}"
        assert RunLock(fake, SQLiteDialect(), "lock_fallback").scope == database_identity(fake)

    def test_explicit_scope(self):
        with RunLock(None, SQLiteDialect(), "lock_scoped", scope="db-a"):
            with RunLock(None, SQLiteDialect(), "lock_scoped", scope="db-b", timeout=0.05):
                pass

class TestAdvisoryLock:
    def test_blocking_lock_and_unlock(self):
        fake = RecordingConnection()
        lock = RunLock(fake, PostgreSQLDialect(), "pg_blocking")
        with lock:
            assert fake.executed == [("SELECT pg_advisory_lock(?)", (lock.key,))]
        assert fake.executed[-1] == ("SELECT pg_advisory_unlock(?)", (lock.key,))

    def test_try_lock_succeeds(self):
        fake = RecordingConnection(rows=[(True,)])
        lock = RunLock(fake, PostgreSQLDialect(), "pg_try", timeout=1)
        with lock:
            pass
        assert fake.statements == ["SELECT pg_try_advisory_lock(?)", "SELECT pg_advisory_unlock(?)"]

    def test_try_lock_polls_until_available(self):
        fake = RecordingConnection(rows=[(False,), (False,), (True,)])
        with RunLock(fake, PostgreSQLDialect(), "pg_poll", timeout=5, poll_interval=0.001):
            pass
        assert fake.statements.count("SELECT pg_try_advisory_lock(?)") == 3

    def test_try_lock_timeout_releases_process_lock(self):
        fake = RecordingConnection(rows=[(False,)] * 1000)
        lock = RunLock(fake, PostgreSQLDialect(), "pg_busy", timeout=0.05, poll_interval=0.01)
        with pytest.raises(MigrationLockedError):
            lock.acquire()
        assert "SELECT pg_advisory_unlock(?)" not in fake.statements
        # Process layer was released on failure
        with RunLock(fake, SQLiteDialect(), "pg_busy", timeout=0.05):
            pass

    def test_lock_query_failure_is_storage_error(self):
        fake = RecordingConnection(fail_on={"pg_advisory_lock": RuntimeError("connection reset")})
        with pytest.raises(StorageError):
            RunLock(fake, PostgreSQLDialect(), "pg_broken").acquire()
        with RunLock(fake, SQLiteDialect(), "pg_broken", timeout=0.05):
            pass

    def test_unlock_failure_is_not_raised(self):
        fake = RecordingConnection(fail_on={"pg_advisory_unlock": RuntimeError("connection reset")})
        with RunLock(fake, PostgreSQLDialect(), "pg_unlock_fails"):
            pass
        with RunLock(fake, SQLiteDialect(), "pg_unlock_fails", timeout=0.05):
            pass


class _Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.now += seconds


class _SlowProcessLock:
    """Process lock that takes *delay* clock seconds to acquire."""

    def __init__(self, clock: _Clock, delay: float) -> None:
        self._clock = clock
        self._delay = delay

    def acquire(self, timeout: float = -1) -> bool:
        self._clock.now += self._delay
        return True

    def release(self) -> None:
        pass


class TestSharedDeadline:
    def test_timeout_bounds_both_layers(self, monkeypatch):
        clock = _Clock()
        monkeypatch.setattr("casebook.core.migrations.lock.time", clock)
        monkeypatch.setattr(
            "casebook.core.migrations.lock._process_lock",
            lambda scope, name: _SlowProcessLock(clock, 0.9),
        )
        fake = RecordingConnection(rows=[(False,)] * 100)
        lock = RunLock(fake, PostgreSQLDialect(), "pg_shared_deadline", timeout=1.0, poll_interval=0.25)

        with pytest.raises(MigrationLockedError):
            lock.acquire()

        assert clock.now == pytest.approx(1.0)
        assert fake.statements.count("SELECT pg_try_advisory_lock(?)") == 2

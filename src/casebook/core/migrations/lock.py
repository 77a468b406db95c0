"""Run lock serialising concurrent ``MigrationRunner.run()`` calls.

Two layers, taken in order and released in reverse:

1. An in-process ``threading.Lock`` per database and ledger table. Two HTTP
   requests hitting ``POST /migrations/run`` in the same worker queue up
   here; runners against different databases do not contend.
2. A database advisory lock where the dialect offers one (PostgreSQL
   ``pg_advisory_lock``), so runs from separate processes or hosts sharing
   the database also serialise. The key is derived from the ledger table
   name, so every deployment pointing at the same ledger contends on the
   same lock.

Both layers share one deadline, so ``timeout`` bounds the total wait.

The advisory lock is session-scoped and survives the per-migration commits;
it is released explicitly, or by the server when the connection closes.
"""

from __future__ import annotations

import hashlib
import threading
import time
from typing import Any

from casebook.core.dialect import Dialect
from casebook.core.errors import MigrationLockedError, StorageError
from casebook.core.logging import get_logger

logger = get_logger(__name__)

_PROCESS_LOCKS: dict[tuple[str, str], threading.Lock] = {}
_PROCESS_LOCKS_GUARD = threading.Lock()


def _process_lock(scope: str, name: str) -> threading.Lock:
    with _PROCESS_LOCKS_GUARD:
        return _PROCESS_LOCKS.setdefault((scope, name), threading.Lock())


def database_identity(conn: Any) -> str:
    """Key identifying the database behind *conn*.

    Adapters expose ``database_id`` (resolved SQLite path, masked URL).
    Anything else is identified by the connection object itself.
    """
    identity = getattr(conn, "database_id", None)
    return identity if identity is not None else f"connection:{id(conn)}"


def advisory_key(name: str) -> int:
    """Stable signed 64-bit key for ``pg_advisory_lock``.

    >>> advisory_key("migrations") == advisory_key("migrations")
    True
    """
    digest = hashlib.sha256(f"casebook.migrations:{name}".encode()).digest()
    return int.from_bytes(digest[:8], "big", signed=True)


class RunLock:
    """Context manager holding both lock layers for the duration of a run.

    Args:
        conn: Connection the advisory lock is taken on.
        dialect: Decides whether an advisory lock is available.
        name: Ledger table name; scopes both layers.
        timeout: Total seconds to wait for both layers. ``None`` waits forever.
        poll_interval: Sleep between advisory-lock attempts when a timeout is set.
        scope: In-process lock scope. Defaults to :func:`database_identity`.
    """

    def __init__(
        self,
        conn: Any,
        dialect: Dialect,
        name: str = "migrations",
        *,
        timeout: float | None = None,
        poll_interval: float = 0.25,
        scope: str | None = None,
    ) -> None:
        self._conn = conn
        self._dialect = dialect
        self._name = name
        self._timeout = timeout
        self._poll_interval = poll_interval
        self._scope = scope if scope is not None else database_identity(conn)
        self._local = _process_lock(self._scope, name)
        self._key = advisory_key(name)
        self._advisory_held = False

    @property
    def key(self) -> int:
        return self._key

    @property
    def scope(self) -> str:
        return self._scope

    def acquire(self) -> None:
        deadline = None if self._timeout is None else time.monotonic() + self._timeout
        waited = self._local.acquire(timeout=-1 if self._timeout is None else self._timeout)
        if not waited:
            raise MigrationLockedError(
                f"Timed out after {self._timeout}s waiting for another migration run in this process"
            ).with_context(table=self._name)
        try:
            self._acquire_advisory(deadline)
        except BaseException:
            self._local.release()
            raise
        logger.debug("migration.lock_acquired", table=self._name, advisory=self._advisory_held)

    def release(self) -> None:
        try:
            self._release_advisory()
        finally:
            self._local.release()
            logger.debug("migration.lock_released", table=self._name)

    def __enter__(self) -> RunLock:
        self.acquire()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.release()

    # ------------------------------------------------------------------
    # Advisory layer
    # ------------------------------------------------------------------

    def _acquire_advisory(self, deadline: float | None) -> None:
        lock_sql = self._dialect.advisory_lock()
        if lock_sql is None:
            return

        try:
            if deadline is None:
                self._conn.execute(lock_sql, (self._key,))
                self._conn.commit()
                self._advisory_held = True
                return

            try_sql = self._dialect.try_advisory_lock()
            while True:
                self._conn.execute(try_sql, (self._key,))
                row = self._conn.fetchone()
                self._conn.commit()
                if row is not None and row[0]:
                    self._advisory_held = True
                    return
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                time.sleep(min(self._poll_interval, remaining))
        except Exception as e:
            raise StorageError(f"Failed to acquire migration advisory lock: {e}", cause=e).with_context(
                table=self._name
            ) from e

        raise MigrationLockedError(
            f"Timed out after {self._timeout}s waiting for the migration advisory lock"
        ).with_context(table=self._name, key=self._key)

    def _release_advisory(self) -> None:
        if not self._advisory_held:
            return
        self._advisory_held = False
        try:
            self._conn.execute(self._dialect.advisory_unlock(), (self._key,))
            self._conn.commit()
        except Exception as e:
            # The server drops session locks when the connection closes.
            logger.warning("migration.lock_release_failed", table=self._name, error=str(e))

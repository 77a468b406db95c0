"""SQLAlchemy engine factory and Connection bridge.

``SAConnectionBridge`` wraps a SQLAlchemy ``Connection`` so PostgreSQL
satisfies the same :class:`~casebook.core.protocols.Connection` protocol as
SQLite. It holds one checked-out DBAPI connection for its whole lifetime:
PostgreSQL advisory locks are session-scoped, so lock and unlock must travel
over the same connection.

Tags:
    casebook, sqlalchemy, engine, bridge, connection, postgresql
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import create_engine as _sa_create_engine
from sqlalchemy import text
from sqlalchemy.engine import Connection as SAConnection
from sqlalchemy.engine import Engine


def create_casebook_engine(
    url: str,
    *,
    echo: bool = False,
    pool_size: int | None = None,
    pool_timeout: int | None = None,
    **kwargs: Any,
) -> Engine:
    """Create a SQLAlchemy engine with sane defaults.

    Parameters
    ----------
    url:
        Database URL (``postgresql://…``, ``postgresql+psycopg2://…``).
    echo:
        If ``True``, log all SQL to stdout.
    pool_size, pool_timeout:
        Connection pool parameters.
    """
    pool_kwargs: dict[str, Any] = {"pool_pre_ping": True}
    if pool_size is not None:
        pool_kwargs["pool_size"] = pool_size
    if pool_timeout is not None:
        pool_kwargs["pool_timeout"] = pool_timeout

    return _sa_create_engine(url, echo=echo, **pool_kwargs, **kwargs)


def _rewrite_placeholders(sql: str) -> str:
    """Convert positional ``?`` placeholders to ``:p0, :p1, …`` for ``text()``."""
    rewritten, idx = [], 0
    for ch in sql:
        if ch == "?":
            rewritten.append(f":p{idx}")
            idx += 1
        else:
            rewritten.append(ch)
    return "".join(rewritten)


class SAConnectionBridge:
    """Adapter that makes a SQLAlchemy ``Connection`` look like ``casebook.core.protocols.Connection``.

    Implements: ``execute``, ``executescript``, ``fetchone``, ``fetchall``,
    ``commit``, ``rollback``, ``close``.
    """

    def __init__(self, connection: SAConnection, *, engine: Engine | None = None) -> None:
        self._conn = connection
        self._engine = engine
        self._last_result: Any = None

    @classmethod
    def from_url(cls, url: str, **engine_kwargs: Any) -> SAConnectionBridge:
        engine = create_casebook_engine(url, **engine_kwargs)
        return cls(engine.connect(), engine=engine)

    @property
    def dialect_name(self) -> str:
        return self._conn.dialect.name

    @property
    def database_id(self) -> str:
        return self._conn.engine.url.render_as_string(hide_password=True)

    # --- execute ---

    def execute(self, sql: str, parameters: Sequence[Any] | None = None) -> SAConnectionBridge:
        if parameters:
            mapping = {f"p{i}": v for i, v in enumerate(parameters)}
            self._last_result = self._conn.execute(text(_rewrite_placeholders(sql)), mapping)
        else:
            self._last_result = self._conn.execute(text(sql))
        return self

    def executescript(self, sql: str) -> SAConnectionBridge:
        # Sent verbatim as one batch; no bind-parameter parsing of the body.
        self._last_result = self._conn.exec_driver_sql(
            sql, execution_options={"no_parameters": True}
        )
        return self

    # --- fetch ---

    def fetchone(self) -> tuple[Any, ...] | None:
        if self._last_result is None or not self._last_result.returns_rows:
            return None
        row = self._last_result.fetchone()
        return tuple(row) if row is not None else None

    def fetchall(self) -> list[tuple[Any, ...]]:
        if self._last_result is None or not self._last_result.returns_rows:
            return []
        return [tuple(r) for r in self._last_result.fetchall()]

    # --- transaction ---

    def commit(self) -> None:
        self._conn.commit()

    def rollback(self) -> None:
        self._conn.rollback()

    def close(self) -> None:
        self._conn.close()
        if self._engine is not None:
            self._engine.dispose()

    def __repr__(self) -> str:
        return f"SAConnectionBridge({self._conn.engine.url!r})"

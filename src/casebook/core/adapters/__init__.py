"""Connection adapters satisfying :class:`casebook.core.protocols.Connection`.

Modules
-------
sqlite      SqliteConnection over stdlib ``sqlite3`` (always available)
sa_bridge   SAConnectionBridge over a SQLAlchemy engine (PostgreSQL, psycopg2)
"""

from casebook.core.adapters.sqlite import SqliteConnection, split_statements

__all__ = ["SqliteConnection", "split_statements"]

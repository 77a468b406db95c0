"""
Shared pytest fixtures and configuration for casebook tests.

This module provides:
- Auto-marking of unit / integration tests by location
- Root-logger and structlog reset after every test
- SQLite connection and migrations-directory fixtures

Usage:
    Fixtures are auto-discovered by pytest::

        def test_something(conn, migrations_dir, write_migration):
            write_migration("001_init.sql", "CREATE TABLE t (id INTEGER);")
"""

import logging
import sys
import textwrap
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
import structlog

# Ensure casebook package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from casebook.core.adapters.sqlite import SqliteConnection


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)

        if "integration" in str(test_path):
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Logging isolation
# =============================================================================


@pytest.fixture(autouse=True)
def restore_logging() -> Generator[None, None, None]:
    """Undo any configure_logging() call: root handlers, level and structlog."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


# =============================================================================
# Database / filesystem fixtures
# =============================================================================


@pytest.fixture()
def conn() -> Generator[SqliteConnection, None, None]:
    """In-memory SQLite connection."""
    c = SqliteConnection(":memory:")
    yield c
    c.close()


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "casebook.db"


@pytest.fixture()
def migrations_dir(tmp_path: Path) -> Path:
    """Empty migrations directory."""
    d = tmp_path / "migrations"
    d.mkdir()
    return d


@pytest.fixture()
def write_migration(migrations_dir: Path) -> Callable[[str, str], Path]:
    """Write ``filename`` with dedented ``body`` into the migrations directory."""

    def _write(filename: str, body: str) -> Path:
        path = migrations_dir / filename
        path.write_text(textwrap.dedent(body), encoding="utf-8")
        return path

    return _write


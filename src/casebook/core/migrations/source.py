"""Local file-system source for migration files."""

from __future__ import annotations

from pathlib import Path

from casebook.core.errors import FileSystemError
from casebook.core.logging import get_logger

logger = get_logger(__name__)


class LocalMigrationSource:
    """Reads migration files from a directory on local disk.

    Satisfies :class:`~casebook.core.protocols.MigrationSource`. A missing
    directory lists as empty so environments without migrations still start;
    every other OS error becomes a :class:`FileSystemError`.
    """

    encoding = "utf-8"

    def list_entries(self, directory: str) -> list[str]:
        try:
            return [entry.name for entry in Path(directory).iterdir()]
        except FileNotFoundError:
            logger.warning("migrations.directory_missing", directory=str(directory))
            return []
        except OSError as e:
            raise FileSystemError(
                f"Cannot list migrations directory {directory}: {e}", cause=e
            ).with_context(path=str(directory)) from e

    def read_text(self, path: str) -> str:
        try:
            return Path(path).read_text(encoding=self.encoding)
        except (OSError, UnicodeDecodeError) as e:
            raise FileSystemError(
                f"Cannot read migration file {path}: {e}", cause=e
            ).with_context(path=str(path)) from e

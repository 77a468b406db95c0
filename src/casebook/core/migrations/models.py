"""Value types produced by the migration runner."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

SQL_EXTENSION = ".sql"


def migration_name(filename: str) -> str:
    """Logical migration name: the filename with its ``.sql`` extension removed.

    >>> migration_name("005_add_index.sql")
    '005_add_index'
    """
    if filename.endswith(SQL_EXTENSION):
        return filename[: -len(SQL_EXTENSION)]
    return filename


@dataclass(frozen=True)
class MigrationRecord:
    """Ledger row for one applied migration."""

    name: str
    applied_at: Any


@dataclass(frozen=True)
class MigrationFile:
    """A migration discovered on disk. The body is read at apply time."""

    name: str
    filename: str
    path: str


@dataclass
class MigrationSummary:
    """Outcome of a ``run()``."""

    applied: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def applied_count(self) -> int:
        return len(self.applied)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    @property
    def success(self) -> bool:
        return not self.failed

    def to_dict(self) -> dict[str, int]:
        """Payload shape used by the HTTP and CLI surfaces."""
        return {"applied": self.applied_count, "failed": self.failed_count}


@dataclass(frozen=True)
class MigrationStatus:
    """Read-only diff between the ledger and the migrations directory."""

    applied: list[str]
    pending: list[str]
    total: int

    @property
    def applied_count(self) -> int:
        return len(self.applied)

    @property
    def pending_count(self) -> int:
        return len(self.pending)

    def to_dict(self) -> dict[str, Any]:
        return {
            "applied": list(self.applied),
            "pending": list(self.pending),
            "total": self.total,
            "appliedCount": self.applied_count,
            "pendingCount": self.pending_count,
        }

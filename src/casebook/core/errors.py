"""
Structured error types for casebook.

Provides a small hierarchy of typed errors carrying a category, a retry flag,
structured context and the underlying cause. The migration runner, the ops
layer and the HTTP/CLI surfaces all speak this vocabulary, so a failure raised
deep inside a database driver arrives at the edge with enough metadata to be
logged, counted and translated into a response.

Manifesto:
    - **Typed hierarchy:** Storage, file-system and migration failures are
      distinguishable without string matching
    - **Explicit retry semantics:** Each error knows if it's retryable
    - **Rich context:** Errors carry the migration name, table, path, etc.
    - **Error chaining:** The driver exception is preserved as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                        CasebookError                            │
        │  (category, retryable, context, cause)                          │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                 │
        │  StorageError        FileSystemError      ValidationError       │
        │  (STORAGE)           (FILESYSTEM)         (VALIDATION)          │
        │       │                                                         │
        │  DatabaseConnectionError                                        │
        │  (DATABASE, retryable)                                          │
        │                                                                 │
        │  ConfigError         MigrationError       MigrationTimeoutError │
        │  (CONFIG)            (MIGRATION)          (TIMEOUT)             │
        │                                                                 │
        │  MigrationLockedError                                           │
        │  (LOCKED, retryable)                                            │
        └─────────────────────────────────────────────────────────────────┘

Examples:
    Wrapping a driver error:

    >>> try:
    ...     raise RuntimeError("relation does not exist")
    ... except RuntimeError as e:
    ...     err = StorageError("Failed to read ledger", cause=e)
    >>> err.category
    <ErrorCategory.STORAGE: 'STORAGE'>
    >>> err.retryable
    False

    Adding context fluently:

    >>> err = FileSystemError("Cannot read migration").with_context(path="/srv/m/001.sql")
    >>> err.context.path
    '/srv/m/001.sql'

Guardrails:
    ❌ DON'T: Raise bare Exception from the runner
    ✅ DO: Use the appropriate CasebookError subclass

    ❌ DON'T: Swallow the driver exception
    ✅ DO: Pass it as cause= for error chaining

Tags:
    error-handling, exception-hierarchy, migrations, casebook
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and routing.

    Categories are grouped by their typical retry behavior:
    - **Infrastructure:** DATABASE, STORAGE, FILESYSTEM
    - **Data:** VALIDATION
    - **Configuration (never retryable):** CONFIG
    - **Migration lifecycle:** MIGRATION, TIMEOUT, LOCKED
    - **Internal:** INTERNAL

    Examples:
        >>> ErrorCategory.STORAGE.value
        'STORAGE'
    """

    # Infrastructure errors
    DATABASE = "DATABASE"         # Connection, pool
    STORAGE = "STORAGE"           # Query, constraint, SQL syntax
    FILESYSTEM = "FILESYSTEM"     # Listing or reading migration files

    # Data errors
    VALIDATION = "VALIDATION"

    # Configuration errors (never retryable)
    CONFIG = "CONFIG"

    # Migration lifecycle
    MIGRATION = "MIGRATION"       # One or more migrations failed in a run
    TIMEOUT = "TIMEOUT"           # Statement timeout while applying
    LOCKED = "LOCKED"             # Another run holds the lock

    # Internal errors
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured metadata context for errors.

    Typed fields cover what the migration runner knows about a failure; any
    other key/value pairs land in ``metadata``. ``to_dict()`` drops unset
    fields so log lines stay short.

    Examples:
        >>> ctx = ErrorContext(migration="001_init", table="migrations")
        >>> ctx.to_dict()
        {'migration': '001_init', 'table': 'migrations'}

    Attributes:
        migration: Logical migration name (filename without ``.sql``)
        table: Ledger table name
        path: File-system path being listed or read
        run_id: Identifier of the run in progress
        metadata: Additional key-value pairs
    """

    migration: str | None = None
    table: str | None = None
    path: str | None = None
    run_id: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["migration", "table", "path", "run_id"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class CasebookError(Exception):
    """
    Base exception for all casebook errors.

    Subclasses set ``default_category`` and ``default_retryable`` so call
    sites only pass what differs from the defaults.

    Examples:
        >>> error = CasebookError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.to_dict()["error_type"]
        'CasebookError'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> CasebookError:
        """
        Add context to this error (fluent API).

        Usage:
            raise StorageError("Insert failed").with_context(
                migration="002_seed", table="migrations"
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# STORAGE ERRORS
# =============================================================================


class StorageError(CasebookError):
    """
    Failure reported by the database handle.

    Connection loss, constraint violation, SQL syntax error in a migration
    body: anything the driver raises is wrapped in a StorageError.
    """

    default_category = ErrorCategory.STORAGE
    default_retryable = False


class DatabaseConnectionError(StorageError):
    """Database connection could not be established."""

    default_category = ErrorCategory.DATABASE
    default_retryable = True


# =============================================================================
# FILE SYSTEM ERRORS
# =============================================================================


class FileSystemError(CasebookError):
    """Failure to list or read migration files."""

    default_category = ErrorCategory.FILESYSTEM
    default_retryable = False


# =============================================================================
# VALIDATION / CONFIG ERRORS
# =============================================================================


class ValidationError(CasebookError):
    """
    Input validation error.

    Never retryable - the input must be fixed.
    """

    default_category = ErrorCategory.VALIDATION
    default_retryable = False

    def __init__(self, message: str, *, field: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.field = field

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        return result


class ConfigError(CasebookError):
    """
    Configuration error.

    Never retryable - configuration must be fixed.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


# =============================================================================
# MIGRATION ERRORS
# =============================================================================


class MigrationError(CasebookError):
    """
    One or more migrations failed during a run.

    Raised by ``MigrationRunner.run()`` after the loop has finished. The
    migrations that succeeded remain committed; ``summary`` tells the caller
    which ones.
    """

    default_category = ErrorCategory.MIGRATION
    default_retryable = False

    def __init__(self, message: str, *, summary: Any = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.summary = summary

    @property
    def failed_count(self) -> int:
        return getattr(self.summary, "failed_count", 0)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.summary is not None:
            result["applied"] = getattr(self.summary, "applied_count", 0)
            result["failed"] = self.failed_count
        return result


class MigrationTimeoutError(CasebookError):
    """A migration exceeded its statement timeout."""

    default_category = ErrorCategory.TIMEOUT
    default_retryable = False


class MigrationLockedError(CasebookError):
    """Another run holds the migration lock."""

    default_category = ErrorCategory.LOCKED
    default_retryable = True


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "CasebookError",
    "StorageError",
    "DatabaseConnectionError",
    "FileSystemError",
    "ValidationError",
    "ConfigError",
    "MigrationError",
    "MigrationTimeoutError",
    "MigrationLockedError",
]

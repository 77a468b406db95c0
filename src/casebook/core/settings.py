"""Shared base settings for casebook services.

The API server and the CLI read the same environment-driven configuration.
``CasebookBaseSettings`` carries what both need (log level, database URL,
where the migration files live); ``casebook.api.settings`` adds the HTTP
transport knobs on top.

Features:
    - **Pydantic validation:** Type-checked at startup
    - **Environment-driven:** ``CASEBOOK_`` prefix, ``.env`` file support
    - **Extra ignore:** Unknown env vars don't cause startup failures

Examples:
    >>> from casebook.core.settings import CasebookBaseSettings
    >>> s = CasebookBaseSettings(database_url="sqlite:///:memory:")
    >>> s.migrations_table
    'migrations'

Tags:
    settings, configuration, pydantic, environment, casebook
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Relative to the working directory
DEFAULT_MIGRATIONS_DIR = Path("database") / "migrations"


class CasebookBaseSettings(BaseSettings):
    """Common settings shared by the API and the CLI.

    Fields
    ──────
    debug                        : Enable debug mode (error detail in responses)
    log_level                    : Structlog log level
    log_json                     : Force JSON (True) / console (False) logs; None = auto
    database_url                 : Connection URL (sqlite:///..., postgresql://...)
    data_dir                     : Base directory for relative SQLite paths
    migrations_dir               : Directory holding ``*.sql`` migration files
    migrations_table             : Ledger table name
    migration_statement_timeout  : Per-migration statement timeout in seconds
    migration_lock_timeout       : Seconds to wait for the run lock; None = block
    """

    model_config = SettingsConfigDict(
        env_prefix="CASEBOOK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool | None = None

    # ── Storage ──────────────────────────────────────────────────
    database_url: str = Field(
        default="sqlite:///casebook.db",
        description="SQLite path/URL or PostgreSQL URL",
    )
    data_dir: str | None = Field(
        default=None,
        description="Base directory for relative SQLite paths",
    )

    # ── Migrations ───────────────────────────────────────────────
    migrations_dir: Path = Field(
        default=DEFAULT_MIGRATIONS_DIR,
        description="Directory holding *.sql migration files",
    )
    migrations_table: str = Field(default="migrations", description="Ledger table name")
    migration_statement_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Per-migration statement timeout in seconds (PostgreSQL only)",
    )
    migration_lock_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Seconds to wait for the run lock before giving up",
    )

    @field_validator("migrations_table")
    @classmethod
    def _check_table_name(cls, value: str) -> str:
        if not value.replace("_", "").isalnum() or value[0].isdigit():
            raise ValueError(f"invalid ledger table name: {value!r}")
        return value

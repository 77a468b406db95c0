"""
API-specific settings.

Extends :class:`~casebook.core.settings.CasebookBaseSettings` with the
parameters that govern the REST transport (bind address, prefix, CORS) and
whether migrations run when the server starts.

All values can be overridden via environment variables prefixed with
``CASEBOOK_``.
"""

from __future__ import annotations

from pydantic import Field

from casebook.core.settings import CasebookBaseSettings


class CasebookAPISettings(CasebookBaseSettings):
    """Settings for the casebook REST API.

    Order of precedence (highest → lowest):
        1. Environment variables (``CASEBOOK_API_PREFIX``, etc.)
        2. ``.env`` file
        3. Defaults below
    """

    # ── Server ───────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=3001, description="Bind port")

    # ── API ──────────────────────────────────────────────────────────────
    api_prefix: str = Field(default="/api", description="URL prefix for all endpoints")
    api_title: str = Field(default="casebook API", description="OpenAPI title")
    api_version: str = Field(default="0.1.0", description="OpenAPI version string")

    # ── CORS ─────────────────────────────────────────────────────────────
    cors_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")

    # ── Startup ──────────────────────────────────────────────────────────
    auto_migrate: bool = Field(
        default=True,
        description="Apply pending migrations before serving; refuse to start if any fail",
    )

"""Migration endpoint schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class MigrationStatusSchema(BaseModel):
    """Applied vs pending migrations. Serialised with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    applied: list[str] = Field(description="Applied migration names, oldest first")
    pending: list[str] = Field(description="Pending migration names, in apply order")
    total: int = Field(description="Number of migration files on disk")
    applied_count: int
    pending_count: int


class MigrationCountsSchema(BaseModel):
    applied: int = Field(description="Migrations applied by this run")
    failed: int = Field(description="Migrations that failed in this run")


class MigrationRunSchema(BaseModel):
    """Payload of ``POST /migrations/run``."""

    message: str = "Migrations completed"
    result: MigrationCountsSchema
    dry_run: bool | None = Field(default=None, description="Set when nothing was applied")
    pending: list[str] | None = Field(default=None, description="Would-be applied names (dry run)")

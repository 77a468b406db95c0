"""Tests for the migration operations."""

from __future__ import annotations

import pytest

from casebook.core.dialect import SQLiteDialect
from casebook.core.migrations import MigrationStatus, MigrationSummary, RunLock
from casebook.ops.context import OperationContext
from casebook.ops.migrations import check_migration_status, run_migrations
from casebook.ops.requests import MigrationStatusRequest, RunMigrationsRequest
from tests._support.fakes import BrokenConnection


@pytest.fixture()
def ctx(conn) -> OperationContext:
    return OperationContext(conn=conn, caller="test")


@pytest.fixture()
def files(write_migration):
    write_migration("001_create_projects.sql", "CREATE TABLE projects (id INTEGER PRIMARY KEY, name TEXT);")
    write_migration("002_create_test_suites.sql", "CREATE TABLE test_suites (id INTEGER PRIMARY KEY);")


class TestCheckMigrationStatus:
    def test_ok(self, ctx, migrations_dir, files):
        result = check_migration_status(ctx, MigrationStatusRequest(migrations_dir=migrations_dir))
        assert result.success
        assert isinstance(result.data, MigrationStatus)
        assert result.data.pending == ["001_create_projects", "002_create_test_suites"]
        assert result.elapsed_ms >= 0

    def test_storage_failure(self, migrations_dir):
        ctx = OperationContext(conn=BrokenConnection())
        result = check_migration_status(ctx, MigrationStatusRequest(migrations_dir=migrations_dir))
        assert not result.success
        assert result.error.code == "STORAGE"
        assert result.error.message.startswith("Failed to check migration status")

    def test_filesystem_failure(self, ctx, tmp_path):
        not_a_dir = tmp_path / "migrations.sql"
        not_a_dir.write_text("SELECT 1;")
        result = check_migration_status(ctx, MigrationStatusRequest(migrations_dir=not_a_dir))
        assert result.error.code == "FILESYSTEM"


class TestRunMigrations:
    def test_ok(self, ctx, migrations_dir, files):
        result = run_migrations(ctx, RunMigrationsRequest(migrations_dir=migrations_dir))
        assert result.success
        assert isinstance(result.data, MigrationSummary)
        assert result.data.to_dict() == {"applied": 2, "failed": 0}
        assert result.to_dict()["data"] == {"applied": 2, "failed": 0}

    def test_dry_run_applies_nothing(self, conn, migrations_dir, files):
        ctx = OperationContext(conn=conn, dry_run=True)
        result = run_migrations(ctx, RunMigrationsRequest(migrations_dir=migrations_dir))
        assert result.success
        assert result.data.applied_count == 0
        assert result.metadata == {
            "dry_run": True,
            "pending": ["001_create_projects", "002_create_test_suites"],
        }
        status = check_migration_status(OperationContext(conn=conn), MigrationStatusRequest(migrations_dir=migrations_dir))
        assert status.data.applied == []

    def test_migration_failure(self, ctx, migrations_dir, files, write_migration):
        write_migration("003_broken.sql", "CREATE TABLE (;")
        result = run_migrations(ctx, RunMigrationsRequest(migrations_dir=migrations_dir))
        assert not result.success
        assert result.error.code == "MIGRATION_FAILED"
        assert result.error.details["applied"] == 2
        assert result.error.details["failed"] == 1
        assert list(result.error.details["failures"]) == ["003_broken"]
        assert "1 migrations failed to apply" in result.error.message

    def test_locked(self, ctx, migrations_dir, files):
        with RunLock(ctx.conn, SQLiteDialect(), "ops_locked_ledger"):
            result = run_migrations(
                ctx,
                RunMigrationsRequest(migrations_dir=migrations_dir, table="ops_locked_ledger", lock_timeout=0.05),
            )
        assert result.error.code == "LOCKED"
        assert result.error.retryable is True

    def test_invalid_table_is_internal(self, ctx, migrations_dir):
        result = run_migrations(ctx, RunMigrationsRequest(migrations_dir=migrations_dir, table="bad name"))
        assert result.error.code == "INTERNAL"

    def test_default_request(self, ctx, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        result = run_migrations(ctx)
        assert result.success
        assert result.data.applied_count == 0

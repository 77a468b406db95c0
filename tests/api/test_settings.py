"""
Tests for API settings.
"""

from __future__ import annotations

import pytest

from casebook.api.settings import CasebookAPISettings


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for key in ("AUTO_MIGRATE", "API_PREFIX", "PORT", "DEBUG", "CORS_ORIGINS"):
        monkeypatch.delenv(f"CASEBOOK_{key}", raising=False)


class TestCasebookAPISettings:
    def test_defaults(self):
        s = CasebookAPISettings()
        assert s.host == "0.0.0.0"
        assert s.port == 3001
        assert s.api_prefix == "/api"
        assert s.debug is False
        assert s.cors_origins == ["*"]
        assert s.auto_migrate is True

    def test_custom_values(self):
        s = CasebookAPISettings(port=9000, api_prefix="/v2", debug=True, auto_migrate=False)
        assert s.port == 9000
        assert s.api_prefix == "/v2"
        assert s.debug is True
        assert s.auto_migrate is False

    def test_inherits_migration_settings(self):
        s = CasebookAPISettings()
        assert "sqlite" in s.database_url
        assert s.migrations_table == "migrations"

    def test_auto_migrate_from_env(self, monkeypatch):
        monkeypatch.setenv("CASEBOOK_AUTO_MIGRATE", "false")
        assert CasebookAPISettings().auto_migrate is False

    def test_env_prefix(self):
        assert CasebookAPISettings.model_config["env_prefix"] == "CASEBOOK_"

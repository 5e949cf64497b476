"""Tests for settings loading, logging setup and database helpers."""

from __future__ import annotations

import structlog
from sqlalchemy import inspect

from src.crm_sync.config import Environment, Settings
from src.crm_sync.core.logging import configure_structlog


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in ("DATABASE_URL", "ENVIRONMENT", "PAGE_SIZE", "DEFAULT_USER_EMAIL"):
            monkeypatch.delenv(name, raising=False)
        settings = Settings(_env_file=None)
        assert settings.DATABASE_URL.startswith("sqlite")
        assert settings.ENVIRONMENT is Environment.development
        assert settings.PAGE_SIZE == 100
        assert settings.HTTP_MAX_ATTEMPTS == 3
        assert settings.REMOTE_LOOKUP_ON_MISS is True
        assert settings.DEFAULT_USER_EMAIL == "admin@example.com"
        assert settings.ACCOUNT_PHONE_PLACEHOLDER == "000-000-0000"
        assert settings.is_test() is False

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "test")
        monkeypatch.setenv("PAGE_SIZE", "25")
        settings = Settings(_env_file=None)
        assert settings.is_test() is True
        assert settings.PAGE_SIZE == 25


class TestLogging:
    def test_configure_structlog(self):
        configure_structlog()
        logger = structlog.get_logger("tests")
        logger.info("tests.logging_configured", answer=42)


class TestDatabase:
    def test_init_db_creates_every_table(self, engine):
        tables = set(inspect(engine).get_table_names())
        assert {
            "users",
            "accounts",
            "contacts",
            "leads",
            "opportunities",
            "tasks",
            "notes",
            "note_associations",
            "identity_mappings",
        } <= tables

    def test_sqlite_foreign_keys_enabled(self, engine):
        with engine.connect() as conn:
            assert conn.exec_driver_sql("PRAGMA foreign_keys").scalar() == 1

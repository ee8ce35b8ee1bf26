"""Tests for environment-driven settings."""

import pytest

from payroll_ledger.config import Settings
from payroll_ledger.core.periods import Weekday

ENV_VARS = [
    "DATABASE_URL",
    "CHECK_START_NUMBER",
    "PERIOD_ANCHOR_WEEKDAY",
    "HOST",
    "PORT",
    "DEBUG",
    "LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettings:
    """Test Settings.from_env."""

    def test_defaults(self, clean_env):
        settings = Settings.from_env()

        assert settings.database_url.startswith("postgresql+asyncpg://")
        assert settings.check_start_number == 1001
        assert settings.period_anchor_weekday == Weekday.SUNDAY
        assert settings.PORT == 8000
        assert settings.DEBUG is False
        assert settings.log_level == "INFO"

    def test_overrides(self, clean_env):
        clean_env.setenv("DATABASE_URL", "sqlite+aiosqlite:///ledger.db")
        clean_env.setenv("CHECK_START_NUMBER", "5000")
        clean_env.setenv("PERIOD_ANCHOR_WEEKDAY", "monday")
        clean_env.setenv("DEBUG", "True")
        clean_env.setenv("LOG_LEVEL", "debug")

        settings = Settings.from_env()

        assert settings.database_url == "sqlite+aiosqlite:///ledger.db"
        assert settings.check_start_number == 5000
        assert settings.period_anchor_weekday == Weekday.MONDAY
        assert settings.debug is True
        assert settings.log_level == "DEBUG"

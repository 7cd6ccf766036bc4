"""
Unit tests for pulpit_scheduler/config.py

Tests Settings defaults, environment variable loading, timezone validation,
production validation and configuration caching.
"""

from zoneinfo import ZoneInfo

import pytest
from pydantic import ValidationError

from pulpit_scheduler.config import Settings, get_settings


class TestSettingsDefaults:
    """Test Settings initialization with default values."""

    def test_settings_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.python_env == "development"
        assert settings.log_level == "INFO"
        assert settings.database_url == "sqlite:///./data/pulpit_scheduler.db"
        assert settings.api_port == 8000
        assert settings.timezone == "Europe/Madrid"
        assert settings.holiday_shift_minutes == 60
        assert settings.max_hymns_per_service == 3
        assert settings.max_choruses_per_service == 3
        assert settings.planner_max_hymns == 10
        assert settings.planner_max_saved_lists == 2

    def test_is_development_default(self):
        settings = Settings(_env_file=None)

        assert settings.is_development is True
        assert settings.is_production is False

    def test_tzinfo(self):
        assert Settings(_env_file=None, timezone="America/Bogota").tzinfo == ZoneInfo("America/Bogota")


class TestSettingsEnvironmentVariables:
    """Test Settings loading from environment variables."""

    def test_settings_from_env_vars(self, monkeypatch):
        monkeypatch.setenv("PYTHON_ENV", "production")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/test")
        monkeypatch.setenv("HOLIDAY_SHIFT_MINUTES", "90")
        monkeypatch.setenv("MAX_HYMNS_PER_SERVICE", "4")

        settings = Settings(_env_file=None)

        assert settings.python_env == "production"
        assert settings.log_level == "DEBUG"
        assert settings.database_url == "postgresql://localhost/test"
        assert settings.holiday_shift_minutes == 90
        assert settings.max_hymns_per_service == 4

    def test_invalid_literal(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "VERBOSE")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)


class TestSettingsValidation:
    """Test field validators and production checks."""

    def test_unknown_timezone(self):
        with pytest.raises(ValidationError, match="Unknown timezone"):
            Settings(_env_file=None, timezone="Mars/Olympus")

    def test_shift_must_stay_within_a_day(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, holiday_shift_minutes=24 * 60)

    def test_caps_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, max_choruses_per_service=0)

    def test_production_requires_postgresql(self):
        settings = Settings(_env_file=None, python_env="production")

        with pytest.raises(ValueError, match="PostgreSQL"):
            settings.validate_production_config()

    def test_production_with_postgresql(self):
        settings = Settings(
            _env_file=None,
            python_env="production",
            database_url="postgresql://user:pass@db/pulpit",
        )

        assert settings.uses_postgresql is True
        settings.validate_production_config()

    def test_development_skips_checks(self):
        Settings(_env_file=None).validate_production_config()


class TestGetSettings:
    def test_cached(self):
        assert get_settings() is get_settings()

    def test_cache_clear_reloads(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("API_PORT", "9100")
        get_settings.cache_clear()

        assert get_settings() is not first
        assert get_settings().api_port == 9100

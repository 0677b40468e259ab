"""Tests for application settings."""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from stockpulse.config.settings import (
    Settings,
    get_required_env_vars,
    get_settings,
    validate_required_settings,
)


class TestSettings:
    """Test settings loading and validation."""

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.environment == "development"
        assert settings.analysis_agent_key == "analysis_coordinator"
        assert settings.notification_agent_key == "email_alert"
        assert settings.agent_timeout_seconds == 180.0
        assert settings.smtp_port == 587
        assert settings.max_sessions == 1000

    def test_reads_environment(self, test_env):
        settings = get_settings()
        assert settings.is_testing()
        assert settings.endpoint_auth_token == "test_endpoint_token"
        assert settings.get_database_url() == test_env["DATABASE_URL"]

    def test_default_database_url(self, tmp_path):
        settings = Settings(_env_file=None, database_url=None, data_directory=str(tmp_path))
        assert settings.get_database_url() == f"sqlite:///{tmp_path / 'stockpulse.db'}"

    @pytest.mark.parametrize(
        "field,value",
        [
            ("environment", "staging"),
            ("endpoint_port", 70000),
            ("smtp_port", 0),
            ("agent_timeout_seconds", 0),
            ("max_sessions", 0),
            ("log_level", "LOUD"),
            ("log_format", "xml"),
            ("openai_api_key", "not-a-key"),
        ],
    )
    def test_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **{field: value})

    def test_normalizes_case(self):
        settings = Settings(_env_file=None, environment="PRODUCTION", log_level="debug")
        assert settings.is_production()
        assert settings.log_level == "DEBUG"

    def test_settings_cached(self):
        assert get_settings() is get_settings()


class TestRequiredSettings:
    """Test required environment checks."""

    def test_required_names(self):
        assert get_required_env_vars() == ["OPENAI_API_KEY", "ENDPOINT_AUTH_TOKEN"]

    def test_all_present(self):
        assert validate_required_settings() is True

    def test_missing(self, monkeypatch):
        monkeypatch.delenv("ENDPOINT_AUTH_TOKEN")
        get_settings.cache_clear()

        assert validate_required_settings() is False

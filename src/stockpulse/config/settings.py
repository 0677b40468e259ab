"""Application settings and configuration management using Pydantic."""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENVIRONMENTS = ("development", "testing", "production")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("structured", "plain")


def _choice(value: str, allowed: tuple[str, ...], label: str, upper: bool = False) -> str:
    normalized = value.upper() if upper else value.lower()
    if normalized not in allowed:
        raise ValueError(f"{label} must be one of: {list(allowed)}")
    return normalized


class Settings(BaseSettings):
    """Process configuration read from the environment and ``.env``.

    User-editable preferences (default criteria, recipient, email format)
    live in the preferences store, not here.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: str = "development"
    debug: bool = False

    # Agents (keys into prompts.yaml)
    openai_api_key: Optional[str] = None
    analysis_agent_key: str = "analysis_coordinator"
    notification_agent_key: str = "email_alert"
    agent_timeout_seconds: float = 180.0

    # Outgoing mail for the email alert agent
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_sender: str = "alerts@stockpulse.local"
    smtp_use_tls: bool = True

    # HTTP API
    endpoint_host: str = "0.0.0.0"
    endpoint_port: int = 8000
    endpoint_auth_token: Optional[str] = None
    api_reload: bool = False
    api_log_level: str = "INFO"
    max_sessions: int = 1000

    # Preferences store
    database_url: Optional[str] = None
    data_directory: str = "data"
    database_echo_sql: bool = False
    database_pool_pre_ping: bool = True
    database_pool_recycle: int = 3600

    # Logging
    log_level: str = "INFO"
    log_format: str = "structured"
    log_file_enabled: bool = True
    log_file_path: str = "data/stockpulse.log"
    log_max_file_size: str = "10MB"
    log_backup_count: int = 5

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        return _choice(v, ENVIRONMENTS, "Environment")

    @field_validator("log_level", "api_log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        return _choice(v, LOG_LEVELS, "Log level", upper=True)

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        return _choice(v, LOG_FORMATS, "Log format")

    @field_validator("openai_api_key")
    @classmethod
    def validate_api_key(cls, v: Optional[str]) -> Optional[str]:
        """OpenAI keys start with ``sk-`` (project keys with ``sk-proj-``)."""
        if v is not None and not v.startswith("sk-"):
            raise ValueError("Invalid OpenAI API key format")
        return v

    @field_validator("endpoint_port", "smtp_port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not 1 <= v <= 65535:
            raise ValueError("Port must be between 1 and 65535")
        return v

    @field_validator("max_sessions")
    @classmethod
    def validate_max_sessions(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_sessions must be at least 1")
        return v

    @field_validator("agent_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Agent timeout must be positive")
        return v

    def get_database_url(self) -> str:
        """Configured URL, or a SQLite file inside the data directory."""
        if self.database_url:
            return self.database_url

        data_dir = Path(self.data_directory)
        data_dir.mkdir(parents=True, exist_ok=True)
        return f"sqlite:///{data_dir / 'stockpulse.db'}"

    def is_production(self) -> bool:
        return self.environment == "production"

    def is_testing(self) -> bool:
        return self.environment == "testing"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application configuration instance
    """
    return Settings()


def get_required_env_vars() -> list[str]:
    """Environment variables the service cannot start without."""
    return ["OPENAI_API_KEY", "ENDPOINT_AUTH_TOKEN"]


def validate_required_settings() -> bool:
    """True when every required setting has a value."""
    settings = get_settings()
    return all(getattr(settings, name.lower(), None) for name in get_required_env_vars())

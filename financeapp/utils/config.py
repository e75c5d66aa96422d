"""Application settings.

Values come from (highest priority first) explicit keyword arguments,
environment variables, a ``.env`` file in the working directory, and the
defaults below. Default directories follow the platform conventions via
platformdirs.
"""

from pathlib import Path
from typing import Literal

import platformdirs
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

dirs = platformdirs.PlatformDirs("financeapp", appauthor=False)

DEFAULT_REMINDER_SUBJECT = "Finance App: Erinnerungen und Fälligkeiten"


class Settings(BaseSettings):
    """financeapp configuration.

    Environment variables match field names directly (case-insensitive),
    e.g. ``DATABASE_URL`` or ``REMINDER_INVOICE_OFFSETS='[14, 7, 1]'``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage
    data_dir: Path = Field(default=Path(dirs.user_data_dir))
    database_url: str | None = Field(
        default=None,
        description="SQLAlchemy URL; defaults to a SQLite file inside data_dir",
    )

    # Logging
    debug: bool = False
    log_level: str = "INFO"
    json_logs: bool = False

    # Summary
    summary_horizon_days: int = Field(default=30, ge=0, le=366)

    # Reminders
    reminder_invoice_offsets: list[int] = Field(default_factory=lambda: [7, 3, 1])
    reminder_binding_offsets: list[int] = Field(default_factory=lambda: [30, 7])
    reminder_type: str = "daily_check"
    reminder_subject: str = DEFAULT_REMINDER_SUBJECT
    reminder_max_workers: int = Field(default=1, ge=1, le=64)

    # Notification delivery
    notifier: Literal["log", "email"] = "log"
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = True
    smtp_from: str | None = None
    smtp_timeout_seconds: float = 30.0

    # Metrics
    metrics_enabled: bool = False
    metrics_port: int = 8000

    @field_validator("reminder_invoice_offsets", "reminder_binding_offsets")
    @classmethod
    def _validate_offsets(cls, value: list[int]) -> list[int]:
        if not value:
            raise ValueError("reminder offsets must not be empty")
        if any(offset < 0 for offset in value):
            raise ValueError("reminder offsets must be non-negative")
        return value

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"invalid log level: {value}")
        return level

    @model_validator(mode="after")
    def _require_smtp_for_email(self) -> "Settings":
        if self.notifier == "email" and not (self.smtp_host and self.smtp_from):
            raise ValueError("notifier=email requires smtp_host and smtp_from")
        return self

    @property
    def resolved_database_url(self) -> str:
        """Database URL with the data_dir default applied."""
        if self.database_url:
            return self.database_url
        return f"sqlite:///{self.data_dir / 'financeapp.db'}"


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Rebuild settings from the current environment."""
    global _settings
    _settings = Settings()
    return _settings

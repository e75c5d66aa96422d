import pytest
from pydantic import ValidationError

from financeapp.utils.config import DEFAULT_REMINDER_SUBJECT, Settings, get_settings, reload_settings


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Run without a stray .env file and with a clean environment."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "DATABASE_URL",
        "DEBUG",
        "LOG_LEVEL",
        "NOTIFIER",
        "SMTP_HOST",
        "SMTP_FROM",
        "REMINDER_INVOICE_OFFSETS",
        "REMINDER_MAX_WORKERS",
    ):
        monkeypatch.delenv(name, raising=False)
    yield
    reload_settings()


def test_settings_defaults():
    """Test that default settings use platformdirs."""
    settings = Settings()

    assert settings.data_dir.is_absolute()
    assert settings.summary_horizon_days == 30
    assert settings.reminder_invoice_offsets == [7, 3, 1]
    assert settings.reminder_binding_offsets == [30, 7]
    assert settings.reminder_type == "daily_check"
    assert settings.reminder_subject == DEFAULT_REMINDER_SUBJECT
    assert settings.notifier == "log"
    assert settings.reminder_max_workers == 1


def test_resolved_database_url_defaults_to_data_dir(tmp_path):
    settings = Settings(data_dir=tmp_path)

    assert settings.resolved_database_url == f"sqlite:///{tmp_path / 'financeapp.db'}"


def test_explicit_database_url_wins(tmp_path):
    settings = Settings(data_dir=tmp_path, database_url="postgresql://db/finance")

    assert settings.resolved_database_url == "postgresql://db/finance"


def test_settings_env_override(monkeypatch):
    """Test that environment variables override defaults."""
    monkeypatch.setenv("DEBUG", "true")
    monkeypatch.setenv("REMINDER_INVOICE_OFFSETS", "[14, 7]")
    monkeypatch.setenv("REMINDER_MAX_WORKERS", "4")

    settings = reload_settings()

    assert settings.debug is True
    assert settings.reminder_invoice_offsets == [14, 7]
    assert settings.reminder_max_workers == 4
    assert get_settings() is settings


def test_env_file_read(tmp_path):
    (tmp_path / ".env").write_text("LOG_LEVEL=warning\nSUMMARY_HORIZON_DAYS=60\n")

    settings = Settings()

    assert settings.log_level == "WARNING"
    assert settings.summary_horizon_days == 60


@pytest.mark.parametrize("offsets", [[], [7, -1]])
def test_invalid_offsets_rejected(offsets):
    with pytest.raises(ValidationError):
        Settings(reminder_binding_offsets=offsets)


def test_invalid_log_level_rejected():
    with pytest.raises(ValidationError):
        Settings(log_level="LOUD")


def test_email_notifier_requires_smtp():
    with pytest.raises(ValidationError):
        Settings(notifier="email")

    settings = Settings(notifier="email", smtp_host="smtp.example.com", smtp_from="a@example.com")
    assert settings.smtp_port == 587

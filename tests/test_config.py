import pytest
from pydantic import ValidationError

from reminder_service.core.config import ReminderSettings


def test_defaults_match_reminder_contract():
    settings = ReminderSettings()

    assert settings.LEAD_MINUTES == 5
    assert settings.TICK_INTERVAL_SECONDS == 60
    assert settings.DISPATCH_DELAY_MS == 1000
    assert settings.LOOKAHEAD_MARGIN_MINUTES == 1


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("REMINDER_LEAD_MINUTES", "15")
    monkeypatch.setenv("REMINDER_TICK_INTERVAL_SECONDS", "30")

    settings = ReminderSettings()

    assert settings.LEAD_MINUTES == 15
    assert settings.TICK_INTERVAL_SECONDS == 30


def test_tick_longer_than_margin_is_rejected():
    with pytest.raises(ValidationError):
        ReminderSettings(TICK_INTERVAL_SECONDS=120, LOOKAHEAD_MARGIN_MINUTES=1)


def test_non_positive_lead_is_rejected():
    with pytest.raises(ValidationError):
        ReminderSettings(LEAD_MINUTES=0)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("", []),
        ('["a", "b"]', ["a", "b"]),
        ("a, b,,c", ["a", "b", "c"]),
        ("single", ["single"]),
    ],
)
def test_api_keys_parsing(raw, expected):
    assert ReminderSettings(API_KEYS=raw).api_keys == expected


def test_smtp_configured_requires_credentials():
    assert ReminderSettings().smtp_configured is False
    assert ReminderSettings(SMTP_SERVER="smtp.example.com", SMTP_USERNAME="u", SMTP_PASSWORD="p").smtp_configured

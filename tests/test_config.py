import logging

import pytest

from event_timeline.config import ConfigurationError, configure_logging, get_settings


def test_default_settings() -> None:
    settings = get_settings()
    assert settings.timezone_name == "Europe/Berlin"
    assert settings.release_hour == 7
    assert settings.log_level == "INFO"
    assert settings.timezone.key == "Europe/Berlin"


def test_settings_read_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("EVENT_TIMELINE_TIMEZONE", "America/Chicago")
    monkeypatch.setenv("EVENT_TIMELINE_RELEASE_HOUR", "9")
    monkeypatch.setenv("APP_LOG_LEVEL", "debug")
    settings = get_settings()
    assert settings.timezone_name == "America/Chicago"
    assert settings.release_hour == 9
    assert settings.log_level == "DEBUG"


def test_blank_timezone_falls_back_to_default(monkeypatch) -> None:
    monkeypatch.setenv("EVENT_TIMELINE_TIMEZONE", "  ")
    assert get_settings().timezone_name == "Europe/Berlin"


@pytest.mark.parametrize(
    ("name", "value", "message"),
    [
        ("EVENT_TIMELINE_TIMEZONE", "Nowhere/Special", "unknown timezone"),
        ("EVENT_TIMELINE_RELEASE_HOUR", "seven", "must be an integer"),
        ("EVENT_TIMELINE_RELEASE_HOUR", "24", "between 0 and 23"),
    ],
)
def test_invalid_settings_raise(monkeypatch, name, value, message) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigurationError, match=message):
        get_settings()


def test_configure_logging_applies_level(monkeypatch) -> None:
    monkeypatch.setenv("APP_LOG_LEVEL", "WARNING")
    configure_logging()
    assert logging.getLogger("event_timeline").level == logging.WARNING

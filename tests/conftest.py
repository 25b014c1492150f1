import pytest


@pytest.fixture(autouse=True)
def berlin_timezone(monkeypatch) -> None:
    monkeypatch.setenv("EVENT_TIMELINE_TIMEZONE", "Europe/Berlin")
    monkeypatch.delenv("EVENT_TIMELINE_RELEASE_HOUR", raising=False)
    monkeypatch.delenv("APP_LOG_LEVEL", raising=False)

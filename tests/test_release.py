from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from event_timeline.config import ConfigurationError
from event_timeline.release import compute_scheduled_release_date

BERLIN = ZoneInfo("Europe/Berlin")


def berlin(*args: int) -> datetime:
    return datetime(*args, tzinfo=BERLIN)


@pytest.mark.parametrize("hour", [0, 6, 7, 12, 23])
def test_friday_release_moves_to_monday_morning(hour) -> None:
    released = compute_scheduled_release_date(berlin(2026, 10, 16, hour, 30))
    local = released.astimezone(BERLIN)
    assert local.date().isoformat() == "2026-10-19"
    assert local.weekday() == 0
    assert (local.hour, local.minute) == (7, 0)
    assert released == datetime(2026, 10, 19, 5, 0, tzinfo=timezone.utc)


def test_weekdays_release_next_day() -> None:
    assert compute_scheduled_release_date(berlin(2026, 10, 19, 15, 0)).astimezone(BERLIN) == berlin(2026, 10, 20, 7, 0)
    assert compute_scheduled_release_date(berlin(2026, 10, 15, 8, 0)).astimezone(BERLIN) == berlin(2026, 10, 16, 7, 0)


def test_weekend_release_lands_on_monday() -> None:
    assert compute_scheduled_release_date(berlin(2026, 10, 17, 9, 0)).astimezone(BERLIN) == berlin(2026, 10, 19, 7, 0)
    assert compute_scheduled_release_date(berlin(2026, 10, 18, 9, 0)).astimezone(BERLIN) == berlin(2026, 10, 19, 7, 0)


def test_civil_day_is_taken_in_target_timezone() -> None:
    # 23:30 UTC on Thursday is already Friday in Berlin.
    released = compute_scheduled_release_date(datetime(2026, 10, 15, 23, 30, tzinfo=timezone.utc))
    assert released.astimezone(BERLIN) == berlin(2026, 10, 19, 7, 0)


def test_naive_instant_is_treated_as_utc() -> None:
    released = compute_scheduled_release_date(datetime(2026, 10, 15, 23, 30))
    assert released == datetime(2026, 10, 19, 5, 0, tzinfo=timezone.utc)


def test_release_follows_daylight_saving_change() -> None:
    # Clocks go back on 2026-10-25; Monday 07:00 is then UTC+1.
    released = compute_scheduled_release_date(berlin(2026, 10, 23, 10, 0))
    assert released == datetime(2026, 10, 26, 6, 0, tzinfo=timezone.utc)


def test_release_in_other_timezone_and_hour() -> None:
    new_york = ZoneInfo("America/New_York")
    released = compute_scheduled_release_date(
        datetime(2026, 7, 3, 18, 0, tzinfo=new_york),
        timezone_name="America/New_York",
        release_hour=9,
    )
    assert released.astimezone(new_york) == datetime(2026, 7, 6, 9, 0, tzinfo=new_york)


def test_release_hour_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("EVENT_TIMELINE_RELEASE_HOUR", "8")
    released = compute_scheduled_release_date(berlin(2026, 10, 19, 15, 0))
    assert released.astimezone(BERLIN) == berlin(2026, 10, 20, 8, 0)


def test_unknown_timezone_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError, match="unknown timezone"):
        compute_scheduled_release_date(berlin(2026, 10, 19, 15, 0), timezone_name="Mars/Olympus")


@pytest.mark.parametrize("hour", [-1, 24, 25, True])
def test_explicit_release_hour_is_validated(hour) -> None:
    with pytest.raises(ConfigurationError, match="between 0 and 23"):
        compute_scheduled_release_date(berlin(2026, 10, 19, 15, 0), release_hour=hour)

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

DEFAULT_TIMEZONE = "Europe/Berlin"
DEFAULT_RELEASE_HOUR = 7
DEFAULT_LOG_LEVEL = "INFO"


class ConfigurationError(ValueError):
    """Raised when environment settings cannot be used."""


@dataclass(slots=True, frozen=True)
class Settings:
    timezone_name: str
    release_hour: int
    log_level: str

    @property
    def timezone(self) -> ZoneInfo:
        return load_timezone(self.timezone_name)


def load_timezone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigurationError(f"unknown timezone: {name}") from exc


def validate_release_hour(hour: int, name: str = "release_hour") -> int:
    if isinstance(hour, bool) or not isinstance(hour, int) or not 0 <= hour <= 23:
        raise ConfigurationError(f"{name} must be between 0 and 23, got {hour!r}")
    return hour


def get_settings() -> Settings:
    timezone_name = os.environ.get("EVENT_TIMELINE_TIMEZONE", DEFAULT_TIMEZONE).strip() or DEFAULT_TIMEZONE
    load_timezone(timezone_name)

    raw_hour = os.environ.get("EVENT_TIMELINE_RELEASE_HOUR", str(DEFAULT_RELEASE_HOUR))
    try:
        release_hour = int(raw_hour)
    except ValueError:
        raise ConfigurationError(f"EVENT_TIMELINE_RELEASE_HOUR must be an integer, got {raw_hour!r}") from None
    validate_release_hour(release_hour, "EVENT_TIMELINE_RELEASE_HOUR")

    log_level = os.environ.get("APP_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
    return Settings(timezone_name=timezone_name, release_hour=release_hour, log_level=log_level)


def configure_logging(settings: Settings | None = None) -> None:
    resolved = settings or get_settings()
    level = getattr(logging, resolved.log_level, logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    logging.getLogger("event_timeline").setLevel(level)

from __future__ import annotations

import logging
from datetime import datetime, time, timedelta, timezone

from .config import get_settings, load_timezone, validate_release_hour

SATURDAY = 5
SUNDAY = 6

logger = logging.getLogger(__name__)


def compute_scheduled_release_date(
    instant: datetime | None = None,
    timezone_name: str | None = None,
    release_hour: int | None = None,
) -> datetime:
    """Next workday at the release hour (07:00 by default) in the civil timezone.

    Never releases on the same civil day; weekends roll forward to Monday.
    Naive ``instant`` values are taken as UTC. The result is an aware UTC datetime.
    """
    settings = get_settings()
    tz = load_timezone(timezone_name) if timezone_name else settings.timezone
    hour = settings.release_hour if release_hour is None else validate_release_hour(release_hour)

    if instant is None:
        instant = datetime.now(timezone.utc)
    elif instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)

    release_day = instant.astimezone(tz).date() + timedelta(days=1)
    if release_day.weekday() == SATURDAY:
        release_day += timedelta(days=2)
    elif release_day.weekday() == SUNDAY:
        release_day += timedelta(days=1)

    released_at = datetime.combine(release_day, time(hour), tzinfo=tz).astimezone(timezone.utc)
    logger.debug(
        "release_scheduled",
        extra={"instant": instant.isoformat(), "timezone": tz.key, "release_at": released_at.isoformat()},
    )
    return released_at

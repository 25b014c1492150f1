"""Event lifecycle timeline.

Days are measured relative to the event date: negative = before the event,
zero = event day, positive = after. ``days_until_event`` carries the opposite
sign (positive while the event is still ahead).

Every function reads "now" at most once. Pass ``now`` explicitly to pin the
clock; naive values are taken to be in the configured civil timezone.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from .config import get_settings
from .overrides import (
    EventTimelineOverrides,
    resolve_milestone_offset,
    resolve_milestone_offsets,
    resolve_threshold,
)
from .policy import (
    PERSONALIZED_CLOTHING_CUTOFF_DAYS,
    PHASE_EVENT_DAY,
    PHASE_POST_EVENT,
    PHASE_PRE_EVENT,
    PORTAL_WINDOW_END_DAYS,
    PORTAL_WINDOW_START_DAYS,
    milestones_in_order,
)

EventDate = str | date | datetime

END_OF_DAY = time(23, 59, 59, 999000)
MS_PER_SECOND = 1000
MS_PER_MINUTE = 60 * MS_PER_SECOND
MS_PER_HOUR = 60 * MS_PER_MINUTE
MS_PER_DAY = 24 * MS_PER_HOUR

logger = logging.getLogger(__name__)


class InvalidDateError(ValueError):
    """Raised when an event date cannot be interpreted as a calendar date."""


@dataclass(slots=True)
class EventTimelineInfo:
    event_date: date
    days_until_event: int
    days_from_event: int
    phase: str
    current_milestone: str | None
    next_milestone: str | None
    passed_milestones: list[str] = field(default_factory=list)
    upcoming_milestones: list[str] = field(default_factory=list)
    is_within_portal_window: bool = False

    def to_dict(self) -> dict[str, object]:
        payload = asdict(self)
        payload["event_date"] = self.event_date.isoformat()
        return payload


@dataclass(slots=True, frozen=True)
class Countdown:
    days: int
    hours: int
    minutes: int
    seconds: int

    @classmethod
    def from_milliseconds(cls, diff_ms: int) -> Countdown:
        return cls(
            days=diff_ms // MS_PER_DAY,
            hours=(diff_ms % MS_PER_DAY) // MS_PER_HOUR,
            minutes=(diff_ms % MS_PER_HOUR) // MS_PER_MINUTE,
            seconds=(diff_ms % MS_PER_MINUTE) // MS_PER_SECOND,
        )


@dataclass(slots=True, frozen=True)
class AudioReleaseStatus:
    preview_date: datetime | None
    release_date: datetime | None
    previews_available: bool
    is_released: bool
    audio_hidden: bool


def _timezone() -> ZoneInfo:
    return get_settings().timezone


def _resolve_now(now: datetime | None, tz: ZoneInfo) -> datetime:
    if now is None:
        return datetime.now(tz)
    if now.tzinfo is None:
        return now.replace(tzinfo=tz)
    return now.astimezone(tz)


def parse_event_date(value: EventDate, tz: ZoneInfo | None = None) -> date:
    """Reduce an event date to its calendar day in the configured timezone."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(tz or _timezone()).date()
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidDateError(f"unsupported event date type: {type(value).__name__}")

    text = value.strip()
    if not text:
        raise InvalidDateError("event date is empty")
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        return parse_event_date(datetime.fromisoformat(text.replace("Z", "+00:00")), tz)
    except ValueError as exc:
        raise InvalidDateError(f"invalid event date: {value!r}") from exc


def _local_midnight(day: date, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def _countdown_to(deadline: datetime, now: datetime) -> Countdown | None:
    # Compare in UTC so that DST transitions count as elapsed time.
    diff = deadline.astimezone(timezone.utc) - now.astimezone(timezone.utc)
    diff_ms = diff // timedelta(milliseconds=1)
    if diff_ms <= 0:
        return None
    return Countdown.from_milliseconds(diff_ms)


def days_until_event(event_date: EventDate, now: datetime | None = None) -> int:
    """Calendar days from today to the event (positive = future, negative = past)."""
    tz = _timezone()
    event_day = parse_event_date(event_date, tz)
    today = _resolve_now(now, tz).date()
    return (event_day - today).days


def get_event_phase(days: int) -> str:
    if days > 0:
        return PHASE_PRE_EVENT
    if days == 0:
        return PHASE_EVENT_DAY
    return PHASE_POST_EVENT


def milestone_date(
    event_date: EventDate,
    milestone: str,
    overrides: EventTimelineOverrides | None = None,
) -> date:
    offset = resolve_milestone_offset(milestone, overrides)
    return parse_event_date(event_date) + timedelta(days=offset)


def is_milestone_passed(
    event_date: EventDate,
    milestone: str,
    overrides: EventTimelineOverrides | None = None,
    now: datetime | None = None,
) -> bool:
    offset = resolve_milestone_offset(milestone, overrides)
    return days_until_event(event_date, now) + offset < 0


def is_within_milestone_window(
    event_date: EventDate,
    milestone: str,
    window_days: int = 0,
    overrides: EventTimelineOverrides | None = None,
    now: datetime | None = None,
) -> bool:
    """True when the milestone is still ahead (or today) and at most ``window_days`` away."""
    days_to_milestone = days_until_event(event_date, now) + resolve_milestone_offset(milestone, overrides)
    if days_to_milestone < 0:
        return False
    return days_to_milestone <= window_days


def calculate_event_timeline(
    event_date: EventDate,
    overrides: EventTimelineOverrides | None = None,
    now: datetime | None = None,
) -> EventTimelineInfo:
    tz = _timezone()
    event_day = parse_event_date(event_date, tz)
    days = (event_day - _resolve_now(now, tz).date()).days

    offsets = resolve_milestone_offsets(overrides)
    passed: list[str] = []
    upcoming: list[str] = []
    current: str | None = None
    upcoming_next: str | None = None

    for milestone in milestones_in_order(offsets):
        days_to_milestone = days + offsets[milestone]
        if days_to_milestone < 0:
            passed.append(milestone)
        elif days_to_milestone == 0:
            # Reached today: current, and counted as achieved.
            current = milestone
            passed.append(milestone)
        else:
            upcoming.append(milestone)
            if upcoming_next is None:
                upcoming_next = milestone

    info = EventTimelineInfo(
        event_date=event_day,
        days_until_event=days,
        days_from_event=abs(days),
        phase=get_event_phase(days),
        current_milestone=current,
        next_milestone=upcoming_next,
        passed_milestones=passed,
        upcoming_milestones=upcoming,
        # Fixed bounds; milestone overrides do not move the portal window.
        is_within_portal_window=PORTAL_WINDOW_END_DAYS <= days <= PORTAL_WINDOW_START_DAYS,
    )
    logger.debug(
        "timeline_calculated",
        extra={"event_date": event_day.isoformat(), "days_until_event": days, "phase": info.phase},
    )
    return info


def format_days_display(days: int) -> str:
    if days == 0:
        return "Heute"
    count = abs(days)
    if days > 0:
        return f"Noch {count} {'Tag' if count == 1 else 'Tage'}"
    return f"Vor {count} {'Tag' if count == 1 else 'Tagen'}"


def can_order_personalized_products(
    event_date: EventDate,
    overrides: EventTimelineOverrides | None = None,
    now: datetime | None = None,
) -> bool:
    """Hard pre-event cutoff at the T-shirt order deadline."""
    return not is_milestone_passed(event_date, "TSHIRT_ORDER_DEADLINE", overrides, now)


def can_order_personalized_clothing(
    event_date: EventDate | None,
    cutoff_days: int | float = PERSONALIZED_CLOTHING_CUTOFF_DAYS,
    now: datetime | None = None,
) -> bool:
    """Open any time before the event and up to ``-cutoff_days`` days after it."""
    if event_date is None or (isinstance(event_date, str) and not event_date.strip()):
        return False
    return days_until_event(event_date, now) >= cutoff_days


def resolve_clothing_cutoff(
    overrides: EventTimelineOverrides | None = None,
    schulsong_only: bool = False,
) -> int | float:
    if schulsong_only:
        return resolve_threshold("schulsong_clothing_cutoff_days", overrides)
    return resolve_threshold("personalized_clothing_cutoff_days", overrides)


def early_bird_countdown(
    event_date: EventDate,
    overrides: EventTimelineOverrides | None = None,
    now: datetime | None = None,
) -> Countdown | None:
    tz = _timezone()
    days_before = resolve_threshold("early_bird_deadline_days", overrides)
    deadline_day = parse_event_date(event_date, tz) - timedelta(days=days_before)
    deadline = datetime.combine(deadline_day, END_OF_DAY, tzinfo=tz)
    return _countdown_to(deadline, _resolve_now(now, tz))


def schulsong_clothing_countdown(
    event_date: EventDate,
    overrides: EventTimelineOverrides | None = None,
    now: datetime | None = None,
) -> Countdown | None:
    tz = _timezone()
    days_after = abs(resolve_threshold("schulsong_clothing_cutoff_days", overrides))
    deadline_day = parse_event_date(event_date, tz) + timedelta(days=days_after)
    deadline = datetime.combine(deadline_day, END_OF_DAY, tzinfo=tz)
    return _countdown_to(deadline, _resolve_now(now, tz))


def personalized_product_countdown(
    event_date: EventDate,
    overrides: EventTimelineOverrides | None = None,
    now: datetime | None = None,
) -> Countdown | None:
    tz = _timezone()
    deadline = _local_midnight(milestone_date(event_date, "TSHIRT_ORDER_DEADLINE", overrides), tz)
    return _countdown_to(deadline, _resolve_now(now, tz))


def merchandise_deadline(
    event_date: EventDate,
    overrides: EventTimelineOverrides | None = None,
) -> date:
    days_after = resolve_threshold("merchandise_deadline_days", overrides)
    return parse_event_date(event_date) + timedelta(days=days_after)


def audio_release_status(
    event_date: EventDate | None,
    overrides: EventTimelineOverrides | None = None,
    now: datetime | None = None,
) -> AudioReleaseStatus:
    """Preview and full-release availability of the event recordings.

    The ``audio_hidden`` kill-switch blocks both regardless of dates.
    """
    audio_hidden = overrides is not None and overrides.audio_hidden
    if event_date is None or (isinstance(event_date, str) and not event_date.strip()):
        return AudioReleaseStatus(None, None, previews_available=False, is_released=False, audio_hidden=audio_hidden)

    tz = _timezone()
    event_midnight = _local_midnight(parse_event_date(event_date, tz), tz)
    preview_date = event_midnight + timedelta(days=resolve_threshold("preview_available_days", overrides))
    release_date = event_midnight + timedelta(days=resolve_threshold("full_release_days", overrides))
    current = _resolve_now(now, tz)

    return AudioReleaseStatus(
        preview_date=preview_date,
        release_date=release_date,
        previews_available=current >= preview_date and not audio_hidden,
        is_released=current >= release_date and not audio_hidden,
        audio_hidden=audio_hidden,
    )

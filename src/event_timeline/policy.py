from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

# Days relative to the event: negative = before, zero = event day, positive = after.

EARLY_BIRD_DEADLINE_DAYS = 19
PERSONALIZED_CLOTHING_CUTOFF_DAYS = -4
SCHULSONG_CLOTHING_CUTOFF_DAYS = -14

# Fixed portal window, expressed as days_until_event bounds.
PORTAL_WINDOW_START_DAYS = 56
PORTAL_WINDOW_END_DAYS = -30

PHASE_PRE_EVENT = "pre-event"
PHASE_EVENT_DAY = "event-day"
PHASE_POST_EVENT = "post-event"

GLOBAL_DEFAULTS: Mapping[str, int] = MappingProxyType(
    {
        "early_bird_deadline_days": EARLY_BIRD_DEADLINE_DAYS,
        "personalized_clothing_cutoff_days": PERSONALIZED_CLOTHING_CUTOFF_DAYS,
        "schulsong_clothing_cutoff_days": SCHULSONG_CLOTHING_CUTOFF_DAYS,
        "merchandise_deadline_days": 14,
        "preview_available_days": 7,
        "full_release_days": 14,
        "clothing_order_day_offset": 18,
        "clothing_visibility_window_days": 21,
    }
)

THRESHOLD_KEYS: tuple[str, ...] = tuple(GLOBAL_DEFAULTS)

EVENT_MILESTONES: Mapping[str, int] = MappingProxyType(
    {
        "BOOKING_CONFIRMED": -56,
        "POSTER_DEADLINE": -58,
        "FLYER_ONE_DEADLINE": -42,
        "SONG_SELECTION_DEADLINE": -21,
        "FLYER_TWO_DEADLINE": -22,
        "TSHIRT_ORDER_DEADLINE": -19,
        "FLYER_THREE_DEADLINE": -14,
        "FINAL_PREP": -7,
        "EVENT_DAY": 0,
        "MINICARD_ORDER": 1,
        "RECORDING_READY": 3,
        "REMINDER_EMAIL": 7,
        "PORTAL_REMINDER": 14,
        "PORTAL_CLOSES": 30,
    }
)

MILESTONES: tuple[str, ...] = tuple(EVENT_MILESTONES)

MILESTONE_LABELS: Mapping[str, str] = MappingProxyType(
    {
        "BOOKING_CONFIRMED": "Buchung bestätigt",
        "POSTER_DEADLINE": "Poster-Versand",
        "FLYER_ONE_DEADLINE": "Flyer 1 Versand",
        "SONG_SELECTION_DEADLINE": "Liedauswahl-Frist",
        "FLYER_TWO_DEADLINE": "Flyer 2 Versand",
        "TSHIRT_ORDER_DEADLINE": "T-Shirt Bestellfrist",
        "FLYER_THREE_DEADLINE": "Flyer 3 Versand",
        "FINAL_PREP": "Letzte Vorbereitungen",
        "EVENT_DAY": "Eventtag",
        "MINICARD_ORDER": "Minikarten-Bestellung",
        "RECORDING_READY": "Aufnahmen verfügbar",
        "REMINDER_EMAIL": "Erinnerungs-E-Mail",
        "PORTAL_REMINDER": "Portal-Erinnerung",
        "PORTAL_CLOSES": "Portal schließt",
    }
)

PHASE_LABELS: Mapping[str, str] = MappingProxyType(
    {
        PHASE_PRE_EVENT: "Vor dem Event",
        PHASE_EVENT_DAY: "Eventtag",
        PHASE_POST_EVENT: "Nach dem Event",
    }
)


class UnknownKeyError(KeyError, ValueError):
    """Raised when a threshold, milestone or phase name is not part of the policy table."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "unknown key"


def default_threshold(key: str) -> int:
    try:
        return GLOBAL_DEFAULTS[key]
    except KeyError:
        raise UnknownKeyError(f"unknown threshold key: {key}") from None


def default_milestone_offset(milestone: str) -> int:
    try:
        return EVENT_MILESTONES[milestone]
    except KeyError:
        raise UnknownKeyError(f"unknown milestone: {milestone}") from None


def milestone_label(milestone: str) -> str:
    try:
        return MILESTONE_LABELS[milestone]
    except KeyError:
        raise UnknownKeyError(f"unknown milestone: {milestone}") from None


def phase_label(phase: str) -> str:
    try:
        return PHASE_LABELS[phase]
    except KeyError:
        raise UnknownKeyError(f"unknown phase: {phase}") from None


def milestones_in_order(offsets: Mapping[str, int | float] | None = None) -> list[str]:
    """Milestone names sorted by ascending offset, earliest lifecycle point first.

    ``offsets`` defaults to the static table; ties keep table order.
    """
    resolved = offsets if offsets is not None else EVENT_MILESTONES
    return sorted(MILESTONES, key=lambda name: resolved[name])

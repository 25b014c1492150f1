"""Per-event timeline overrides.

Overrides live on the event record as a JSON blob. Reading is lenient: any
malformed blob or value degrades to the global defaults. Writing goes through
:func:`validate_overrides` and :func:`serialize_overrides`, which keep the
stored blob strict and minimal.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from .policy import (
    EVENT_MILESTONES,
    GLOBAL_DEFAULTS,
    THRESHOLD_KEYS,
    default_milestone_offset,
    default_threshold,
)

MAX_ABS_OVERRIDE_DAYS = 365
NESTED_KEYS = ("milestones", "task_offsets")
FLAG_KEYS = ("audio_hidden", "hidden_products")

logger = logging.getLogger(__name__)


class OverridesValidationError(ValueError):
    """Raised when an override blob is rejected for storage."""

    def __init__(self, message: str, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key


@dataclass(slots=True, frozen=True)
class EventTimelineOverrides:
    early_bird_deadline_days: int | float | None = None
    personalized_clothing_cutoff_days: int | float | None = None
    schulsong_clothing_cutoff_days: int | float | None = None
    merchandise_deadline_days: int | float | None = None
    preview_available_days: int | float | None = None
    full_release_days: int | float | None = None
    clothing_order_day_offset: int | float | None = None
    clothing_visibility_window_days: int | float | None = None
    audio_hidden: bool = False
    hidden_products: list[str] = field(default_factory=list)
    milestones: dict[str, int | float] = field(default_factory=dict)
    task_offsets: dict[str, int | float] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> EventTimelineOverrides:
        """Build a record from a decoded JSON object, dropping unusable values key by key."""
        thresholds: dict[str, int | float] = {}
        for key in THRESHOLD_KEYS:
            if key not in data:
                continue
            value = _day_count(data[key])
            if value is None:
                logger.debug("override_value_ignored", extra={"key": key, "value": repr(data[key])})
                continue
            thresholds[key] = value

        hidden_products_raw = data.get("hidden_products")
        hidden_products = (
            [item for item in hidden_products_raw if isinstance(item, str)]
            if isinstance(hidden_products_raw, list)
            else []
        )
        known = set(THRESHOLD_KEYS) | set(NESTED_KEYS) | set(FLAG_KEYS)
        return cls(
            **thresholds,
            audio_hidden=data.get("audio_hidden") is True,
            hidden_products=hidden_products,
            milestones=_numeric_mapping(data.get("milestones")),
            task_offsets=_numeric_mapping(data.get("task_offsets")),
            extra={key: value for key, value in data.items() if key not in known},
        )

    def threshold(self, key: str) -> int | float | None:
        if key not in GLOBAL_DEFAULTS:
            return None
        return getattr(self, key)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {**self.extra}
        for key in THRESHOLD_KEYS:
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        payload["audio_hidden"] = self.audio_hidden
        payload["hidden_products"] = list(self.hidden_products)
        payload["milestones"] = dict(self.milestones)
        payload["task_offsets"] = dict(self.task_offsets)
        return payload


def _day_count(value: Any) -> int | float | None:
    # JSON booleans decode to bool, which is an int subclass; they are not numbers here.
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    # More than a year either way is not a usable day offset.
    if abs(value) > MAX_ABS_OVERRIDE_DAYS:
        return None
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _numeric_mapping(value: Any) -> dict[str, int | float]:
    if not isinstance(value, dict):
        return {}
    result: dict[str, int | float] = {}
    for key, raw in value.items():
        number = _day_count(raw)
        if number is not None:
            result[str(key)] = number
    return result


def parse_overrides(raw: str | bytes | None) -> EventTimelineOverrides | None:
    """Parse a stored overrides blob; ``None`` means "use all defaults"."""
    if raw is None:
        return None
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            logger.warning("overrides_unreadable", extra={"reason": "invalid_utf8"})
            return None
    if not raw.strip():
        return None
    try:
        parsed = json.loads(raw)
    except (ValueError, RecursionError):
        # JSONDecodeError is a ValueError; so is an integer literal past the digit limit.
        logger.warning("overrides_unreadable", extra={"reason": "invalid_json"})
        return None
    if not isinstance(parsed, dict):
        logger.warning("overrides_unreadable", extra={"reason": "not_an_object", "type": type(parsed).__name__})
        return None
    return EventTimelineOverrides.from_mapping(parsed)


def resolve_threshold(key: str, overrides: EventTimelineOverrides | None = None) -> int | float:
    default = default_threshold(key)
    if overrides is None:
        return default
    value = _day_count(overrides.threshold(key))
    return default if value is None else value


def resolve_milestone_offset(milestone: str, overrides: EventTimelineOverrides | None = None) -> int | float:
    default = default_milestone_offset(milestone)
    if overrides is None:
        return default
    value = _day_count(overrides.milestones.get(milestone))
    return default if value is None else value


def resolve_milestone_offsets(overrides: EventTimelineOverrides | None = None) -> dict[str, int | float]:
    return {milestone: resolve_milestone_offset(milestone, overrides) for milestone in EVENT_MILESTONES}


def resolve_task_offset(task_id: str, overrides: EventTimelineOverrides | None = None) -> int | float | None:
    """Return the overridden offset for a task, or ``None`` when the task template default applies."""
    if overrides is None:
        return None
    return _day_count(overrides.task_offsets.get(task_id))


def is_product_hidden(product_id: str, overrides: EventTimelineOverrides | None = None) -> bool:
    return overrides is not None and product_id in overrides.hidden_products


def with_audio_hidden(overrides: EventTimelineOverrides | None, hidden: bool) -> EventTimelineOverrides:
    base = overrides or EventTimelineOverrides()
    return replace(base, audio_hidden=bool(hidden))


def _require_day_count(key: str, value: Any) -> None:
    if _day_count(value) is None:
        raise OverridesValidationError(
            f"Invalid value for {key}: must be a finite number between "
            f"-{MAX_ABS_OVERRIDE_DAYS} and {MAX_ABS_OVERRIDE_DAYS}",
            key=key,
        )


def validate_overrides(raw: str) -> EventTimelineOverrides | None:
    """Strictly validate an overrides blob before it is stored.

    An empty string clears the overrides and returns ``None``. Any other input
    must be a JSON object whose values match the expected types; the first
    offending key is reported through :class:`OverridesValidationError`.
    """
    if not raw.strip():
        return None
    try:
        parsed = json.loads(raw)
    except (ValueError, RecursionError) as exc:
        raise OverridesValidationError("timeline_overrides must be valid JSON") from exc
    if not isinstance(parsed, dict):
        raise OverridesValidationError("timeline_overrides must be a JSON object")

    for key, value in parsed.items():
        if key in NESTED_KEYS:
            if not isinstance(value, dict):
                raise OverridesValidationError(f"Invalid value for {key}: must be an object", key=key)
            for nested_key, nested_value in value.items():
                if key == "milestones" and nested_key not in EVENT_MILESTONES:
                    raise OverridesValidationError(f"Unknown milestone in {key}: {nested_key}", key=key)
                _require_day_count(f"{key}.{nested_key}", nested_value)
        elif key == "audio_hidden":
            if not isinstance(value, bool):
                raise OverridesValidationError(f"Invalid value for {key}: must be a boolean", key=key)
        elif key == "hidden_products":
            if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
                raise OverridesValidationError(f"Invalid value for {key}: must be a list of strings", key=key)
        else:
            _require_day_count(key, value)

    return EventTimelineOverrides.from_mapping(parsed)


def serialize_overrides(overrides: EventTimelineOverrides | None) -> str:
    """Serialize only what differs from the defaults; ``""`` when nothing is left to store."""
    if overrides is None:
        return ""

    payload: dict[str, Any] = {}
    for key in THRESHOLD_KEYS:
        value = getattr(overrides, key)
        if value is not None and value != GLOBAL_DEFAULTS[key]:
            payload[key] = value
    if overrides.audio_hidden:
        payload["audio_hidden"] = True
    if overrides.hidden_products:
        payload["hidden_products"] = list(overrides.hidden_products)
    if overrides.milestones:
        payload["milestones"] = dict(overrides.milestones)
    if overrides.task_offsets:
        payload["task_offsets"] = dict(overrides.task_offsets)
    for key, value in overrides.extra.items():
        payload.setdefault(key, value)

    if not payload:
        return ""
    return json.dumps(payload, ensure_ascii=False)


def overridden_fields(overrides: EventTimelineOverrides | None) -> list[str]:
    """Threshold keys whose override differs from the global default."""
    if overrides is None:
        return []
    return [
        key
        for key in THRESHOLD_KEYS
        if getattr(overrides, key) is not None and getattr(overrides, key) != GLOBAL_DEFAULTS[key]
    ]

import pytest

from event_timeline.policy import (
    EVENT_MILESTONES,
    GLOBAL_DEFAULTS,
    MILESTONE_LABELS,
    MILESTONES,
    THRESHOLD_KEYS,
    UnknownKeyError,
    default_milestone_offset,
    default_threshold,
    milestone_label,
    milestones_in_order,
    phase_label,
)


def test_every_threshold_key_has_a_default() -> None:
    assert set(THRESHOLD_KEYS) == {
        "early_bird_deadline_days",
        "personalized_clothing_cutoff_days",
        "schulsong_clothing_cutoff_days",
        "merchandise_deadline_days",
        "preview_available_days",
        "full_release_days",
        "clothing_order_day_offset",
        "clothing_visibility_window_days",
    }
    assert default_threshold("early_bird_deadline_days") == 19
    assert default_threshold("personalized_clothing_cutoff_days") == -4
    assert default_threshold("schulsong_clothing_cutoff_days") == -14
    assert all(isinstance(default_threshold(key), int) for key in THRESHOLD_KEYS)


def test_milestone_table_spans_booking_to_portal_close() -> None:
    assert len(MILESTONES) == 14
    assert default_milestone_offset("BOOKING_CONFIRMED") == -56
    assert default_milestone_offset("EVENT_DAY") == 0
    assert default_milestone_offset("PORTAL_CLOSES") == 30
    assert set(MILESTONE_LABELS) == set(EVENT_MILESTONES)


def test_policy_tables_are_read_only() -> None:
    with pytest.raises(TypeError):
        GLOBAL_DEFAULTS["early_bird_deadline_days"] = 1  # type: ignore[index]
    with pytest.raises(TypeError):
        EVENT_MILESTONES["EVENT_DAY"] = 2  # type: ignore[index]


def test_unknown_keys_raise_contract_error() -> None:
    with pytest.raises(UnknownKeyError, match="unknown threshold key"):
        default_threshold("free_shipping_days")
    with pytest.raises(KeyError):
        default_milestone_offset("GRADUATION")
    with pytest.raises(ValueError, match="unknown phase"):
        phase_label("mid-event")


def test_labels() -> None:
    assert milestone_label("EVENT_DAY") == "Eventtag"
    assert milestone_label("PORTAL_CLOSES") == "Portal schließt"
    assert phase_label("pre-event") == "Vor dem Event"
    assert phase_label("post-event") == "Nach dem Event"


def test_milestones_in_order_sorts_by_offset() -> None:
    ordered = milestones_in_order()
    assert ordered[0] == "POSTER_DEADLINE"
    assert ordered[1] == "BOOKING_CONFIRMED"
    assert ordered.index("FLYER_TWO_DEADLINE") < ordered.index("SONG_SELECTION_DEADLINE")
    assert ordered[-1] == "PORTAL_CLOSES"
    offsets = [EVENT_MILESTONES[name] for name in ordered]
    assert offsets == sorted(offsets)


def test_milestones_in_order_honors_custom_offsets() -> None:
    offsets = {**EVENT_MILESTONES, "PORTAL_CLOSES": -100}
    assert milestones_in_order(offsets)[0] == "PORTAL_CLOSES"

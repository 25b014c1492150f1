from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from datetime import datetime
from typing import Any

from .config import ConfigurationError, configure_logging
from .overrides import (
    OverridesValidationError,
    overridden_fields,
    parse_overrides,
    serialize_overrides,
    validate_overrides,
)
from .policy import UnknownKeyError
from .release import compute_scheduled_release_date
from .timeline import (
    InvalidDateError,
    calculate_event_timeline,
    early_bird_countdown,
    personalized_product_countdown,
    schulsong_clothing_countdown,
)

logger = logging.getLogger(__name__)


def _parse_instant(raw: str | None) -> datetime | None:
    if raw is None:
        return None
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        raise InvalidDateError(f"invalid instant: {raw!r}") from None


def _countdown_payload(countdown: Any) -> dict[str, int] | None:
    return asdict(countdown) if countdown is not None else None


def _run(args: argparse.Namespace) -> dict[str, Any]:
    if args.command == "timeline":
        overrides = parse_overrides(args.overrides)
        return calculate_event_timeline(args.event_date, overrides, _parse_instant(args.now)).to_dict()

    if args.command == "countdowns":
        overrides = parse_overrides(args.overrides)
        now = _parse_instant(args.now)
        return {
            "early_bird": _countdown_payload(early_bird_countdown(args.event_date, overrides, now)),
            "schulsong_clothing": _countdown_payload(schulsong_clothing_countdown(args.event_date, overrides, now)),
            "personalized_product": _countdown_payload(personalized_product_countdown(args.event_date, overrides, now)),
        }

    if args.command == "release":
        released_at = compute_scheduled_release_date(_parse_instant(args.at), args.timezone)
        return {"release_at": released_at.isoformat()}

    validated = validate_overrides(args.payload)
    return {"stored": serialize_overrides(validated), "overridden": overridden_fields(validated)}


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Resolve event timeline deadlines and milestones")
    subparsers = parser.add_subparsers(dest="command", required=True)

    timeline_parser = subparsers.add_parser("timeline", help="milestone timeline for an event date")
    timeline_parser.add_argument("event_date")
    timeline_parser.add_argument("--overrides", default=None, help="timeline overrides JSON blob")
    timeline_parser.add_argument("--now", default=None, help="ISO timestamp to evaluate against")

    countdown_parser = subparsers.add_parser("countdowns", help="remaining time until each deadline")
    countdown_parser.add_argument("event_date")
    countdown_parser.add_argument("--overrides", default=None)
    countdown_parser.add_argument("--now", default=None)

    release_parser = subparsers.add_parser("release", help="next scheduled release instant")
    release_parser.add_argument("--at", default=None, help="ISO timestamp, defaults to now")
    release_parser.add_argument("--timezone", default=None)

    validate_parser = subparsers.add_parser("validate", help="validate an overrides blob for storage")
    validate_parser.add_argument("payload")

    args = parser.parse_args(argv)

    try:
        configure_logging()
        result = _run(args)
    except (ConfigurationError, InvalidDateError, OverridesValidationError, UnknownKeyError) as exc:
        logger.warning("command_failed", extra={"command": args.command, "error": str(exc)})
        print(f"error: {exc}", file=sys.stderr)
        return 2

    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())

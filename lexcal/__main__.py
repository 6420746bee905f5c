"""Command-line entry for lexcal.

Expands stored event rows for a window, or describes an RRULE, so recurrence
behaviour can be checked without the web client:

    python -m lexcal expand events.json --start 2024-01-01 --end 2024-02-01
    python -m lexcal describe "FREQ=WEEKLY;BYDAY=MO,WE,FR;COUNT=6"
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, NoReturn, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil.parser import isoparse

from .config import ConfigManager, ExpanderConfig
from .exceptions import RecurrenceError
from .logging_config import configure_logging
from .recurrence import describe_rule, rule_from_rrule
from .services import ExpansionService

logger = logging.getLogger(__name__)


def _timestamp(value: str) -> datetime:
    try:
        return isoparse(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"not an ISO-8601 timestamp: {value!r}") from e


def _zone(value: str) -> ZoneInfo:
    try:
        return ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise argparse.ArgumentTypeError(f"unknown time zone: {value!r}") from e


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for the lexcal CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="lexcal",
        description="lexcal - recurring event expansion for the practice calendar",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m lexcal expand events.json --start 2024-01-01 --end 2024-02-01
  python -m lexcal describe "FREQ=MONTHLY;BYMONTHDAY=15;COUNT=3"
        """,
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    expand_parser = subparsers.add_parser("expand", help="Expand stored event rows for a window")
    expand_parser.add_argument("records", type=Path, help="JSON file with a list of event rows")
    expand_parser.add_argument("--start", type=_timestamp, required=True, help="Window start (ISO-8601)")
    expand_parser.add_argument("--end", type=_timestamp, required=True, help="Window end (ISO-8601, exclusive)")
    expand_parser.add_argument(
        "--no-base",
        action="store_true",
        help="Leave the base occurrence out of the output",
    )
    expand_parser.add_argument(
        "--max-iterations",
        type=int,
        metavar="N",
        help="Iteration ceiling per event (default: 10000, or LEXCAL_MAX_ITERATIONS)",
    )
    expand_parser.add_argument(
        "--tz",
        type=_zone,
        metavar="ZONE",
        help="IANA zone for --start/--end given without an offset, e.g. America/New_York. "
        "Needed when the stored rows carry timezone-aware timestamps",
    )

    describe_parser = subparsers.add_parser("describe", help="Describe an RRULE in plain words")
    describe_parser.add_argument("rrule", help='RRULE string, e.g. "FREQ=WEEKLY;BYDAY=MO"')

    return parser


def _load_records(path: Path) -> list[dict[str, Any]]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(payload, dict):
        payload = payload.get("events", [])
    if not isinstance(payload, list):
        raise ValueError("expected a list of event records")
    return payload


def _run_expand(args: argparse.Namespace) -> int:
    settings: dict[str, Any] = ConfigManager().load_full_config()
    if args.max_iterations is not None:
        settings["max_iterations"] = args.max_iterations
    if args.no_base:
        settings["include_base"] = False

    try:
        config = ExpanderConfig.from_settings(settings)
        records = _load_records(args.records)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    window_start, window_end = args.start, args.end
    if args.tz is not None:
        if window_start.tzinfo is None:
            window_start = window_start.replace(tzinfo=args.tz)
        if window_end.tzinfo is None:
            window_end = window_end.replace(tzinfo=args.tz)

    logger.debug("Expanding %d records from %s", len(records), args.records)
    try:
        result = ExpansionService(config).expand_records(records, window_start, window_end)
    except RecurrenceError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for warning in result.warnings:
        print(f"Warning: {warning}", file=sys.stderr)
    print(json.dumps([inst.model_dump(mode="json") for inst in result.instances], indent=2))
    return 0


def _run_describe(args: argparse.Namespace) -> int:
    try:
        print(describe_rule(rule_from_rrule(args.rrule)))
    except RecurrenceError as e:
        print(f"Invalid rule: {e}", file=sys.stderr)
        return 2
    return 0


def main(argv: Optional[list[str]] = None) -> NoReturn:
    """Run the lexcal CLI."""
    parser = _create_parser()
    args = parser.parse_args(argv)

    configure_logging(debug_mode=args.debug)

    if args.command == "expand":
        sys.exit(_run_expand(args))
    sys.exit(_run_describe(args))


if __name__ == "__main__":
    main()

"""Conversion between RecurrenceRule and iCalendar RRULE strings."""

from __future__ import annotations

from datetime import date
from typing import Any

from dateutil.parser import isoparse

from ..exceptions import InvalidRuleError
from ..models import EndCondition, EndKind, Frequency, RecurrenceRule
from .expander import validate_rule

# Two-letter iCalendar day codes indexed 0=Sunday..6=Saturday
DAY_CODES = ("SU", "MO", "TU", "WE", "TH", "FR", "SA")


def day_code_to_index(code: str) -> int:
    """Map an iCalendar day code (``MO``) to a weekday index (1).

    Raises:
        InvalidRuleError: If the code is unknown
    """
    normalized = code.strip().upper()
    # Ordinal prefixes such as 1MO or -1FR are not supported
    if normalized not in DAY_CODES:
        raise InvalidRuleError(f"Unknown weekday code: {code!r}")
    return DAY_CODES.index(normalized)


def _parse_until(value: str) -> date:
    try:
        return isoparse(value).date()
    except ValueError as e:
        raise InvalidRuleError(f"Invalid UNTIL value: {value!r}") from e


def parse_rrule_string(rrule_string: str) -> dict[str, Any]:
    """Parse RRULE string into components.

    Args:
        rrule_string: RRULE string (e.g. "FREQ=WEEKLY;INTERVAL=1;BYDAY=MO"),
            with or without a leading ``RRULE:``

    Returns:
        Dictionary with lowercase keys: freq, interval, byday, bymonthday,
        count, until. Unrecognized parts are kept as raw strings.

    Raises:
        InvalidRuleError: If RRULE string is invalid
    """
    if not rrule_string or not rrule_string.strip():
        raise InvalidRuleError("Empty RRULE string")

    text = rrule_string.strip()
    if text.upper().startswith("RRULE:"):
        text = text[len("RRULE:") :]

    rrule_dict: dict[str, Any] = {}
    try:
        for part in text.split(";"):
            if "=" not in part:
                continue
            key, value = part.split("=", 1)
            key = key.strip().lower()
            value = value.strip()

            if key == "freq":
                rrule_dict["freq"] = value.upper()
            elif key == "interval":
                rrule_dict["interval"] = int(value)
            elif key == "byday":
                rrule_dict["byday"] = [day_code_to_index(day) for day in value.split(",") if day.strip()]
            elif key == "bymonthday":
                rrule_dict["bymonthday"] = [int(day) for day in value.split(",") if day.strip()]
            elif key == "count":
                rrule_dict["count"] = int(value)
            elif key == "until":
                rrule_dict["until"] = _parse_until(value)
            else:
                rrule_dict[key] = value
    except ValueError as e:
        raise InvalidRuleError(f"Invalid RRULE format: {rrule_string}") from e

    if not rrule_dict.get("freq"):
        raise InvalidRuleError("RRULE missing required FREQ parameter")

    return rrule_dict


def rule_from_rrule(rrule_string: str) -> RecurrenceRule:
    """Build a RecurrenceRule from an RRULE string.

    Only the first BYMONTHDAY value is used, since a rule pins one day.

    Raises:
        InvalidRuleError: If the string is malformed, names an unsupported
            frequency, or sets both COUNT and UNTIL
    """
    parts = parse_rrule_string(rrule_string)

    try:
        frequency = Frequency(parts["freq"])
    except ValueError as e:
        raise InvalidRuleError(f"Unsupported frequency: {parts['freq']!r}") from e

    if "count" in parts and "until" in parts:
        raise InvalidRuleError("RRULE cannot set both COUNT and UNTIL")

    if "count" in parts:
        end = EndCondition.after(parts["count"])
    elif "until" in parts:
        end = EndCondition.on(parts["until"])
    else:
        end = EndCondition.never()

    month_days = parts.get("bymonthday")
    return RecurrenceRule(
        frequency=frequency,
        interval=parts.get("interval", 1),
        weekdays=parts.get("byday"),
        month_day=month_days[0] if month_days else None,
        end=end,
    )


def rule_to_rrule(rule: RecurrenceRule) -> str:
    """Serialize a RecurrenceRule to an RRULE string (without ``RRULE:``).

    Raises:
        InvalidRuleError: If the rule fails validation
    """
    validate_rule(rule)
    parts = [f"FREQ={rule.frequency.value}"]
    if rule.interval != 1:
        parts.append(f"INTERVAL={rule.interval}")
    if rule.weekdays:
        parts.append("BYDAY=" + ",".join(DAY_CODES[d] for d in sorted(set(rule.weekdays))))
    if rule.month_day is not None:
        parts.append(f"BYMONTHDAY={rule.month_day}")
    if rule.end.kind == EndKind.AFTER and rule.end.count is not None:
        parts.append(f"COUNT={rule.end.count}")
    elif rule.end.kind == EndKind.ON and rule.end.end_date is not None:
        parts.append(f"UNTIL={rule.end.end_date.strftime('%Y%m%d')}")
    return ";".join(parts)

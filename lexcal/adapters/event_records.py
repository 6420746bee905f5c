"""Conversion of stored event records into expander inputs.

Event rows come back from the hosted database as plain dicts with ISO-8601
timestamps and a JSON-encoded ``recurrence_pattern``. Older rows use the
camelCase pattern keys written by the web client (``weekDays``,
``endsAfter``), newer ones the ``recurrence_rules`` column names
(``week_days``, ``ends_after``); both are accepted here.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Optional, Union

from dateutil.parser import isoparse
from pydantic import ValidationError

from ..exceptions import InvalidRuleError, RecordConversionError
from ..models import BaseEvent, EndCondition, EndKind, Frequency, RecurrenceRule
from ..recurrence.expander import validate_rule
from ..recurrence.rrule_codec import DAY_CODES, day_code_to_index

logger = logging.getLogger(__name__)

# Record keys that describe the series itself and are not copied onto instances
_RECURRENCE_KEYS = frozenset({"is_recurring", "recurrence_pattern", "recurrence_id"})

_FIELD_ALIASES = {
    "start_time": "start",
    "end_time": "end",
    "type": "category",
}


def _first_present(pattern: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = pattern.get(key)
        if value is not None:
            return value
    return None


def _parse_timestamp(value: Any, field: str, record_id: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return isoparse(value.strip())
        except ValueError as e:
            raise RecordConversionError(
                f"Event {record_id!r}: invalid {field} timestamp {value!r}"
            ) from e
    raise RecordConversionError(f"Event {record_id!r}: missing {field}")


def event_from_record(record: Mapping[str, Any]) -> BaseEvent:
    """Convert a stored event row into a BaseEvent.

    Args:
        record: Row with ``id``, ``start_time``, ``end_time`` and optional
            ``title``, ``description``, ``location``, ``type``,
            ``calendar_id``, ``is_all_day``. Unknown keys are kept as payload.

    Returns:
        BaseEvent

    Raises:
        RecordConversionError: If the id or timestamps are missing or invalid
    """
    record_id = record.get("id")
    if record_id is None or record_id == "":
        raise RecordConversionError("Event record has no id")

    data: dict[str, Any] = {}
    for key, value in record.items():
        if key in _RECURRENCE_KEYS:
            continue
        data[_FIELD_ALIASES.get(key, key)] = value

    data["id"] = str(record_id)
    data["title"] = record.get("title") or ""
    data["start"] = _parse_timestamp(data.get("start"), "start_time", record_id)
    data["end"] = _parse_timestamp(data.get("end"), "end_time", record_id)
    data["is_all_day"] = bool(record.get("is_all_day", False))

    try:
        return BaseEvent.model_validate(data)
    except ValidationError as e:
        raise RecordConversionError(f"Event {record_id!r}: {e}") from e


def _coerce_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise InvalidRuleError(f"{field} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise InvalidRuleError(f"{field} must be an integer, got {value!r}") from e


def _weekdays_from(pattern: Mapping[str, Any]) -> Optional[list[int]]:
    raw = _first_present(pattern, "weekdays", "weekDays", "week_days")
    if not raw:
        return None
    if isinstance(raw, str):
        raw = raw.split(",")

    weekdays = []
    for item in raw:
        if isinstance(item, str) and not item.strip().lstrip("-").isdigit():
            weekdays.append(day_code_to_index(item))
        else:
            weekdays.append(_coerce_int(item, "weekday"))
    return weekdays


def _month_day_from(pattern: Mapping[str, Any]) -> Optional[int]:
    single = _first_present(pattern, "monthDay", "month_day")
    if single is not None:
        return _coerce_int(single, "monthDay")

    many = _first_present(pattern, "monthDays", "month_days")
    if not many:
        return None
    if len(many) > 1:
        logger.debug("Recurrence pattern lists %d month days; using the first", len(many))
    return _coerce_int(many[0], "monthDay")


def _end_date_from(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return isoparse(str(value)).date()
    except ValueError as e:
        raise InvalidRuleError(f"Invalid end date: {value!r}") from e


def _end_from(pattern: Mapping[str, Any]) -> EndCondition:
    end_date = _first_present(pattern, "endDate", "endsOn", "ends_on", "end_date")
    count = _first_present(pattern, "occurrences", "endsAfter", "ends_after", "count")

    if end_date is not None and count is not None:
        raise InvalidRuleError("Recurrence pattern sets both an end date and an occurrence count")
    if count is not None:
        return EndCondition.after(_coerce_int(count, "occurrences"))
    if end_date is not None:
        return EndCondition.on(_end_date_from(end_date))
    return EndCondition.never()


def rule_from_record(pattern: Union[Mapping[str, Any], str]) -> RecurrenceRule:
    """Convert a stored recurrence pattern into a validated RecurrenceRule.

    Args:
        pattern: Dict or JSON string. Frequency is case-insensitive; a missing
            interval defaults to 1.

    Returns:
        RecurrenceRule that has passed validation

    Raises:
        InvalidRuleError: For malformed JSON, unknown frequency, bad interval,
            out-of-range weekdays or month day, or conflicting end fields
    """
    if isinstance(pattern, str):
        try:
            pattern = json.loads(pattern)
        except json.JSONDecodeError as e:
            raise InvalidRuleError(f"Recurrence pattern is not valid JSON: {e}") from e
    if not isinstance(pattern, Mapping):
        raise InvalidRuleError(f"Recurrence pattern must be an object, got {type(pattern).__name__}")

    raw_frequency = pattern.get("frequency")
    if not isinstance(raw_frequency, str) or not raw_frequency.strip():
        raise InvalidRuleError("Recurrence pattern has no frequency")
    try:
        frequency = Frequency(raw_frequency.strip().upper())
    except ValueError as e:
        raise InvalidRuleError(f"Unknown frequency: {raw_frequency!r}") from e

    interval = pattern.get("interval")
    rule = RecurrenceRule(
        frequency=frequency,
        interval=1 if interval is None else _coerce_int(interval, "interval"),
        weekdays=_weekdays_from(pattern),
        month_day=_month_day_from(pattern),
        end=_end_from(pattern),
    )
    validate_rule(rule)
    return rule


def rule_to_record(rule: RecurrenceRule) -> dict[str, Any]:
    """Convert a rule into ``recurrence_rules`` column values.

    Raises:
        InvalidRuleError: If the rule fails validation
    """
    validate_rule(rule)
    end = rule.end
    return {
        "frequency": rule.frequency.value.lower(),
        "interval": rule.interval,
        "week_days": [DAY_CODES[d] for d in sorted(set(rule.weekdays))] if rule.weekdays else None,
        "month_days": [rule.month_day] if rule.month_day is not None else None,
        "ends_on": end.end_date.isoformat() if end.kind == EndKind.ON and end.end_date else None,
        "ends_after": end.count if end.kind == EndKind.AFTER else None,
    }


def load_recurring_event(
    record: Mapping[str, Any],
) -> tuple[BaseEvent, Optional[RecurrenceRule]]:
    """Convert a stored row into a base event and its rule (None if not recurring).

    Raises:
        RecordConversionError: If the event fields are unusable
        InvalidRuleError: If the row is recurring but its pattern is malformed
    """
    event = event_from_record(record)
    if not record.get("is_recurring"):
        return event, None

    pattern = record.get("recurrence_pattern")
    if not pattern:
        logger.warning("Event %s is marked recurring but has no recurrence pattern", event.id)
        return event, None

    rule = rule_from_record(pattern)
    logger.debug("Loaded recurring event %s: %s every %d", event.id, rule.frequency.value, rule.interval)
    return event, rule

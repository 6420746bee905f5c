"""Recurring event expansion.

Turns one base event plus a RecurrenceRule into the concrete instances that
overlap a display window. Everything here is a pure function of its inputs:
no I/O, no logging, no module state, so it is safe to call from any thread.

The base event's own start is occurrence 0. It always counts toward an
``After(n)`` bound; whether it is also returned is controlled by
``include_base`` (returned by default).
"""

from __future__ import annotations

import calendar
from collections.abc import Iterator
from datetime import datetime, timedelta
from typing import Optional

from dateutil.relativedelta import relativedelta

from ..config import DEFAULT_MAX_ITERATIONS, ExpanderConfig
from ..exceptions import InvalidRuleError, InvalidWindowError, RecurrenceOverflowError
from ..models import BaseEvent, EndKind, EventInstance, Frequency, RecurrenceRule


def validate_rule(rule: RecurrenceRule) -> None:
    """Check a rule's structure.

    Raises:
        InvalidRuleError: If the interval, weekdays, month day or end
            condition are out of range or contradictory
    """
    if rule.interval < 1:
        raise InvalidRuleError(f"interval must be >= 1, got {rule.interval}")

    if rule.weekdays is not None:
        if not rule.weekdays:
            raise InvalidRuleError("weekdays must not be empty when given")
        bad = [d for d in rule.weekdays if not 0 <= d <= 6]
        if bad:
            raise InvalidRuleError(f"weekday indices must be 0 (Sunday)..6 (Saturday), got {bad}")

    if rule.month_day is not None and not 1 <= rule.month_day <= 31:
        raise InvalidRuleError(f"month_day must be 1..31, got {rule.month_day}")

    end = rule.end
    if end.count is not None and end.end_date is not None:
        raise InvalidRuleError("end condition cannot set both an occurrence count and an end date")
    if end.kind == EndKind.AFTER:
        if end.count is None or end.count < 1:
            raise InvalidRuleError(f"AFTER end condition needs a positive count, got {end.count}")
    elif end.kind == EndKind.ON:
        if end.end_date is None:
            raise InvalidRuleError("ON end condition needs an end date")
    elif end.count is not None or end.end_date is not None:
        raise InvalidRuleError("NEVER end condition cannot carry a count or an end date")


def _weekday_index(dt: datetime) -> int:
    """Weekday with 0=Sunday..6=Saturday."""
    return (dt.weekday() + 1) % 7


def _pin_day(dt: datetime, day: int) -> datetime:
    """Move dt to ``day`` of its month, clamped to the month's last day."""
    last = calendar.monthrange(dt.year, dt.month)[1]
    return dt.replace(day=min(day, last))


def _weekly_by_day(start: datetime, interval: int, weekdays: list[int]) -> Iterator[datetime]:
    yield start

    days = sorted(set(weekdays))
    # Weeks begin on Sunday and are numbered from the base event's week.
    offset = _weekday_index(start)
    week = 0
    while True:
        for day in days:
            shift = week * 7 + day - offset
            try:
                candidate = start + timedelta(days=shift)
            except OverflowError:
                if shift < 0:
                    continue
                return
            if candidate > start:
                yield candidate
        week += interval


def _nth_candidate(start: datetime, rule: RecurrenceRule, n: int) -> datetime:
    step = n * rule.interval
    if rule.frequency == Frequency.DAILY:
        return start + timedelta(days=step)
    if rule.frequency == Frequency.WEEKLY:
        return start + timedelta(weeks=step)
    if rule.frequency == Frequency.MONTHLY:
        candidate = start + relativedelta(months=step)
        if rule.month_day is not None:
            candidate = _pin_day(candidate, rule.month_day)
        return candidate
    if rule.frequency == Frequency.YEARLY:
        return start + relativedelta(years=step)
    raise InvalidRuleError(f"unsupported frequency: {rule.frequency!r}")


def _candidates(start: datetime, rule: RecurrenceRule) -> Iterator[datetime]:
    """Yield unbounded candidate starts in increasing order, base first.

    Each candidate is derived from the base start rather than the previous
    candidate so that month-end clamping never drifts (Jan 31 -> Feb 29 ->
    Mar 31). The series ends at the last start representable as a datetime.
    """
    if rule.frequency == Frequency.WEEKLY and rule.weekdays:
        yield from _weekly_by_day(start, rule.interval, rule.weekdays)
        return

    yield start
    n = 1
    while True:
        try:
            candidate = _nth_candidate(start, rule, n)
        except (OverflowError, ValueError):
            # Past datetime.max (year 9999)
            return
        yield candidate
        n += 1


def _series(start: datetime, rule: RecurrenceRule) -> Iterator[tuple[int, datetime]]:
    end = rule.end
    for index, candidate in enumerate(_candidates(start, rule)):
        if end.kind == EndKind.ON and end.end_date is not None and candidate.date() > end.end_date:
            return
        if end.kind == EndKind.AFTER and end.count is not None and index >= end.count:
            return
        yield index, candidate


def iter_occurrences(start: datetime, rule: RecurrenceRule) -> Iterator[tuple[int, datetime]]:
    """Yield ``(occurrence_index, start)`` for every occurrence of a series.

    The end condition is honoured; a NEVER rule only stops at year 9999, so
    bound the iteration yourself (e.g. with itertools.islice).

    Raises:
        InvalidRuleError: If the rule fails validation
    """
    validate_rule(rule)
    return _series(start, rule)


def check_window(base_event: BaseEvent, window_start: datetime, window_end: datetime) -> None:
    """Raise InvalidWindowError for a reversed window or a naive/aware mix."""
    naive = base_event.start.tzinfo is None
    if (window_start.tzinfo is None) != naive or (window_end.tzinfo is None) != naive:
        raise InvalidWindowError(
            "window and event must both be naive or both timezone-aware datetimes"
        )
    if window_start > window_end:
        raise InvalidWindowError(f"window starts after it ends: {window_start} > {window_end}")


def _materialize(
    base_event: BaseEvent,
    index: int,
    start: datetime,
    duration: timedelta,
    prefix: str,
) -> EventInstance:
    data = base_event.model_dump()
    data.update(
        start=start,
        end=start + duration,
        instance_id=f"{prefix}-{index}",
        occurrence_index=index,
        parent_event_id=base_event.id,
        is_recurring_instance=True,
    )
    return EventInstance.model_validate(data)


def expand(
    base_event: BaseEvent,
    rule: RecurrenceRule,
    window_start: datetime,
    window_end: datetime,
    instance_id_prefix: Optional[str] = None,
    *,
    include_base: bool = True,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> list[EventInstance]:
    """Expand a recurring event into the instances overlapping a window.

    An occurrence is returned iff ``end > window_start and start < window_end``
    (half-open window), so adjacent windows never return the same instance
    twice. Instances keep the base event's duration and payload and come back
    in strictly increasing start order.

    Args:
        base_event: Template occurrence (not modified)
        rule: Recurrence rule
        window_start: Inclusive window start
        window_end: Exclusive window end
        instance_id_prefix: Prefix for instance IDs (defaults to the base event ID)
        include_base: Whether occurrence 0 may be returned. It counts toward
            an ``After(n)`` bound either way.
        max_iterations: Ceiling on generated occurrences

    Returns:
        Ordered list of EventInstance

    Raises:
        InvalidRuleError: Rule failed validation; nothing was computed
        InvalidWindowError: Reversed window or naive/aware mix
        RecurrenceOverflowError: Ceiling reached; ``.instances`` holds the
            instances materialized so far
    """
    validate_rule(rule)
    check_window(base_event, window_start, window_end)

    duration = base_event.end - base_event.start
    prefix = instance_id_prefix or base_event.id
    instances: list[EventInstance] = []
    iterations = 0

    for index, start in _series(base_event.start, rule):
        # Candidates only move forward, so nothing later can overlap.
        if start >= window_end:
            break
        if iterations >= max_iterations:
            raise RecurrenceOverflowError(
                f"recurrence of event {base_event.id!r} exceeded {max_iterations} iterations "
                f"before reaching {window_end.isoformat()}",
                instances=instances,
                iterations=iterations,
            )
        iterations += 1

        if index == 0 and not include_base:
            continue
        if start + duration > window_start:
            instances.append(_materialize(base_event, index, start, duration, prefix))

    return instances


class RecurrenceExpander:
    """Expander bound to an ExpanderConfig.

    Thin wrapper around :func:`expand` so callers configure the base-occurrence
    policy and iteration ceiling once.
    """

    def __init__(self, config: Optional[ExpanderConfig] = None):
        self.config = config or ExpanderConfig()

    def expand(
        self,
        base_event: BaseEvent,
        rule: RecurrenceRule,
        window_start: datetime,
        window_end: datetime,
        instance_id_prefix: Optional[str] = None,
    ) -> list[EventInstance]:
        """Expand using this expander's configuration. See :func:`expand`."""
        return expand(
            base_event,
            rule,
            window_start,
            window_end,
            instance_id_prefix,
            include_base=self.config.include_base,
            max_iterations=self.config.max_iterations,
        )

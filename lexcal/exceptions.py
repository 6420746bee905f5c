"""Exception hierarchy for recurrence expansion.

The expander raises these synchronously and never logs them; translating
them into user-facing notices is left to the service layer or the caller.
"""

from __future__ import annotations

from typing import Any


class RecurrenceError(Exception):
    """Base exception for all recurrence errors.

    Catch this to handle every failure the expander, adapter and codec can
    raise in one place.
    """


class InvalidRuleError(RecurrenceError):
    """The recurrence rule failed structural validation.

    Raised when:
    - interval is lower than 1
    - a weekday index is outside 0 (Sunday) .. 6 (Saturday)
    - month_day is outside 1..31
    - the end condition is contradictory (count and end date both set,
      AFTER without a count, ON without a date)
    - a stored rule names an unknown frequency

    Raised before any occurrence is computed.
    """


class RecurrenceOverflowError(RecurrenceError):
    """The iteration ceiling was reached without a natural stop.

    Carries the instances materialized before the ceiling so callers can
    show partial results with a warning instead of nothing.
    """

    def __init__(self, message: str, instances: list[Any] | None = None, iterations: int = 0):
        super().__init__(message)
        self.instances: list[Any] = list(instances or [])
        self.iterations = iterations


class InvalidWindowError(RecurrenceError):
    """The requested display window is unusable.

    Raised when window_start is after window_end, or when the window and the
    base event mix naive and timezone-aware datetimes.
    """


class RecordConversionError(RecurrenceError):
    """A stored event record could not be converted into a BaseEvent."""


# Short names used throughout the calendar code
InvalidRule = InvalidRuleError
RecurrenceOverflow = RecurrenceOverflowError

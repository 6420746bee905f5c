"""lexcal - recurring event expansion for the practice calendar.

Public entry points:
- ``expand`` / ``RecurrenceExpander``: base event + rule -> instances in a window
- ``ExpansionService``: stored event rows -> merged instances with warnings
- ``lexcal.adapters``: stored rows -> BaseEvent / RecurrenceRule
"""

__version__ = "0.1.0"

from .exceptions import (
    InvalidRule,
    InvalidRuleError,
    InvalidWindowError,
    RecordConversionError,
    RecurrenceError,
    RecurrenceOverflow,
    RecurrenceOverflowError,
)
from .models import (
    BaseEvent,
    EndCondition,
    EndKind,
    EventInstance,
    ExpansionResult,
    Frequency,
    RecurrenceRule,
)
from .recurrence import RecurrenceExpander, describe_rule, expand, iter_occurrences
from .services import ExpansionService

__all__ = [
    "BaseEvent",
    "EndCondition",
    "EndKind",
    "EventInstance",
    "ExpansionResult",
    "ExpansionService",
    "Frequency",
    "InvalidRule",
    "InvalidRuleError",
    "InvalidWindowError",
    "RecordConversionError",
    "RecurrenceError",
    "RecurrenceExpander",
    "RecurrenceOverflow",
    "RecurrenceOverflowError",
    "RecurrenceRule",
    "describe_rule",
    "expand",
    "iter_occurrences",
]

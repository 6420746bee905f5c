"""Recurrence expansion, RRULE interop and rule descriptions."""

from .describe import describe_rule
from .expander import RecurrenceExpander, expand, iter_occurrences, validate_rule
from .rrule_codec import parse_rrule_string, rule_from_rrule, rule_to_rrule

__all__ = [
    "RecurrenceExpander",
    "describe_rule",
    "expand",
    "iter_occurrences",
    "parse_rrule_string",
    "rule_from_rrule",
    "rule_to_rrule",
    "validate_rule",
]

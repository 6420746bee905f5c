"""Human-readable summaries of recurrence rules."""

from __future__ import annotations

from datetime import date

from ..models import WEEKDAY_NAMES, EndKind, Frequency, RecurrenceRule
from .expander import validate_rule

_ADVERBS = {
    Frequency.DAILY: "Daily",
    Frequency.WEEKLY: "Weekly",
    Frequency.MONTHLY: "Monthly",
    Frequency.YEARLY: "Yearly",
}

_UNITS = {
    Frequency.DAILY: "days",
    Frequency.WEEKLY: "weeks",
    Frequency.MONTHLY: "months",
    Frequency.YEARLY: "years",
}


def _format_date(value: date) -> str:
    return f"{value.strftime('%b')} {value.day}, {value.year}"


def describe_rule(rule: RecurrenceRule) -> str:
    """Convert a rule to a short description for event dialogs.

    Examples:
        "Daily"
        "Weekly on Mon, Wed, Fri until Jan 10, 2024"
        "Every 2 months on day 15, 3 times"

    Raises:
        InvalidRuleError: If the rule fails validation
    """
    validate_rule(rule)

    if rule.interval == 1:
        text = _ADVERBS[rule.frequency]
    else:
        text = f"Every {rule.interval} {_UNITS[rule.frequency]}"

    if rule.frequency == Frequency.WEEKLY and rule.weekdays:
        text += " on " + ", ".join(WEEKDAY_NAMES[d] for d in sorted(set(rule.weekdays)))
    elif rule.frequency == Frequency.MONTHLY and rule.month_day is not None:
        text += f" on day {rule.month_day}"

    if rule.end.kind == EndKind.AFTER and rule.end.count is not None:
        text += ", once" if rule.end.count == 1 else f", {rule.end.count} times"
    elif rule.end.kind == EndKind.ON and rule.end.end_date is not None:
        text += f" until {_format_date(rule.end.end_date)}"

    return text

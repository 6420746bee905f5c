"""Unit tests for RRULE string conversion."""

from datetime import date

import pytest

from lexcal.exceptions import InvalidRuleError
from lexcal.models import EndCondition, EndKind, Frequency, RecurrenceRule
from lexcal.recurrence.rrule_codec import (
    day_code_to_index,
    parse_rrule_string,
    rule_from_rrule,
    rule_to_rrule,
)

pytestmark = pytest.mark.unit


class TestParseRRuleString:
    """Tests for parse_rrule_string."""

    def test_parse_full_rule(self) -> None:
        parts = parse_rrule_string("FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,WE;COUNT=6")

        assert parts == {"freq": "WEEKLY", "interval": 2, "byday": [1, 3], "count": 6}

    def test_strips_rrule_prefix(self) -> None:
        assert parse_rrule_string("RRULE:FREQ=DAILY")["freq"] == "DAILY"

    def test_parses_until_as_date(self) -> None:
        assert parse_rrule_string("FREQ=DAILY;UNTIL=20240110T235959Z")["until"] == date(2024, 1, 10)

    def test_keeps_unknown_parts(self) -> None:
        assert parse_rrule_string("FREQ=WEEKLY;WKST=MO")["wkst"] == "MO"

    def test_multiple_month_days(self) -> None:
        assert parse_rrule_string("FREQ=MONTHLY;BYMONTHDAY=1,15")["bymonthday"] == [1, 15]

    @pytest.mark.parametrize(
        "text",
        ["", "   ", "INTERVAL=2", "FREQ=DAILY;INTERVAL=two", "FREQ=DAILY;UNTIL=soon"],
    )
    def test_invalid_strings(self, text: str) -> None:
        with pytest.raises(InvalidRuleError):
            parse_rrule_string(text)


class TestDayCodes:
    def test_known_codes(self) -> None:
        assert day_code_to_index("SU") == 0
        assert day_code_to_index(" sa ") == 6

    @pytest.mark.parametrize("code", ["XX", "1MO", "-1FR", ""])
    def test_unsupported_codes(self, code: str) -> None:
        with pytest.raises(InvalidRuleError):
            day_code_to_index(code)


class TestRuleFromRRule:
    def test_weekly_with_count(self) -> None:
        rule = rule_from_rrule("FREQ=WEEKLY;BYDAY=MO,WE,FR;COUNT=6")

        assert rule.frequency == Frequency.WEEKLY
        assert rule.weekdays == [1, 3, 5]
        assert rule.end == EndCondition.after(6)

    def test_monthly_until(self) -> None:
        rule = rule_from_rrule("FREQ=MONTHLY;INTERVAL=3;BYMONTHDAY=15,28;UNTIL=20241231")

        assert rule.interval == 3
        assert rule.month_day == 15
        assert rule.end.kind == EndKind.ON
        assert rule.end.end_date == date(2024, 12, 31)

    def test_no_end_means_never(self) -> None:
        assert rule_from_rrule("FREQ=YEARLY").end.kind == EndKind.NEVER

    def test_unsupported_frequency(self) -> None:
        with pytest.raises(InvalidRuleError, match="Unsupported frequency"):
            rule_from_rrule("FREQ=HOURLY")

    def test_count_and_until_conflict(self) -> None:
        with pytest.raises(InvalidRuleError):
            rule_from_rrule("FREQ=DAILY;COUNT=3;UNTIL=20240110")


class TestRuleToRRule:
    def test_default_interval_omitted(self) -> None:
        assert rule_to_rrule(RecurrenceRule(frequency=Frequency.DAILY)) == "FREQ=DAILY"

    def test_weekly_days_sorted(self) -> None:
        rule = RecurrenceRule(
            frequency=Frequency.WEEKLY, interval=2, weekdays=[5, 1], end=EndCondition.after(4)
        )

        assert rule_to_rrule(rule) == "FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,FR;COUNT=4"

    def test_monthly_until(self) -> None:
        rule = RecurrenceRule(
            frequency=Frequency.MONTHLY, month_day=31, end=EndCondition.on(date(2024, 6, 30))
        )

        assert rule_to_rrule(rule) == "FREQ=MONTHLY;BYMONTHDAY=31;UNTIL=20240630"

    def test_invalid_rule_not_serialized(self) -> None:
        with pytest.raises(InvalidRuleError):
            rule_to_rrule(RecurrenceRule(frequency=Frequency.DAILY, interval=0))

    def test_survives_reparse(self) -> None:
        rule = RecurrenceRule(
            frequency=Frequency.WEEKLY, weekdays=[0, 6], end=EndCondition.on(date(2024, 2, 29))
        )

        assert rule_from_rrule(rule_to_rrule(rule)) == rule

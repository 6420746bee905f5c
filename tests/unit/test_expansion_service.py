"""Unit tests for ExpansionService."""

import logging
from datetime import datetime, timezone

import pytest

from lexcal.config import ExpanderConfig
from lexcal.exceptions import InvalidRuleError, InvalidWindowError
from lexcal.models import BaseEvent, EndCondition, Frequency, RecurrenceRule
from lexcal.services import ExpansionService

pytestmark = pytest.mark.unit


def _record(record_id, start: str, end: str, **extra):
    row = {"id": record_id, "title": f"Event {record_id}", "start_time": start, "end_time": end}
    row.update(extra)
    return row


class TestExpandEvent:
    """Tests for ExpansionService.expand_event."""

    def test_recurring_event_uses_expander(self, weekly_meeting, january_window) -> None:
        rule = RecurrenceRule(frequency=Frequency.WEEKLY, end=EndCondition.after(3))

        instances = ExpansionService().expand_event(weekly_meeting, rule, *january_window)

        assert [inst.instance_id for inst in instances] == ["evt-1-0", "evt-1-1", "evt-1-2"]

    def test_single_event_returned_unmarked(self, weekly_meeting, january_window) -> None:
        instances = ExpansionService().expand_event(weekly_meeting, None, *january_window)

        assert len(instances) == 1
        assert instances[0].instance_id == "evt-1"
        assert instances[0].is_recurring_instance is False
        assert instances[0].docket_number == "24-CV-0113"

    def test_single_event_outside_window(self, weekly_meeting) -> None:
        instances = ExpansionService().expand_event(
            weekly_meeting, None, datetime(2024, 1, 1, 10), datetime(2024, 1, 2)
        )

        assert instances == []

    def test_single_event_reversed_window(self, weekly_meeting) -> None:
        with pytest.raises(InvalidWindowError):
            ExpansionService().expand_event(
                weekly_meeting, None, datetime(2024, 2, 1), datetime(2024, 1, 1)
            )

    def test_invalid_rule_propagates(self, weekly_meeting, january_window) -> None:
        rule = RecurrenceRule(frequency=Frequency.DAILY, interval=0)

        with pytest.raises(InvalidRuleError):
            ExpansionService().expand_event(weekly_meeting, rule, *january_window)

    def test_config_is_applied(self, weekly_meeting, january_window) -> None:
        service = ExpansionService(ExpanderConfig(include_base=False))
        rule = RecurrenceRule(frequency=Frequency.WEEKLY, end=EndCondition.after(2))

        instances = service.expand_event(weekly_meeting, rule, *january_window)

        assert [inst.occurrence_index for inst in instances] == [1]


class TestExpandRecords:
    """Tests for ExpansionService.expand_records."""

    def test_merges_in_start_order(self, event_record, january_window) -> None:
        single = _record("filing", "2024-01-05T17:00:00", "2024-01-05T17:00:00", type="deadline")

        result = ExpansionService().expand_records([event_record, single], *january_window)

        assert [inst.start.day for inst in result.instances] == [1, 5, 8, 15]
        assert result.instances[1].instance_id == "filing"
        assert result.warnings == []
        assert result.is_partial is False

    def test_malformed_record_is_skipped(self, event_record, january_window, caplog) -> None:
        broken = _record("bad-1", "2024-01-03T09:00:00", "2024-01-03T10:00:00", is_recurring=True)
        broken["recurrence_pattern"] = {"frequency": "weekly", "interval": 0}

        with caplog.at_level(logging.WARNING, logger="lexcal.services.expansion_service"):
            result = ExpansionService().expand_records([broken, event_record], *january_window)

        assert len(result.instances) == 3
        assert result.failed_event_ids == ["bad-1"]
        assert len(result.warnings) == 1
        assert "bad-1" in result.warnings[0]
        assert "Skipping event bad-1" in caplog.text

    def test_record_without_timestamps_is_skipped(self, january_window) -> None:
        result = ExpansionService().expand_records([{"id": 7, "title": "No times"}], *january_window)

        assert result.instances == []
        assert result.failed_event_ids == [7]

    def test_overflow_keeps_partial_instances(self, january_window) -> None:
        endless = _record(
            "daily-1",
            "2024-01-01T08:00:00",
            "2024-01-01T08:30:00",
            is_recurring=True,
            recurrence_pattern={"frequency": "daily"},
        )
        service = ExpansionService(ExpanderConfig(max_iterations=10))

        result = service.expand_records([endless], *january_window)

        assert len(result.instances) == 10
        assert result.overflowed_event_ids == ["daily-1"]
        assert result.is_partial is True
        assert "incomplete" in result.warnings[0]

    def test_mixed_timezones_fail_per_event(self, event_record) -> None:
        aware = _record("utc-1", "2024-01-02T09:00:00Z", "2024-01-02T10:00:00Z")

        result = ExpansionService().expand_records(
            [event_record, aware], datetime(2024, 1, 1), datetime(2024, 2, 1)
        )

        assert result.failed_event_ids == ["utc-1"]
        assert len(result.instances) == 3

    def test_reversed_window_raises(self, event_record) -> None:
        with pytest.raises(InvalidWindowError):
            ExpansionService().expand_records(
                [event_record], datetime(2024, 2, 1), datetime(2024, 1, 1)
            )

    def test_naive_and_aware_window_ends_raise(self) -> None:
        with pytest.raises(InvalidWindowError, match="both naive or both timezone-aware"):
            ExpansionService().expand_records(
                [], datetime(2024, 1, 1), datetime(2024, 2, 1, tzinfo=timezone.utc)
            )

    def test_equal_starts_ordered_by_instance_id(self, january_window) -> None:
        rows = [
            _record("b", "2024-01-02T09:00:00", "2024-01-02T10:00:00"),
            _record("a", "2024-01-02T09:00:00", "2024-01-02T09:30:00"),
        ]

        result = ExpansionService().expand_records(rows, *january_window)

        assert [inst.instance_id for inst in result.instances] == ["a", "b"]

    def test_accepts_base_events_built_elsewhere(self, january_window) -> None:
        """expand_event works with events not loaded from rows."""
        event = BaseEvent(id="sol", start=datetime(2024, 1, 31), end=datetime(2024, 1, 31, 1))
        rule = RecurrenceRule(frequency=Frequency.MONTHLY)

        instances = ExpansionService().expand_event(event, rule, datetime(2024, 1, 1), datetime(2024, 4, 1))

        assert [inst.start.day for inst in instances] == [31, 29, 31]

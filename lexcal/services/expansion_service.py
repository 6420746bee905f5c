"""Calendar-level expansion of stored events for a display window.

This is the application layer around the pure expander: it loads rows
through the record adapter, expands each one, merges the results and turns
rule problems into logged warnings instead of failing the whole calendar.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any, Optional

from ..adapters.event_records import load_recurring_event
from ..config import ExpanderConfig
from ..exceptions import (
    InvalidRuleError,
    InvalidWindowError,
    RecordConversionError,
    RecurrenceOverflowError,
)
from ..models import BaseEvent, EventInstance, ExpansionResult, RecurrenceRule
from ..recurrence.expander import RecurrenceExpander, check_window

logger = logging.getLogger(__name__)


class ExpansionService:
    """Expands stored calendar events into renderable instances."""

    def __init__(self, config: Optional[ExpanderConfig] = None):
        """Initialize the service.

        Args:
            config: Expander settings (defaults to ExpanderConfig())
        """
        self.config = config or ExpanderConfig()
        self.expander = RecurrenceExpander(self.config)

        logger.debug(
            "ExpansionService initialized: max_iterations=%d, include_base=%s",
            self.config.max_iterations,
            self.config.include_base,
        )

    def expand_event(
        self,
        event: BaseEvent,
        rule: Optional[RecurrenceRule],
        window_start: datetime,
        window_end: datetime,
    ) -> list[EventInstance]:
        """Expand one event.

        A non-recurring event (``rule`` is None) is returned as a single
        instance, unmarked, when it overlaps the window.

        Raises:
            InvalidRuleError, InvalidWindowError, RecurrenceOverflowError:
                Propagated from the expander
        """
        if rule is not None:
            return self.expander.expand(event, rule, window_start, window_end)

        check_window(event, window_start, window_end)
        if not (event.end > window_start and event.start < window_end):
            return []

        data = event.model_dump()
        data.update(
            instance_id=event.id,
            occurrence_index=0,
            parent_event_id=event.id,
            is_recurring_instance=False,
        )
        return [EventInstance.model_validate(data)]

    def expand_records(
        self,
        records: Iterable[Mapping[str, Any]],
        window_start: datetime,
        window_end: datetime,
    ) -> ExpansionResult:
        """Expand stored event rows and merge them in start order.

        Rows with malformed data or rules are skipped with a warning. A row
        that hits the iteration ceiling contributes the instances produced
        before the ceiling and is listed in ``overflowed_event_ids``.

        Args:
            records: Stored event rows (see lexcal.adapters.event_records)
            window_start: Inclusive window start
            window_end: Exclusive window end

        Returns:
            ExpansionResult with merged instances and warnings

        Raises:
            InvalidWindowError: If window_start is after window_end, or one
                end is naive and the other timezone-aware
        """
        if (window_start.tzinfo is None) != (window_end.tzinfo is None):
            raise InvalidWindowError(
                "window start and end must both be naive or both timezone-aware datetimes"
            )
        if window_start > window_end:
            raise InvalidWindowError(f"window starts after it ends: {window_start} > {window_end}")

        result = ExpansionResult()
        collected: list[EventInstance] = []

        for record in records:
            record_id = record.get("id")
            try:
                event, rule = load_recurring_event(record)
            except (RecordConversionError, InvalidRuleError) as e:
                logger.warning("Skipping event %s: %s", record_id, e)
                result.failed_event_ids.append(record_id)
                result.add_warning(f"Event {record_id} could not be loaded: {e}")
                continue

            try:
                instances = self.expand_event(event, rule, window_start, window_end)
            except RecurrenceOverflowError as e:
                logger.warning(
                    "Recurrence for event %s stopped after %d iterations; showing %d partial instances",
                    event.id,
                    e.iterations,
                    len(e.instances),
                )
                result.overflowed_event_ids.append(event.id)
                result.add_warning(f"Event {event.id} has too many occurrences; results are incomplete")
                instances = e.instances
            except (InvalidRuleError, InvalidWindowError) as e:
                logger.warning("Skipping event %s: %s", event.id, e)
                result.failed_event_ids.append(event.id)
                result.add_warning(f"Event {event.id} could not be expanded: {e}")
                continue

            collected.extend(instances)

        result.instances = sorted(collected, key=lambda inst: (inst.start, inst.instance_id))
        logger.debug(
            "Expanded %d instances (%d warnings) for window %s - %s",
            len(result.instances),
            len(result.warnings),
            window_start.isoformat(),
            window_end.isoformat(),
        )
        return result

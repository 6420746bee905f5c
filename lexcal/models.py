"""Data models for recurring calendar events."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, model_validator


class Frequency(str, Enum):
    """How often a recurrence rule repeats."""

    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class EndKind(str, Enum):
    """Which bound terminates a recurrence."""

    NEVER = "never"
    AFTER = "after"
    ON = "on"


# Weekday indices used throughout: 0=Sunday .. 6=Saturday
WEEKDAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


class EndCondition(BaseModel):
    """Bound on a recurrence: never, after N occurrences, or on a date.

    Both ``count`` and ``end_date`` are optional at construction so that a
    contradictory stored rule can still be represented; rule validation
    rejects such shapes with InvalidRuleError.
    """

    kind: EndKind = Field(default=EndKind.NEVER, description="Bound type")
    count: Optional[int] = Field(
        default=None, description="Total occurrences including the base occurrence"
    )
    end_date: Optional[date] = Field(default=None, description="Last allowed date (inclusive)")

    @classmethod
    def never(cls) -> EndCondition:
        return cls(kind=EndKind.NEVER)

    @classmethod
    def after(cls, count: int) -> EndCondition:
        return cls(kind=EndKind.AFTER, count=count)

    @classmethod
    def on(cls, end_date: date) -> EndCondition:
        return cls(kind=EndKind.ON, end_date=end_date)


class RecurrenceRule(BaseModel):
    """Description of how a base event repeats.

    Values are not range-checked here. The expander validates the rule before
    iterating and reports problems as InvalidRuleError instead of silently
    coercing them.
    """

    frequency: Frequency = Field(..., description="Repeat frequency")
    interval: int = Field(default=1, description="Step count between occurrences")
    weekdays: Optional[list[int]] = Field(
        default=None, description="WEEKLY only: weekday indices, 0=Sunday..6=Saturday"
    )
    month_day: Optional[int] = Field(
        default=None, description="MONTHLY only: day-of-month every occurrence is pinned to"
    )
    end: EndCondition = Field(default_factory=EndCondition.never, description="End condition")


class BaseEvent(BaseModel):
    """Template occurrence of a (possibly recurring) calendar event.

    Any field not declared here is accepted and copied verbatim onto every
    generated instance.
    """

    id: str = Field(..., description="Event ID")
    title: str = Field(default="", description="Event title")
    start: datetime = Field(..., description="Start of the first occurrence")
    end: datetime = Field(..., description="End of the first occurrence")

    # Opaque payload
    description: Optional[str] = Field(default=None, description="Event description")
    location: Optional[str] = Field(default=None, description="Event location")
    category: Optional[str] = Field(default=None, description="Event type, e.g. court or deadline")
    calendar_id: Optional[str] = Field(default=None, description="Owning calendar reference")
    is_all_day: bool = Field(default=False, description="All-day flag, interpreted by the caller")

    model_config = ConfigDict(extra="allow")

    @model_validator(mode="after")
    def _check_time_order(self) -> BaseEvent:
        if (self.start.tzinfo is None) != (self.end.tzinfo is None):
            raise ValueError("start and end must both be naive or both timezone-aware")
        if self.end < self.start:
            raise ValueError(f"event {self.id!r} ends before it starts")
        return self

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @field_serializer("start", "end", when_used="json")
    def serialize_datetime(self, dt: datetime) -> str:
        """Serialize datetime fields to ISO format."""
        return dt.isoformat()


class EventInstance(BaseEvent):
    """A materialized occurrence of a base event."""

    instance_id: str = Field(..., description="Deterministic ID: prefix plus occurrence index")
    occurrence_index: int = Field(..., description="0 for the base occurrence")
    parent_event_id: str = Field(..., description="ID of the base event")
    is_recurring_instance: bool = Field(
        default=True, description="Marks generated copies apart from the original event"
    )


class ExpansionResult(BaseModel):
    """Result of expanding a batch of stored events."""

    instances: list[EventInstance] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    overflowed_event_ids: list[str] = Field(
        default_factory=list, description="Events cut short by the iteration ceiling"
    )
    failed_event_ids: list[Any] = Field(
        default_factory=list, description="Records skipped because they could not be expanded"
    )

    @property
    def is_partial(self) -> bool:
        """True when some output is missing or truncated."""
        return bool(self.overflowed_event_ids or self.failed_event_ids)

    def add_warning(self, warning: str) -> None:
        """Add a warning message."""
        self.warnings.append(warning)

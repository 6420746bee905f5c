"""Shared fixtures for lexcal tests."""

import os
from collections.abc import Generator
from datetime import datetime
from typing import Any

import pytest

from lexcal.models import BaseEvent


@pytest.fixture
def weekly_meeting() -> BaseEvent:
    """Client meeting on Monday 2024-01-01, 09:00-10:00 (naive local time).

    Carries payload fields plus one undeclared field (docket_number) that
    must be copied onto every instance.
    """
    return BaseEvent(
        id="evt-1",
        title="Client meeting",
        start=datetime(2024, 1, 1, 9, 0),
        end=datetime(2024, 1, 1, 10, 0),
        description="Quarterly review",
        location="Conference Room 4",
        category="client-meeting",
        calendar_id="cal-firm",
        docket_number="24-CV-0113",
    )


@pytest.fixture
def january_window() -> tuple[datetime, datetime]:
    """The whole of January 2024 as a half-open window."""
    return datetime(2024, 1, 1), datetime(2024, 2, 1)


@pytest.fixture
def event_record() -> dict[str, Any]:
    """A stored event row as returned by the events table."""
    return {
        "id": "9b2f6c1e-3d4a-4f5b-8c7d-1e2f3a4b5c6d",
        "title": "Status conference",
        "description": "Judge Alvarez, courtroom 5B",
        "start_time": "2024-01-01T09:00:00",
        "end_time": "2024-01-01T10:00:00",
        "type": "court",
        "calendar_id": "0c6f1f7e-2b1a-4c3d-9e8f-7a6b5c4d3e2f",
        "location": "County Courthouse",
        "is_recurring": True,
        "recurrence_pattern": {"frequency": "weekly", "interval": 1, "occurrences": 3},
        "updated_at": "2023-12-20T16:30:00Z",
    }


_LEXCAL_ENV_KEYS = (
    "LEXCAL_MAX_ITERATIONS",
    "LEXCAL_INCLUDE_BASE_OCCURRENCE",
    "LEXCAL_LOG_LEVEL",
    "LEXCAL_DEBUG",
)


@pytest.fixture
def clean_lexcal_env() -> Generator[None, Any, None]:
    """Clear LEXCAL_* variables so host settings don't leak into tests.

    Values written during the test (e.g. by ConfigManager.load_env_file)
    are removed again afterwards.
    """
    saved = {key: os.environ.pop(key) for key in _LEXCAL_ENV_KEYS if key in os.environ}
    yield
    for key in _LEXCAL_ENV_KEYS:
        os.environ.pop(key, None)
    os.environ.update(saved)

"""Shared fixtures for the hotel calendar test suite."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from typing import Any

import pytest

from hotel_calendar.calendar.aggregator import DomainCollections
from hotel_calendar.calendar.router import UpdateCallbacks


@dataclass
class FakeTimer:
    """Handle returned by :class:`FakeScheduler`."""

    delay: float
    callback: Callable[[], None]
    cancelled: bool = False
    fired: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class FakeScheduler:
    """Deterministic stand-in for ``loop.call_later``."""

    timers: list[FakeTimer] = field(default_factory=list)

    def __call__(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(delay=delay, callback=callback)
        self.timers.append(timer)
        return timer

    def fire_all(self) -> None:
        for timer in list(self.timers):
            if not timer.cancelled and not timer.fired:
                timer.fired = True
                timer.callback()

    @property
    def pending(self) -> list[FakeTimer]:
        return [t for t in self.timers if not t.cancelled and not t.fired]


@dataclass
class RecordingCallbacks:
    """Collects every update call made by the mutation router."""

    calls: list[tuple[str, tuple[Any, ...]]] = field(default_factory=list)

    def _recorder(self, name: str) -> Callable[..., None]:
        def _record(*args: Any) -> None:
            self.calls.append((name, args))

        return _record

    def build(self, *omit: str) -> UpdateCallbacks:
        names = ("agenda", "spa", "crm_lead", "task", "group_stay", "agenda_span")
        return UpdateCallbacks(
            **{name: self._recorder(name) for name in names if name not in omit}
        )


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def recorder() -> RecordingCallbacks:
    return RecordingCallbacks()


@pytest.fixture
def sample_records() -> dict[str, list[dict[str, Any]]]:
    """One realistic record per domain, all in the week of 2024-06-10."""
    return {
        "agenda": [
            {
                "id": "evt-1",
                "title": "Supplier meeting",
                "start": "2024-06-10T10:00:00",
                "end": "2024-06-10T11:30:00",
                "time": "10:00",
                "type": "pro",
            }
        ],
        "spa": [
            {
                "id": "s1",
                "clientName": "Marie Dupont",
                "date": "2024-06-11",
                "time": "15:30",
                "isDuo": True,
                "treatment": "Massage",
                "status": "confirmed",
            }
        ],
        "leads": [
            {
                "id": 42,
                "contactName": "Paul Martin",
                "groupName": "Acme Seminar",
                "requestDate": "2024-06-12T08:45:00",
            }
        ],
        "tasks": [
            {"id": "t1", "text": "Check minibar", "dueDate": "2024-06-13", "time": "14:30"},
        ],
        "groups": [
            {
                "id": "g1",
                "name": "Wedding party",
                "status": "confirmed",
                "startDate": "2024-06-10",
                "endDate": "2024-06-12",
                "pax": 40,
                "nights": 2,
            }
        ],
    }


@pytest.fixture
def collections(sample_records) -> DomainCollections:
    return DomainCollections.from_mapping(sample_records)


@pytest.fixture
def reference_day() -> date:
    return date(2024, 6, 10)

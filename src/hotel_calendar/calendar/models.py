"""Calendar engine data models."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field

from hotel_calendar.calendar.identity import DOMAIN_ORDER, Domain, EventRef, prefix_id

Granularity = Literal["day", "week", "month"]

ALL_DAY_LABEL = "All Day"


class CanonicalEvent(BaseModel):
    """Normalized, domain-agnostic calendar row.

    ``original`` is a back-reference to the source record; the event never
    mutates it.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    domain: Domain
    raw_id: str
    start: datetime
    end: datetime | None = None
    display_time: str
    title: str
    style_token: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    original: Any = Field(default=None, exclude=True, repr=False)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def id(self) -> str:
        return prefix_id(self.domain, self.raw_id)

    @property
    def ref(self) -> EventRef:
        return EventRef(domain=self.domain, raw_id=self.raw_id)

    @property
    def is_span(self) -> bool:
        return self.end is not None


class DomainToggles(BaseModel):
    """Per-domain inclusion switches for aggregation."""

    model_config = ConfigDict(frozen=True)

    agenda: bool = True
    spa: bool = True
    crm_lead: bool = True
    task: bool = True
    group_stay: bool = True

    def enabled(self, domain: Domain) -> bool:
        return bool(getattr(self, domain.value))

    def toggle(self, domain: Domain) -> DomainToggles:
        return self.model_copy(update={domain.value: not self.enabled(domain)})

    def active_domains(self) -> list[Domain]:
        return [domain for domain in DOMAIN_ORDER if self.enabled(domain)]


class ViewConfig(BaseModel):
    """Immutable view selection passed into each projection."""

    model_config = ConfigDict(frozen=True)

    granularity: Granularity = "week"
    reference_date: date
    toggles: DomainToggles = Field(default_factory=DomainToggles)


class TimeWindow(BaseModel):
    """Visible-hours window of the day/week time grid."""

    model_config = ConfigDict(frozen=True)

    start_hour: int = Field(default=7, ge=0, le=23)
    hours: int = Field(default=15, ge=1, le=24)
    units_per_hour: float = Field(default=80, gt=0)

    @property
    def visible_hours(self) -> list[int]:
        last = min(self.start_hour + self.hours, 24)
        return list(range(self.start_hour, last))


class MoveIntent(BaseModel):
    """Normalized outcome of a drag gesture."""

    model_config = ConfigDict(frozen=True)

    event_id: str = Field(min_length=1)
    target_date: date
    target_hour: int = Field(ge=0, le=23)


class GridSlot(BaseModel):
    """One hour cell of the time grid; drop target and hit-test metadata."""

    model_config = ConfigDict(frozen=True)

    day: date
    hour: int = Field(ge=0, le=23)


class EventPlacement(BaseModel):
    """Vertical placement of an event inside a time-grid column."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    event: CanonicalEvent
    hour: int
    minute: int
    offset_minutes: int
    top: float


class CalendarCell(BaseModel):
    """Events bucketed into one calendar day."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    day: date
    is_today: bool = False
    events: list[CanonicalEvent] = Field(default_factory=list)
    placements: list[EventPlacement] = Field(default_factory=list)
    slots: list[GridSlot] = Field(default_factory=list)
    max_visible: int | None = None

    @property
    def visible(self) -> list[CanonicalEvent]:
        if self.max_visible is None:
            return list(self.events)
        return self.events[: self.max_visible]

    @property
    def overflow(self) -> int:
        return len(self.events) - len(self.visible)


class ProjectedView(BaseModel):
    """Bucketed output of one projection pass."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    granularity: Granularity
    reference_date: date
    cells: list[CalendarCell] = Field(default_factory=list)
    leading_blanks: int = 0
    window: TimeWindow | None = None

    def cell_for(self, day: date) -> CalendarCell | None:
        for cell in self.cells:
            if cell.day == day:
                return cell
        return None

    @property
    def is_empty(self) -> bool:
        return not any(cell.events for cell in self.cells)

"""Projection of canonical events into day/week/month calendar cells.

Month view buckets by calendar day.  Day and week views are time grids: on
top of the bucketing, each event gets a vertical offset inside a fixed
visible-hours window, and events that fall before the window are left out.

Multi-day events (group stays) belong to every day their span touches.  The
test compares the cell's midday against the span's start-of-day and
end-of-day, which keeps the result stable across DST shifts and odd
boundary times.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable
from datetime import UTC, date, timedelta, tzinfo

from dateutil.relativedelta import relativedelta

from hotel_calendar.calendar.adapters import parse_time_of_day
from hotel_calendar.calendar.dates import end_of_day, midday, start_of_day
from hotel_calendar.calendar.models import (
    CalendarCell,
    CanonicalEvent,
    EventPlacement,
    Granularity,
    GridSlot,
    ProjectedView,
    TimeWindow,
    ViewConfig,
)

DEFAULT_MONTH_VISIBLE = 3


# ---------------------------------------------------------------------------
# Calendar arithmetic
# ---------------------------------------------------------------------------


def month_days(reference: date) -> list[date]:
    """Every day of the reference date's month."""
    _, count = calendar.monthrange(reference.year, reference.month)
    return [date(reference.year, reference.month, day) for day in range(1, count + 1)]


def week_days(reference: date) -> list[date]:
    """Monday..Sunday of the week containing *reference*."""
    monday = reference - timedelta(days=reference.weekday())
    return [monday + timedelta(days=offset) for offset in range(7)]


def visible_days(granularity: Granularity, reference: date) -> list[date]:
    if granularity == "month":
        return month_days(reference)
    if granularity == "week":
        return week_days(reference)
    return [reference]


def shift_reference(reference: date, granularity: Granularity, amount: int) -> date:
    """Move the reference date by *amount* views (months, weeks or days)."""
    if granularity == "month":
        return reference + relativedelta(months=amount)
    if granularity == "week":
        return reference + timedelta(weeks=amount)
    return reference + timedelta(days=amount)


# ---------------------------------------------------------------------------
# Membership and placement
# ---------------------------------------------------------------------------


def occurs_on(event: CanonicalEvent, day: date, tz: tzinfo = UTC) -> bool:
    """True if *event* belongs in the cell for *day*."""
    if event.end is None:
        return event.start.astimezone(tz).date() == day
    noon = midday(day, tz)
    return start_of_day(event.start.astimezone(tz)) <= noon <= end_of_day(event.end.astimezone(tz))


def resolve_time_of_day(event: CanonicalEvent, tz: tzinfo = UTC) -> tuple[int, int]:
    """Hour/minute used for vertical placement.

    ``display_time`` wins when it reads as ``HH:MM``; otherwise the start
    timestamp's own wall-clock time.  Every canonical event has a start, so
    no fixed fallback hour is ever needed.
    """
    parsed = parse_time_of_day(event.display_time)
    if parsed is not None:
        return parsed
    local = event.start.astimezone(tz)
    return local.hour, local.minute


def place_event(
    event: CanonicalEvent,
    window: TimeWindow,
    tz: tzinfo = UTC,
) -> EventPlacement | None:
    """Vertical offset of *event* in *window*, or ``None`` if it starts too early."""
    hour, minute = resolve_time_of_day(event, tz)
    if hour < window.start_hour:
        return None
    offset = (hour - window.start_hour) * 60 + minute
    return EventPlacement(
        event=event,
        hour=hour,
        minute=minute,
        offset_minutes=offset,
        top=offset / 60 * window.units_per_hour,
    )


# ---------------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------------


def project(
    events: Iterable[CanonicalEvent],
    view: ViewConfig,
    *,
    window: TimeWindow | None = None,
    tz: tzinfo = UTC,
    today: date | None = None,
    month_visible: int = DEFAULT_MONTH_VISIBLE,
) -> ProjectedView:
    """Bucket *events* into the cells of *view*."""
    window = window or TimeWindow()
    pool = list(events)
    days = visible_days(view.granularity, view.reference_date)
    time_grid = view.granularity != "month"

    cells: list[CalendarCell] = []
    for day in days:
        members = [event for event in pool if occurs_on(event, day, tz)]
        cell = CalendarCell(day=day, is_today=today is not None and day == today)
        if time_grid:
            placements = [
                placement
                for placement in (place_event(event, window, tz) for event in members)
                if placement is not None
            ]
            cell.placements = placements
            cell.events = [placement.event for placement in placements]
            cell.slots = [GridSlot(day=day, hour=hour) for hour in window.visible_hours]
        else:
            cell.events = members
            cell.max_visible = month_visible
        cells.append(cell)

    leading_blanks = days[0].weekday() if view.granularity == "month" else 0
    return ProjectedView(
        granularity=view.granularity,
        reference_date=view.reference_date,
        cells=cells,
        leading_blanks=leading_blanks,
        window=window if time_grid else None,
    )

"""Per-domain adapters turning raw records into canonical calendar events.

Each adapter takes one raw record (a mapping, or any object exposing the
same attribute names) and returns a ``CanonicalEvent`` or ``None``.  A
``None`` means the record has no usable primary date or lacks a required
field; adapters never raise on malformed input.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping
from datetime import UTC, tzinfo
from typing import Any

from hotel_calendar.calendar.dates import normalize
from hotel_calendar.calendar.identity import Domain
from hotel_calendar.calendar.models import ALL_DAY_LABEL, CanonicalEvent

logger = logging.getLogger(__name__)

Adapter = Callable[[Any, tzinfo], CanonicalEvent | None]

_TIME_OF_DAY_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")

_GROUP_START_ALIASES = ("startDate", "start_date", "arrivalDate")
_GROUP_END_ALIASES = ("endDate", "end_date", "departureDate")
_TASK_DUE_ALIASES = ("dueDate", "date")

_AGENDA_TYPES = frozenset({"pro", "perso", "google"})


def field_value(record: Any, name: str) -> Any:
    """Read *name* from a mapping or attribute-style record."""
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _first_present(record: Any, names: tuple[str, ...]) -> Any:
    for name in names:
        value = field_value(record, name)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _record_id(record: Any) -> str | None:
    raw_id = field_value(record, "id")
    if raw_id is None or isinstance(raw_id, bool):
        return None
    text = _text(raw_id)
    return text or None


def parse_time_of_day(value: Any) -> tuple[int, int] | None:
    """Parse ``"H:MM"`` / ``"HH:MM"`` into ``(hour, minute)``."""
    if not isinstance(value, str):
        return None
    match = _TIME_OF_DAY_PATTERN.match(value.strip())
    if match is None:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        return None
    return hour, minute


def format_hhmm(hour: int, minute: int) -> str:
    return f"{hour:02d}:{minute:02d}"


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------


def adapt_agenda(record: Any, tz: tzinfo = UTC) -> CanonicalEvent | None:
    """Personal agenda entry: dated by its own ``start`` instant."""
    raw_id = _record_id(record)
    if raw_id is None:
        return None
    start = normalize(field_value(record, "start"), tz)
    if start is None:
        return None

    time_label = _text(field_value(record, "time"))
    event_type = _text(field_value(record, "type")).lower()
    style = f"agenda-{event_type}" if event_type in _AGENDA_TYPES else "agenda"

    return CanonicalEvent(
        domain=Domain.AGENDA,
        raw_id=raw_id,
        start=start,
        display_time=time_label or "00:00",
        title=_text(field_value(record, "title")) or "Untitled",
        style_token=style,
        metadata={"type": event_type or None},
        original=record,
    )


def adapt_spa(record: Any, tz: tzinfo = UTC) -> CanonicalEvent | None:
    """Spa booking: date and time-of-day live in separate fields, both required."""
    raw_id = _record_id(record)
    if raw_id is None:
        return None
    day_text = _text(field_value(record, "date"))
    time_text = _text(field_value(record, "time"))
    if not day_text or not time_text:
        return None
    start = normalize(f"{day_text}T{time_text}", tz)
    if start is None:
        return None

    client = _text(field_value(record, "clientName")) or "Guest"
    is_duo = bool(field_value(record, "isDuo"))
    status = _text(field_value(record, "status")).lower()

    return CanonicalEvent(
        domain=Domain.SPA,
        raw_id=raw_id,
        start=start,
        display_time=time_text,
        title=f"Spa (duo): {client}" if is_duo else f"Spa: {client}",
        style_token="spa-refused" if status == "refused" else "spa",
        metadata={
            "treatment": _text(field_value(record, "treatment")) or None,
            "status": status or None,
            "duo": is_duo,
        },
        original=record,
    )


def adapt_lead(record: Any, tz: tzinfo = UTC) -> CanonicalEvent | None:
    """CRM lead: a call-back reminder dated by the request date."""
    raw_id = _record_id(record)
    if raw_id is None:
        return None
    start = normalize(field_value(record, "requestDate"), tz)
    if start is None:
        return None

    contact = _text(field_value(record, "contactName")) or "Unknown contact"
    group_name = _text(field_value(record, "groupName"))
    title = f"Call back: {contact}"
    if group_name:
        title = f"{title} - {group_name}"

    return CanonicalEvent(
        domain=Domain.CRM_LEAD,
        raw_id=raw_id,
        start=start,
        display_time=format_hhmm(start.hour, start.minute),
        title=title,
        style_token="lead",
        metadata={"status": _text(field_value(record, "status")) or None},
        original=record,
    )


def adapt_task(record: Any, tz: tzinfo = UTC) -> CanonicalEvent | None:
    """Action task dated by its due date, optionally pinned to a time of day."""
    raw_id = _record_id(record)
    if raw_id is None:
        return None
    due = normalize(_first_present(record, _TASK_DUE_ALIASES), tz)
    if due is None:
        return None

    time_of_day = parse_time_of_day(field_value(record, "time"))
    if time_of_day is not None:
        hour, minute = time_of_day
        start = due.replace(hour=hour, minute=minute, second=0, microsecond=0)
        display_time = format_hhmm(hour, minute)
    else:
        start = due
        display_time = ALL_DAY_LABEL

    done = bool(field_value(record, "done"))
    return CanonicalEvent(
        domain=Domain.TASK,
        raw_id=raw_id,
        start=start,
        display_time=display_time,
        title=f"Task: {_text(field_value(record, 'text')) or 'Untitled'}",
        style_token="task-done" if done else "task",
        metadata={"tag": _text(field_value(record, "tag")) or None, "done": done},
        original=record,
    )


def adapt_group_stay(record: Any, tz: tzinfo = UTC) -> CanonicalEvent | None:
    """Multi-day group stay spanning ``[start, end]``."""
    raw_id = _record_id(record)
    if raw_id is None:
        return None
    start = normalize(_first_present(record, _GROUP_START_ALIASES), tz)
    end = normalize(_first_present(record, _GROUP_END_ALIASES), tz)
    if start is None or end is None:
        return None
    if end < start:
        logger.debug("Dropping group stay %s: end %s precedes start %s", raw_id, end, start)
        return None

    status = _text(field_value(record, "status")).lower() or "option"
    name = _text(field_value(record, "name")) or "Group"

    return CanonicalEvent(
        domain=Domain.GROUP_STAY,
        raw_id=raw_id,
        start=start,
        end=end,
        display_time=ALL_DAY_LABEL,
        title=f"{name} ({status})",
        style_token="group-confirmed" if status == "confirmed" else "group-option",
        metadata={
            "status": status,
            "pax": field_value(record, "pax"),
            "nights": field_value(record, "nights"),
        },
        original=record,
    )


ADAPTERS: dict[Domain, Adapter] = {
    Domain.AGENDA: adapt_agenda,
    Domain.SPA: adapt_spa,
    Domain.CRM_LEAD: adapt_lead,
    Domain.TASK: adapt_task,
    Domain.GROUP_STAY: adapt_group_stay,
}


def adapt(domain: Domain, record: Any, tz: tzinfo = UTC) -> CanonicalEvent | None:
    """Run the adapter for *domain*, turning unexpected failures into a drop."""
    try:
        return ADAPTERS[domain](record, tz)
    except (TypeError, ValueError, AttributeError, OverflowError) as exc:
        logger.debug("Dropping malformed %s record: %s", domain.value, exc)
        return None

"""Route move intents to the owning domain's update callback.

Each domain store exposes its own update contract:

- agenda, spa, task and group stay take ``(raw_id, "YYYY-MM-DD", "HH:00")``;
- an optional ``agenda_span`` hook additionally receives
  ``(raw_id, start, end)`` datetimes that keep the original event duration;
- CRM leads take a single ISO-8601 instant.

The domain comes from the id prefix.  Bare ids without a prefix go through a
legacy structural sniff over the raw records, kept only for backward
compatibility.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, time, timedelta, tzinfo
from enum import StrEnum
from typing import Any

from hotel_calendar.calendar.adapters import field_value
from hotel_calendar.calendar.aggregator import DomainCollections
from hotel_calendar.calendar.dates import normalize
from hotel_calendar.calendar.identity import Domain, EventRef, parse_id
from hotel_calendar.calendar.models import MoveIntent

logger = logging.getLogger(__name__)

DEFAULT_DURATION = timedelta(hours=1)

# Structural sniff order for unprefixed ids.
_FALLBACK_DOMAINS = (Domain.AGENDA, Domain.TASK, Domain.SPA)
_DUE_DATE_FIELDS = ("dueDate",)
_CLIENT_NAME_FIELDS = ("clientName",)


class RouteOutcome(StrEnum):
    ROUTED = "routed"
    NO_CALLBACK = "no_callback"
    UNRESOLVED = "unresolved"
    FAILED = "failed"


@dataclass
class UpdateCallbacks:
    """Optional per-domain update hooks supplied by the domain stores."""

    agenda: Callable[[str, str, str], Any] | None = None
    spa: Callable[[str, str, str], Any] | None = None
    crm_lead: Callable[[str, str], Any] | None = None
    task: Callable[[str, str, str], Any] | None = None
    group_stay: Callable[[str, str, str], Any] | None = None
    agenda_span: Callable[[str, datetime, datetime], Any] | None = None

    def for_domain(self, domain: Domain) -> Callable[..., Any] | None:
        return getattr(self, domain.value)


def format_date(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%d")


def format_hour(hour: int) -> str:
    return f"{hour:02d}:00"


def target_instant(intent: MoveIntent, tz: tzinfo = UTC) -> datetime:
    """Target date at the dropped hour, minutes zeroed."""
    return datetime.combine(intent.target_date, time(intent.target_hour, 0), tzinfo=tz)


def _find_record(collection: Any, raw_id: str) -> Any:
    for record in collection:
        record_id = field_value(record, "id")
        if record_id is not None and str(record_id) == raw_id:
            return record
    return None


def _has_any(record: Any, names: tuple[str, ...]) -> bool:
    return any(field_value(record, name) not in (None, "") for name in names)


def sniff_domain(record: Any) -> Domain:
    """Legacy shape detection: due date => task, client name => spa, else agenda."""
    if _has_any(record, _DUE_DATE_FIELDS):
        return Domain.TASK
    if _has_any(record, _CLIENT_NAME_FIELDS):
        return Domain.SPA
    return Domain.AGENDA


def agenda_span(record: Any, new_start: datetime, tz: tzinfo = UTC) -> tuple[datetime, datetime]:
    """New ``(start, end)`` keeping the record's original duration."""
    duration = DEFAULT_DURATION
    if record is not None:
        start = normalize(field_value(record, "start"), tz)
        end = normalize(field_value(record, "end"), tz)
        if start is not None and end is not None:
            duration = end - start
    return new_start, new_start + duration


class MutationRouter:
    """Turns move intents into exactly one external update call."""

    def __init__(self, callbacks: UpdateCallbacks | None = None, tz: tzinfo = UTC) -> None:
        self.callbacks = callbacks or UpdateCallbacks()
        self.tz = tz

    def resolve(self, event_id: str, collections: DomainCollections) -> tuple[EventRef, Any] | None:
        """Find the domain and raw record behind *event_id*."""
        ref = parse_id(event_id)
        if ref is not None:
            collection = collections.records(ref.domain)
            record = _find_record(collection, ref.raw_id)
            if record is not None:
                return ref, record
            # Records whose own id already carried the tag.
            tagged = event_id.strip()
            record = _find_record(collection, tagged)
            if record is not None:
                return EventRef(domain=ref.domain, raw_id=tagged), record
            return None

        for domain in _FALLBACK_DOMAINS:
            record = _find_record(collections.records(domain), event_id)
            if record is not None:
                return EventRef(domain=sniff_domain(record), raw_id=event_id), record
        return None

    def route(self, intent: MoveIntent, collections: DomainCollections) -> RouteOutcome:
        resolved = self.resolve(intent.event_id, collections)
        if resolved is None:
            logger.info("No calendar record matches moved id %s; ignoring", intent.event_id)
            return RouteOutcome.UNRESOLVED
        ref, record = resolved

        callback = self.callbacks.for_domain(ref.domain)
        if callback is None:
            logger.info("No update callback for %s; move of %s skipped", ref.domain, ref.raw_id)
            return RouteOutcome.NO_CALLBACK

        new_start = target_instant(intent, self.tz)
        date_str = format_date(new_start)
        time_str = format_hour(intent.target_hour)

        try:
            if ref.domain is Domain.CRM_LEAD:
                callback(ref.raw_id, new_start.isoformat())
            else:
                callback(ref.raw_id, date_str, time_str)
            if ref.domain is Domain.AGENDA and self.callbacks.agenda_span is not None:
                start, end = agenda_span(record, new_start, self.tz)
                self.callbacks.agenda_span(ref.raw_id, start, end)
        except Exception:
            logger.exception("Update callback for %s %s failed", ref.domain, ref.raw_id)
            return RouteOutcome.FAILED

        logger.info("Rescheduled %s %s to %s %s", ref.domain, ref.raw_id, date_str, time_str)
        return RouteOutcome.ROUTED

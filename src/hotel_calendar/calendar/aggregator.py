"""Fan-in of all domain collections into one canonical event list."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, tzinfo
from typing import Any

from opentelemetry import trace

from hotel_calendar.calendar.adapters import adapt
from hotel_calendar.calendar.identity import DOMAIN_ORDER, Domain
from hotel_calendar.calendar.models import CanonicalEvent, DomainToggles

logger = logging.getLogger(__name__)

# Snapshot keys accepted for each domain, canonical name first.
COLLECTION_KEYS: dict[Domain, tuple[str, ...]] = {
    Domain.AGENDA: ("agenda", "events"),
    Domain.SPA: ("spa", "spa_requests", "spaRequests"),
    Domain.CRM_LEAD: ("crm_lead", "leads"),
    Domain.TASK: ("task", "tasks", "todos"),
    Domain.GROUP_STAY: ("group_stay", "groups"),
}


@dataclass
class DomainCollections:
    """Raw record collections, one per domain.

    Anything that is not a list or tuple is treated as an empty collection.
    """

    agenda: Any = field(default_factory=list)
    spa: Any = field(default_factory=list)
    crm_lead: Any = field(default_factory=list)
    task: Any = field(default_factory=list)
    group_stay: Any = field(default_factory=list)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> DomainCollections:
        """Build collections from a snapshot mapping using any accepted key."""
        if not isinstance(data, Mapping):
            return cls()
        values: dict[str, Any] = {}
        for domain, keys in COLLECTION_KEYS.items():
            for key in keys:
                if key in data:
                    values[domain.value] = data[key]
                    break
        return cls(**values)

    def records(self, domain: Domain) -> Sequence[Any]:
        value = getattr(self, domain.value)
        if isinstance(value, list | tuple):
            return value
        if value is not None:
            logger.debug("Ignoring non-list %s collection of type %s", domain.value, type(value))
        return ()


@dataclass
class AggregationResult:
    """Canonical events of one pass plus drop/duplicate counters."""

    events: list[CanonicalEvent] = field(default_factory=list)
    dropped: dict[Domain, int] = field(default_factory=dict)
    duplicates: int = 0


def aggregate_with_stats(
    toggles: DomainToggles,
    collections: DomainCollections,
    tz: tzinfo = UTC,
) -> AggregationResult:
    """Adapt every enabled domain in fixed order and dedupe by id, first wins."""
    result = AggregationResult()
    seen: set[str] = set()
    tracer = trace.get_tracer("hotel_calendar")

    with tracer.start_as_current_span("hotel_calendar.aggregate") as span:
        for domain in DOMAIN_ORDER:
            if not toggles.enabled(domain):
                continue
            dropped = 0
            for record in collections.records(domain):
                event = adapt(domain, record, tz)
                if event is None:
                    dropped += 1
                    continue
                if event.id in seen:
                    result.duplicates += 1
                    logger.warning("Duplicate calendar id %s from %s ignored", event.id, domain)
                    continue
                seen.add(event.id)
                result.events.append(event)
            if dropped:
                result.dropped[domain] = dropped
                logger.debug("Dropped %d unschedulable %s record(s)", dropped, domain.value)

        span.set_attribute("calendar.events", len(result.events))
        span.set_attribute("calendar.dropped", sum(result.dropped.values()))
        span.set_attribute("calendar.duplicates", result.duplicates)

    return result


def aggregate(
    toggles: DomainToggles,
    collections: DomainCollections,
    tz: tzinfo = UTC,
) -> list[CanonicalEvent]:
    """Return the canonical event set for the enabled domains."""
    return aggregate_with_stats(toggles, collections, tz).events

"""Canonical timeline: normalization, aggregation, projection and rescheduling."""

from hotel_calendar.calendar.aggregator import DomainCollections, aggregate
from hotel_calendar.calendar.identity import Domain, EventRef, parse_id, prefix_id
from hotel_calendar.calendar.models import CanonicalEvent, MoveIntent, ViewConfig
from hotel_calendar.calendar.projector import project
from hotel_calendar.calendar.router import MutationRouter, RouteOutcome, UpdateCallbacks

__all__ = [
    "CanonicalEvent",
    "Domain",
    "DomainCollections",
    "EventRef",
    "MoveIntent",
    "MutationRouter",
    "RouteOutcome",
    "UpdateCallbacks",
    "ViewConfig",
    "aggregate",
    "parse_id",
    "prefix_id",
    "project",
]

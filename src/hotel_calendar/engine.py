"""Calendar engine facade.

Owns the only mutable state of the calendar: the current view selection,
the latest snapshot of domain collections, and the active reschedule
session.  Aggregation and projection stay pure; the engine just feeds them
the current immutable ``ViewConfig``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date, datetime

from hotel_calendar.calendar.aggregator import DomainCollections, aggregate
from hotel_calendar.calendar.drag import (
    HitTest,
    PointerChannel,
    RescheduleSession,
    Scheduler,
    TouchChannel,
)
from hotel_calendar.calendar.identity import Domain
from hotel_calendar.calendar.models import (
    CanonicalEvent,
    Granularity,
    MoveIntent,
    ProjectedView,
    ViewConfig,
)
from hotel_calendar.calendar.projector import project, shift_reference
from hotel_calendar.calendar.router import MutationRouter, RouteOutcome, UpdateCallbacks
from hotel_calendar.config import CalendarConfig

logger = logging.getLogger(__name__)


def _no_hit(x: float, y: float) -> None:  # noqa: ARG001
    return None


class CalendarEngine:
    """Unified hotel calendar: aggregation, projection and drag rescheduling."""

    def __init__(
        self,
        config: CalendarConfig | None = None,
        *,
        callbacks: UpdateCallbacks | None = None,
        collections: DomainCollections | None = None,
        reference_date: date | None = None,
        scheduler: Scheduler | None = None,
        hit_test: HitTest | None = None,
        haptic: Callable[[], None] | None = None,
    ) -> None:
        self.config = config or CalendarConfig()
        self.tz = self.config.tzinfo
        self.collections = collections or DomainCollections()
        self.router = MutationRouter(callbacks, tz=self.tz)
        self.view = ViewConfig(
            granularity=self.config.default_view,
            reference_date=reference_date or self.today(),
            toggles=self.config.domains,
        )
        self.last_outcome: RouteOutcome | None = None

        self.session = RescheduleSession(
            self._on_move,
            scheduler=scheduler,
            hold_threshold_s=self.config.touch.hold_seconds,
            move_tolerance_px=self.config.touch.move_tolerance_px,
            haptic=haptic,
        )
        self.pointer = PointerChannel(self.session)
        self.touch = TouchChannel(self.session, hit_test or _no_hit)

    def today(self) -> date:
        return datetime.now(self.tz).date()

    # -- inputs --------------------------------------------------------------

    def set_collections(self, collections: DomainCollections) -> None:
        self.collections = collections

    def set_granularity(self, granularity: Granularity) -> None:
        self.view = self.view.model_copy(update={"granularity": granularity})

    def navigate(self, amount: int) -> date:
        """Step the reference date by *amount* views backward or forward."""
        reference = shift_reference(self.view.reference_date, self.view.granularity, amount)
        self.view = self.view.model_copy(update={"reference_date": reference})
        logger.debug("Calendar %s view moved to %s", self.view.granularity, reference)
        return reference

    def go_to_today(self) -> None:
        self.view = self.view.model_copy(update={"reference_date": self.today()})

    def open_day(self, day: date) -> None:
        """Drill down from a month cell into its day view."""
        self.view = self.view.model_copy(update={"reference_date": day, "granularity": "day"})

    def toggle_domain(self, domain: Domain) -> None:
        self.view = self.view.model_copy(update={"toggles": self.view.toggles.toggle(domain)})

    # -- outputs -------------------------------------------------------------

    def events(self) -> list[CanonicalEvent]:
        return aggregate(self.view.toggles, self.collections, self.tz)

    def render(self, today: date | None = None) -> ProjectedView:
        return project(
            self.events(),
            self.view,
            window=self.config.window,
            tz=self.tz,
            today=today or self.today(),
            month_visible=self.config.month_visible_events,
        )

    def _on_move(self, intent: MoveIntent) -> None:
        self.last_outcome = self.router.route(intent, self.collections)

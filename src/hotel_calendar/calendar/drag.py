"""Reschedule gestures: one session state machine fed by two input channels.

A pointer drag goes straight to ``DRAGGING`` on drag-start and ends on drop.
A touch gesture first sits in ``PENDING`` while a hold timer runs; only if
the finger stays put until the timer fires does it become a drag.  Releasing
or moving away before that is a tap or a scroll and emits nothing.

Both channels finish through :meth:`RescheduleSession.drop`, so a move
intent is built in exactly one place.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Callable
from datetime import date
from enum import StrEnum
from typing import Protocol

from hotel_calendar.calendar.models import GridSlot, MoveIntent

logger = logging.getLogger(__name__)

DEFAULT_HOLD_THRESHOLD_S = 0.5
DEFAULT_MOVE_TOLERANCE_PX = 10.0


class SessionState(StrEnum):
    IDLE = "idle"
    PENDING = "pending"
    DRAGGING = "dragging"


class DragChannel(StrEnum):
    POINTER = "pointer"
    TOUCH = "touch"


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


Scheduler = Callable[[float, Callable[[], None]], TimerHandle]
HitTest = Callable[[float, float], GridSlot | None]
MoveListener = Callable[[MoveIntent], None]


def asyncio_scheduler(delay: float, callback: Callable[[], None]) -> TimerHandle:
    """Schedule *callback* on the running event loop."""
    return asyncio.get_running_loop().call_later(delay, callback)


class RescheduleSession:
    """Lifecycle of the single active reschedule gesture."""

    def __init__(
        self,
        on_move: MoveListener,
        *,
        scheduler: Scheduler | None = None,
        hold_threshold_s: float = DEFAULT_HOLD_THRESHOLD_S,
        move_tolerance_px: float = DEFAULT_MOVE_TOLERANCE_PX,
        haptic: Callable[[], None] | None = None,
    ) -> None:
        self._on_move = on_move
        self._scheduler = scheduler or asyncio_scheduler
        self._hold_threshold_s = hold_threshold_s
        self._move_tolerance_px = move_tolerance_px
        self._haptic = haptic

        self.state = SessionState.IDLE
        self.event_id: str | None = None
        self.channel: DragChannel | None = None
        self.hover_slot: GridSlot | None = None
        self._origin: tuple[float, float] | None = None
        self._timer: TimerHandle | None = None
        self._generation = 0

    @property
    def active(self) -> bool:
        return self.state is not SessionState.IDLE

    def owned_by(self, channel: DragChannel) -> bool:
        return self.active and self.channel is channel

    # -- starting ----------------------------------------------------------

    def _claim(self, event_id: str, channel: DragChannel) -> bool:
        if self.active:
            logger.debug(
                "Ignoring %s drag of %s: %s session for %s still active",
                channel,
                event_id,
                self.channel,
                self.event_id,
            )
            return False
        if not event_id:
            return False
        self._generation += 1
        self.event_id = event_id
        self.channel = channel
        self.hover_slot = None
        return True

    def begin_drag(self, event_id: str, channel: DragChannel = DragChannel.POINTER) -> bool:
        """Start an immediate drag (pointer drag-start)."""
        if not self._claim(event_id, channel):
            return False
        self.state = SessionState.DRAGGING
        return True

    def begin_hold(self, event_id: str, x: float, y: float) -> bool:
        """Start a touch hold; the drag activates when the timer fires."""
        if not self._claim(event_id, DragChannel.TOUCH):
            return False
        generation = self._generation
        try:
            timer = self._scheduler(self._hold_threshold_s, lambda: self._activate(generation))
        except RuntimeError:
            logger.warning("Cannot schedule touch hold for %s; gesture ignored", event_id)
            self._reset()
            return False
        self.state = SessionState.PENDING
        self._origin = (x, y)
        self._timer = timer
        return True

    def _activate(self, generation: int) -> None:
        if generation != self._generation or self.state is not SessionState.PENDING:
            return
        self._timer = None
        self.state = SessionState.DRAGGING
        logger.debug("Touch drag activated for %s", self.event_id)
        if self._haptic is not None:
            self._haptic()

    # -- tracking ----------------------------------------------------------

    def track_pending_move(self, x: float, y: float) -> None:
        """A finger moving away during the hold turns the gesture into a scroll."""
        if self.state is not SessionState.PENDING or self._origin is None:
            return
        ox, oy = self._origin
        if math.hypot(x - ox, y - oy) > self._move_tolerance_px:
            self.cancel()

    def hover(self, slot: GridSlot | None) -> None:
        if self.state is SessionState.DRAGGING:
            self.hover_slot = slot

    # -- finishing ---------------------------------------------------------

    def drop(self, slot: GridSlot | None) -> MoveIntent | None:
        """Finish the drag on *slot*; emits a move intent when one is resolved."""
        if self.state is not SessionState.DRAGGING or self.event_id is None:
            self.cancel()
            return None
        event_id = self.event_id
        self._reset()
        if slot is None:
            logger.debug("Drag of %s released outside the grid", event_id)
            return None
        intent = MoveIntent(event_id=event_id, target_date=slot.day, target_hour=slot.hour)
        self._on_move(intent)
        return intent

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._reset()

    def _reset(self) -> None:
        self._timer = None
        self._origin = None
        self.state = SessionState.IDLE
        self.event_id = None
        self.channel = None
        self.hover_slot = None


class PointerChannel:
    """Native drag-and-drop: the event id travels as the transfer payload."""

    def __init__(self, session: RescheduleSession) -> None:
        self._session = session

    def drag_start(self, event_id: str) -> bool:
        return self._session.begin_drag(event_id, DragChannel.POINTER)

    def drag_over(self, day: date, hour: int) -> None:
        if self._session.owned_by(DragChannel.POINTER):
            self._session.hover(GridSlot(day=day, hour=hour))

    def drop(self, day: date, hour: int) -> MoveIntent | None:
        if not self._session.owned_by(DragChannel.POINTER):
            return None
        return self._session.drop(GridSlot(day=day, hour=hour))

    def drag_end(self) -> None:
        """Drag finished without a drop on the grid."""
        if self._session.owned_by(DragChannel.POINTER):
            self._session.cancel()


class TouchChannel:
    """Long-press-then-move touch gestures, hit-tested against grid slots."""

    def __init__(self, session: RescheduleSession, hit_test: HitTest) -> None:
        self._session = session
        self._hit_test = hit_test

    def touch_start(self, event_id: str, x: float, y: float) -> bool:
        return self._session.begin_hold(event_id, x, y)

    def touch_move(self, x: float, y: float) -> None:
        session = self._session
        if not session.owned_by(DragChannel.TOUCH):
            return
        if session.state is SessionState.PENDING:
            session.track_pending_move(x, y)
        else:
            session.hover(self._hit_test(x, y))

    def touch_end(self, x: float, y: float) -> MoveIntent | None:
        session = self._session
        if not session.owned_by(DragChannel.TOUCH):
            return None
        if session.state is SessionState.PENDING:
            session.cancel()
            return None
        return session.drop(self._hit_test(x, y))

    def touch_cancel(self) -> None:
        if self._session.owned_by(DragChannel.TOUCH):
            self._session.cancel()

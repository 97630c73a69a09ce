"""
Calendar-Day Rollover Detection Service.

Detects the transition from one calendar day to the next in the reference
timezone by polling, and notifies subscribers exactly once per transition.

Algorithm Overview:
    On every tick the detector computes today's date in the reference
    timezone. If it differs from the last-known date it emits a RolloverEvent
    to every subscriber, in subscription order, then records the new date.
    Subscribers run synchronously inside the tick, so an auto-save triggered
    by the event always completes before the next comparison.

Polling Interval:
    The interval adapts to the time of day: near midnight (within
    midnight_window_minutes on either side) checks run every
    near_midnight_interval seconds; otherwise every default_interval seconds.
    This keeps detection latency low around the transition without polling
    all day.

Timer Model:
    A single one-shot timer obtained from the injected Scheduler. The timer
    callback clears its own handle, runs the check, and schedules the next
    tick, so ticks never overlap. stop() cancels the pending handle.

States (DetectorState):
    STOPPED -> start() -> IDLE <-> CHECKING, stop() -> STOPPED

Usage:
    detector = RolloverDetector(SystemClock(), AsyncioScheduler(), tz, "America/Sao_Paulo")
    unsubscribe = detector.subscribe(lambda event: print(event.newDate))
    detector.start()
    ...
    detector.stop()
"""

import logging
from datetime import date, tzinfo
from typing import Callable, List, Optional

from pulse.core.timekeeping import (
    Clock,
    Scheduler,
    TimerHandle,
    is_near_midnight,
    reference_date,
)
from pulse.models.enums import DetectorState
from pulse.models.schemas import RolloverEvent


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Poll every 5 minutes during the day
DEFAULT_INTERVAL_SECONDS: float = 300.0

# Poll every 30 seconds close to midnight
NEAR_MIDNIGHT_INTERVAL_SECONDS: float = 30.0

# Minutes on either side of midnight that count as "near midnight"
MIDNIGHT_WINDOW_MINUTES: int = 5


RolloverCallback = Callable[[RolloverEvent], None]


# =============================================================================
# Detector
# =============================================================================


class RolloverDetector:
    """
    Adaptive polling state machine emitting one event per day change.

    Args:
        clock: Source of the current instant.
        scheduler: Timer factory; the only source of asynchrony.
        tz: Reference timezone.
        timezone_name: Name of the reference timezone, copied into events.
        default_interval: Seconds between checks away from midnight.
        near_midnight_interval: Seconds between checks near midnight.
        midnight_window_minutes: Width of the near-midnight window.
    """

    def __init__(
        self,
        clock: Clock,
        scheduler: Scheduler,
        tz: tzinfo,
        timezone_name: str,
        default_interval: float = DEFAULT_INTERVAL_SECONDS,
        near_midnight_interval: float = NEAR_MIDNIGHT_INTERVAL_SECONDS,
        midnight_window_minutes: int = MIDNIGHT_WINDOW_MINUTES,
    ) -> None:
        self._clock = clock
        self._scheduler = scheduler
        self._tz = tz
        self._timezone_name = timezone_name
        self._default_interval = default_interval
        self._near_midnight_interval = near_midnight_interval
        self._midnight_window_minutes = midnight_window_minutes

        self._current_date: date = reference_date(clock.now(), tz)
        self._subscribers: List[RolloverCallback] = []
        self._handle: Optional[TimerHandle] = None
        self._state: DetectorState = DetectorState.STOPPED

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def current_date(self) -> date:
        """Last-known date in the reference timezone."""
        return self._current_date

    @property
    def state(self) -> DetectorState:
        return self._state

    @property
    def timezone_name(self) -> str:
        return self._timezone_name

    @property
    def has_pending_timer(self) -> bool:
        return self._handle is not None

    # -------------------------------------------------------------------------
    # Subscription
    # -------------------------------------------------------------------------

    def subscribe(self, callback: RolloverCallback) -> Callable[[], None]:
        """
        Register a rollover callback.

        Returns:
            A callable that removes the subscription. Calling it twice is harmless.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """
        Start polling: check immediately, then keep rescheduling.

        Calling start() on a running detector does nothing.
        """
        if self._state != DetectorState.STOPPED:
            return

        self._state = DetectorState.IDLE
        logger.info(
            f"Rollover detector started for {self._current_date} ({self._timezone_name})"
        )
        self.check()
        self._schedule_next()

    def stop(self) -> None:
        """Cancel the pending timer. No ticks are delivered after this returns."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if self._state != DetectorState.STOPPED:
            logger.info("Rollover detector stopped")
        self._state = DetectorState.STOPPED

    # -------------------------------------------------------------------------
    # Checking
    # -------------------------------------------------------------------------

    def next_interval(self) -> float:
        """Seconds until the next check, based on the current reference time."""
        if is_near_midnight(self._clock.now(), self._tz, self._midnight_window_minutes):
            return self._near_midnight_interval
        return self._default_interval

    def check(self) -> Optional[RolloverEvent]:
        """
        Compare today's reference date with the last-known date.

        Returns:
            The emitted RolloverEvent, or None when the date has not changed
            (or a check is already in progress).
        """
        if self._state == DetectorState.CHECKING:
            return None

        previous_state = self._state
        self._state = DetectorState.CHECKING
        try:
            now = self._clock.now()
            today = reference_date(now, self._tz)
            if today == self._current_date:
                return None

            event = RolloverEvent(
                previousDate=self._current_date,
                newDate=today,
                timezone=self._timezone_name,
                timestamp=now,
            )
            logger.info(
                f"Date change detected: {event.previousDate} -> {event.newDate} ({self._timezone_name})"
            )
            self._emit(event)
            self._current_date = today
            return event
        finally:
            # A subscriber may have stopped the detector during the check
            if self._state == DetectorState.CHECKING:
                self._state = previous_state

    def _emit(self, event: RolloverEvent) -> None:
        # Copy so a subscriber may unsubscribe itself while being notified
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                logger.exception(
                    f"Rollover subscriber {getattr(callback, '__name__', callback)!r} failed "
                    f"for {event.previousDate} -> {event.newDate}"
                )

    def _on_timer(self) -> None:
        self._handle = None
        if self._state == DetectorState.STOPPED:
            return
        self.check()
        self._schedule_next()

    def _schedule_next(self) -> None:
        if self._state == DetectorState.STOPPED:
            return
        if self._handle is not None:
            self._handle.cancel()
        self._handle = self._scheduler.call_later(self.next_interval(), self._on_timer)

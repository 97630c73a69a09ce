"""
Clock, scheduler, and reference-timezone helpers.

Every "what day is it" decision in the service goes through this module so
that date keys are computed in the configured reference timezone and never
from the host's local clock. Time sources and timers are injected rather than
read from globals, which lets tests drive rollover with a fake clock.

Components:
    Clock / SystemClock: Source of the current aware UTC instant.
    Scheduler / AsyncioScheduler: One-shot timers with a cancellable handle.
    resolve_timezone: IANA name or fixed "UTC-03:00" offset -> tzinfo.
    reference_date: Calendar date of an instant in the reference timezone.
    is_near_midnight: Whether an instant falls within N minutes of midnight.
    days_remaining_in_month: Days left in the month of a date (minimum 1).

Usage:
    clock = SystemClock()
    tz = resolve_timezone("America/Sao_Paulo")
    today = reference_date(clock.now(), tz)
"""

import asyncio
import calendar
import re
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Callable, Optional, Protocol
from zoneinfo import ZoneInfo


# =============================================================================
# Constants
# =============================================================================

# Fixed-offset form accepted in REFERENCE_TIMEZONE, e.g. "UTC-03:00" or "UTC-0300"
_FIXED_OFFSET_PATTERN = re.compile(r'^UTC([+-])(\d{2}):?(\d{2})$')


# =============================================================================
# Clock and Scheduler Abstractions
# =============================================================================


class Clock(Protocol):
    """Source of the current instant. Implementations must return aware datetimes."""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class TimerHandle(Protocol):
    """Handle returned by Scheduler.call_later."""

    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """Schedules a one-shot callback after a delay in seconds."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        ...


class AsyncioScheduler:
    """
    Scheduler backed by the asyncio event loop.

    The loop is resolved lazily so the scheduler can be built before the
    FastAPI lifespan starts the loop. asyncio.TimerHandle already exposes
    cancel(), so it is returned as-is.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


# =============================================================================
# Reference Timezone Helpers
# =============================================================================


def resolve_timezone(name: str) -> tzinfo:
    """
    Resolve a configured timezone name.

    Args:
        name: IANA zone name ("America/Sao_Paulo") or a fixed UTC offset
            ("UTC-03:00"). "UTC" is accepted as well.

    Returns:
        tzinfo for the zone.

    Raises:
        zoneinfo.ZoneInfoNotFoundError: If the IANA name is unknown.
    """
    match = _FIXED_OFFSET_PATTERN.match(name.strip().upper())
    if match:
        sign, hours, minutes = match.groups()
        offset = timedelta(hours=int(hours), minutes=int(minutes))
        if sign == '-':
            offset = -offset
        return timezone(offset, name.strip())
    if name.strip().upper() == 'UTC':
        return timezone.utc
    return ZoneInfo(name.strip())


def reference_date(moment: datetime, tz: tzinfo) -> date:
    """Return the calendar date of an aware instant in the given timezone."""
    return moment.astimezone(tz).date()


def is_near_midnight(moment: datetime, tz: tzinfo, window_minutes: int) -> bool:
    """
    Check whether an instant is within window_minutes of midnight in tz.

    Both sides of midnight count: with a 5 minute window, 23:55 through 00:05
    local time is "near midnight".
    """
    local = moment.astimezone(tz)
    minutes_since_midnight = local.hour * 60 + local.minute
    return (
        minutes_since_midnight < window_minutes
        or minutes_since_midnight >= 24 * 60 - window_minutes
    )


def days_remaining_in_month(as_of: date) -> int:
    """
    Days left in the month of as_of, never less than 1.

    The current day is not counted, so the last day of a month yields 1
    through the floor rather than 0.
    """
    last_day = calendar.monthrange(as_of.year, as_of.month)[1]
    return max(1, last_day - as_of.day)

"""
Pytest Configuration and Shared Fixtures for Campaign Pulse Tests.

This module provides fixtures and configuration for all tests, supporting:
- A settable FakeClock and a FakeScheduler that fires timers in due order,
  so rollover and debounce behavior can be driven deterministically
- Settings built without reading the environment or a .env file
- Sample campaign records for forecasting, insight, and snapshot tests

Dependencies:
- pytest
- pytest-asyncio
"""

from datetime import date, datetime, timedelta, timezone
from typing import Callable, List, Optional

import pytest

from pulse.core.config import Settings
from pulse.core.timekeeping import resolve_timezone
from pulse.models import Currency, MetricRecord
from pulse.services.snapshot_store import InMemoryKeyValueStore, SnapshotStore


REFERENCE_TIMEZONE = 'America/Sao_Paulo'

# 12:00 on 2026-10-18 in Sao Paulo (UTC-03:00, no DST)
DEFAULT_NOW = datetime(2026, 10, 18, 15, 0, tzinfo=timezone.utc)


# ============================================================
# FAKE TIME SOURCES
# ============================================================

class FakeClock:
    """Clock whose instant only moves when a test moves it."""

    def __init__(self, start: datetime = DEFAULT_NOW) -> None:
        self._now = start

    def now(self) -> datetime:
        return self._now

    def set(self, moment: datetime) -> None:
        self._now = moment

    def advance(self, seconds: float) -> None:
        self._now = self._now + timedelta(seconds=seconds)


class FakeTimer:
    """Handle returned by FakeScheduler.call_later."""

    def __init__(self, scheduler: 'FakeScheduler', due: datetime, callback: Callable[[], None]) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False
        self._scheduler = scheduler

    def cancel(self) -> None:
        self.cancelled = True
        self._scheduler.discard(self)


class FakeScheduler:
    """
    Scheduler driven by a FakeClock.

    advance() moves the clock forward, firing every timer that falls due on
    the way in due order, with the clock set to each timer's due instant.
    Timers scheduled by a firing callback are honored within the same advance.
    """

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.timers: List[FakeTimer] = []
        self.delays: List[float] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(self, self.clock.now() + timedelta(seconds=delay), callback)
        self.timers.append(timer)
        self.delays.append(delay)
        return timer

    def discard(self, timer: FakeTimer) -> None:
        if timer in self.timers:
            self.timers.remove(timer)

    @property
    def pending(self) -> int:
        return len(self.timers)

    def advance(self, seconds: float) -> None:
        target = self.clock.now() + timedelta(seconds=seconds)
        while True:
            due = [timer for timer in self.timers if timer.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.due)
            self.timers.remove(timer)
            self.clock.set(max(self.clock.now(), timer.due))
            timer.callback()
        self.clock.set(target)


# ============================================================
# CORE FIXTURES
# ============================================================

@pytest.fixture
def clock() -> FakeClock:
    """Fake clock at 12:00 on 2026-10-18 in the reference timezone."""
    return FakeClock()


@pytest.fixture
def scheduler(clock: FakeClock) -> FakeScheduler:
    return FakeScheduler(clock)


@pytest.fixture
def tz():
    return resolve_timezone(REFERENCE_TIMEZONE)


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the process environment."""
    return Settings(
        _env_file=None,
        reference_timezone=REFERENCE_TIMEZONE,
        display_currency=Currency.BRL,
        exchange_rate=None,
        monthly_revenue_goal=15000.0,
        monthly_budget_ceiling=10000.0,
        rollover_default_interval_seconds=300.0,
        rollover_near_midnight_interval_seconds=30.0,
        rollover_midnight_window_minutes=5,
        safety_save_delay_seconds=5.0,
        slack_webhook_url=None,
    )


@pytest.fixture
def store(clock: FakeClock, tz) -> SnapshotStore:
    return SnapshotStore(InMemoryKeyValueStore(), clock, tz, REFERENCE_TIMEZONE)


# ============================================================
# SAMPLE DATA FIXTURES
# ============================================================

def make_record(
    campaign_id: str = 'cmp-001',
    record_date: date = date(2026, 10, 18),
    cost: float = 100.0,
    revenue: float = 300.0,
    impressions: int = 1000,
    clicks: int = 50,
    conversions: int = 5,
    currency: Currency = Currency.BRL,
    campaign_name: Optional[str] = None,
    missing_fields: Optional[List[str]] = None,
) -> MetricRecord:
    """Build a MetricRecord with sensible defaults."""
    return MetricRecord(
        campaignId=campaign_id,
        campaignName=campaign_name,
        date=record_date,
        impressions=impressions,
        clicks=clicks,
        cost=cost,
        revenue=revenue,
        conversions=conversions,
        currency=currency,
        missingFields=missing_fields or [],
    )


@pytest.fixture
def sample_records() -> List[MetricRecord]:
    """Two campaigns on 2026-10-18."""
    return [
        make_record('cmp-001', cost=100.0, revenue=300.0, campaign_name='Search - Brand'),
        make_record('cmp-002', cost=200.0, revenue=500.0, campaign_name='Display - Retargeting'),
    ]


@pytest.fixture
def linear_history() -> List[MetricRecord]:
    """
    Seven days of one campaign with revenue 100, 110, ..., 160.

    Cost is constant at 50 so ROAS and cost projections are easy to reason about.
    """
    start = date(2026, 10, 1)
    return [
        make_record(
            'cmp-001',
            record_date=start + timedelta(days=offset),
            cost=50.0,
            revenue=100.0 + 10.0 * offset,
        )
        for offset in range(7)
    ]

"""
Test Module for Calendar-Day Rollover Detection.

Validates:
- Exactly one event per calendar-day transition regardless of tick count
- Date keys follow the reference timezone, not UTC
- Polling interval tightens around midnight on both sides
- stop() cancels the pending timer and silences the detector
- Subscriber isolation (a failing subscriber does not block others)
"""

from datetime import datetime, timezone
from typing import List

import pytest

from pulse.models import DetectorState, RolloverEvent
from pulse.services.rollover import RolloverDetector
from pulse.tests.conftest import REFERENCE_TIMEZONE, FakeClock, FakeScheduler


def _utc(year: int, month: int, day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


@pytest.fixture
def detector(clock: FakeClock, scheduler: FakeScheduler, tz) -> RolloverDetector:
    return RolloverDetector(clock, scheduler, tz, REFERENCE_TIMEZONE)


@pytest.fixture
def events(detector: RolloverDetector) -> List[RolloverEvent]:
    received: List[RolloverEvent] = []
    detector.subscribe(received.append)
    return received


class TestRolloverEvents:
    """One transition produces one event."""

    def test_single_event_across_midnight(
        self,
        clock: FakeClock,
        scheduler: FakeScheduler,
        tz,
    ) -> None:
        # Arrange: 23:50 on 2026-10-18 in Sao Paulo
        clock.set(_utc(2026, 10, 19, 2, 50))
        detector = RolloverDetector(clock, scheduler, tz, REFERENCE_TIMEZONE)
        received: List[RolloverEvent] = []
        detector.subscribe(received.append)

        # Act: run through midnight and well into the new day
        detector.start()
        scheduler.advance(60 * 60)

        # Assert
        assert len(received) == 1
        assert received[0].previousDate.isoformat() == '2026-10-18'
        assert received[0].newDate.isoformat() == '2026-10-19'
        assert received[0].timezone == REFERENCE_TIMEZONE
        assert detector.current_date.isoformat() == '2026-10-19'

    def test_utc_midnight_is_not_a_rollover(
        self,
        clock: FakeClock,
        scheduler: FakeScheduler,
        detector: RolloverDetector,
        events: List[RolloverEvent],
    ) -> None:
        # 15:00Z -> 00:30Z crosses UTC midnight; locally it is still 2026-10-18
        detector.start()
        scheduler.advance(9.5 * 60 * 60)

        assert events == []
        assert detector.current_date.isoformat() == '2026-10-18'

    def test_repeated_checks_emit_once(
        self,
        clock: FakeClock,
        detector: RolloverDetector,
        events: List[RolloverEvent],
    ) -> None:
        clock.set(_utc(2026, 10, 19, 3, 1))

        first = detector.check()
        second = detector.check()
        third = detector.check()

        assert first is not None
        assert second is None and third is None
        assert len(events) == 1

    def test_one_event_per_day(
        self,
        scheduler: FakeScheduler,
        detector: RolloverDetector,
        events: List[RolloverEvent],
    ) -> None:
        detector.start()
        scheduler.advance(3 * 24 * 60 * 60)

        assert [event.newDate.isoformat() for event in events] == [
            '2026-10-19', '2026-10-20', '2026-10-21',
        ]

    def test_failing_subscriber_does_not_block_others(
        self,
        clock: FakeClock,
        detector: RolloverDetector,
    ) -> None:
        received: List[RolloverEvent] = []

        def broken(event: RolloverEvent) -> None:
            raise RuntimeError("boom")

        detector.subscribe(broken)
        detector.subscribe(received.append)
        clock.set(_utc(2026, 10, 19, 4))

        detector.check()

        assert len(received) == 1

    def test_unsubscribe(
        self,
        clock: FakeClock,
        detector: RolloverDetector,
    ) -> None:
        received: List[RolloverEvent] = []
        unsubscribe = detector.subscribe(received.append)
        unsubscribe()
        unsubscribe()

        clock.set(_utc(2026, 10, 19, 4))
        detector.check()

        assert received == []


class TestPollingInterval:
    """Near midnight the detector polls every 30 seconds, otherwise every 5 minutes."""

    @pytest.mark.parametrize("utc_moment,expected", [
        (_utc(2026, 10, 18, 15, 0), 300.0),   # 12:00 local
        (_utc(2026, 10, 19, 2, 54), 300.0),   # 23:54 local
        (_utc(2026, 10, 19, 2, 55), 30.0),    # 23:55 local
        (_utc(2026, 10, 19, 3, 0), 30.0),     # 00:00 local
        (_utc(2026, 10, 19, 3, 4), 30.0),     # 00:04 local
        (_utc(2026, 10, 19, 3, 5), 300.0),    # 00:05 local
    ])
    def test_next_interval(
        self,
        clock: FakeClock,
        detector: RolloverDetector,
        utc_moment: datetime,
        expected: float,
    ) -> None:
        clock.set(utc_moment)

        assert detector.next_interval() == expected

    def test_scheduled_delays_tighten_near_midnight(
        self,
        clock: FakeClock,
        scheduler: FakeScheduler,
        tz,
    ) -> None:
        clock.set(_utc(2026, 10, 19, 2, 50))
        detector = RolloverDetector(clock, scheduler, tz, REFERENCE_TIMEZONE)

        detector.start()
        scheduler.advance(6 * 60)

        assert scheduler.delays[0] == 300.0
        assert 30.0 in scheduler.delays


class TestLifecycle:
    """start() and stop() manage exactly one pending timer."""

    def test_start_schedules_one_timer(
        self,
        scheduler: FakeScheduler,
        detector: RolloverDetector,
    ) -> None:
        detector.start()
        detector.start()

        assert scheduler.pending == 1
        assert detector.state == DetectorState.IDLE
        assert detector.has_pending_timer

    def test_stop_cancels_timer(
        self,
        scheduler: FakeScheduler,
        detector: RolloverDetector,
        events: List[RolloverEvent],
    ) -> None:
        detector.start()

        detector.stop()
        scheduler.advance(2 * 24 * 60 * 60)

        assert scheduler.pending == 0
        assert detector.state == DetectorState.STOPPED
        assert not detector.has_pending_timer
        assert events == []

    def test_subscriber_may_stop_detector(
        self,
        clock: FakeClock,
        scheduler: FakeScheduler,
        detector: RolloverDetector,
    ) -> None:
        detector.subscribe(lambda event: detector.stop())
        detector.start()

        scheduler.advance(24 * 60 * 60)

        assert detector.state == DetectorState.STOPPED
        assert scheduler.pending == 0

"""
Snapshot Engine.

Facade that wires the snapshot store, the rollover detector, the live-day
record buffer, and the forecasting pipeline into the operations the API
exposes.

Auto-save Policy:
    - On a rollover event the live-day records are persisted under the
      previous date, then the live buffer is cleared for the new day.
    - Every set_live_records() call (re)arms a debounced safety save. When
      the quiet period elapses, today's snapshot is written only if none
      exists yet and the buffer is not empty.
    - A pending safety save is cancelled at rollover so yesterday's records
      are never written under the new date.
    - Writes to the live day (set_live_records, save_snapshot, the safety
      save) first run a rollover check, so a day change that happened since
      the last detector tick is handled before the write.

Lifecycle:
    engine = SnapshotEngine(settings)
    engine.start()      # starts the detector (needs a running loop for AsyncioScheduler)
    ...
    engine.dispose()    # stops the detector and cancels the debounce

All operations are synchronous and run on the event loop thread.
"""

import logging
from datetime import date, timedelta
from typing import Callable, List, Optional, Sequence

from pulse.core.config import Settings
from pulse.core.timekeeping import (
    AsyncioScheduler,
    Clock,
    Scheduler,
    SystemClock,
    TimerHandle,
    resolve_timezone,
)
from pulse.models import (
    MetricRecord,
    MonthlyForecast,
    RolloverEvent,
    RolloverStatus,
    Snapshot,
)
from pulse.services.currency import normalize_records
from pulse.services.forecasting import compute_forecast
from pulse.services.rollover import RolloverCallback, RolloverDetector
from pulse.services.snapshot_store import (
    InMemoryKeyValueStore,
    KeyValueStore,
    SnapshotStore,
)


logger = logging.getLogger(__name__)


class SnapshotEngine:
    """
    Daily snapshot and forecasting engine.

    Args:
        settings: Application settings (timezone, intervals, goal, currency).
        clock: Time source (defaults to SystemClock).
        scheduler: Timer factory (defaults to AsyncioScheduler).
        backend: Key/value persistence (defaults to in-memory).
    """

    def __init__(
        self,
        settings: Settings,
        clock: Optional[Clock] = None,
        scheduler: Optional[Scheduler] = None,
        backend: Optional[KeyValueStore] = None,
    ) -> None:
        self._settings = settings
        self._clock = clock or SystemClock()
        self._scheduler = scheduler or AsyncioScheduler()
        self._tz = resolve_timezone(settings.reference_timezone)

        self._store = SnapshotStore(
            backend if backend is not None else InMemoryKeyValueStore(),
            self._clock,
            self._tz,
            settings.reference_timezone,
        )
        self._detector = RolloverDetector(
            self._clock,
            self._scheduler,
            self._tz,
            settings.reference_timezone,
            default_interval=settings.rollover_default_interval_seconds,
            near_midnight_interval=settings.rollover_near_midnight_interval_seconds,
            midnight_window_minutes=settings.rollover_midnight_window_minutes,
        )
        # Subscribed first so later subscribers see the saved snapshot
        self._detector.subscribe(self._handle_rollover)

        self._live_records: List[MetricRecord] = []
        self._safety_handle: Optional[TimerHandle] = None

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> None:
        self._detector.start()

    def dispose(self) -> None:
        """Stop the detector and cancel the pending safety save."""
        self._detector.stop()
        self._cancel_safety_save()

    def status(self) -> RolloverStatus:
        return RolloverStatus(
            state=self._detector.state,
            currentDate=self.current_date,
            timezone=self._settings.reference_timezone,
        )

    @property
    def current_date(self) -> date:
        """Today in the reference timezone."""
        return self._store.today()

    @property
    def store(self) -> SnapshotStore:
        return self._store

    @property
    def detector(self) -> RolloverDetector:
        return self._detector

    # -------------------------------------------------------------------------
    # Live day
    # -------------------------------------------------------------------------

    @property
    def live_records(self) -> List[MetricRecord]:
        return list(self._live_records)

    def set_live_records(self, records: Sequence[MetricRecord]) -> None:
        """Replace the live-day records and re-arm the safety save."""
        self._detector.check()
        self._live_records = list(records)
        self._arm_safety_save()

    def on_rollover(self, callback: RolloverCallback) -> Callable[[], None]:
        """Subscribe to day changes. Returns the unsubscribe callable."""
        return self._detector.subscribe(callback)

    # -------------------------------------------------------------------------
    # Snapshots
    # -------------------------------------------------------------------------

    def save_snapshot(self, records: Optional[Sequence[MetricRecord]] = None) -> Snapshot:
        """
        Save today's snapshot.

        Args:
            records: Records to save; the live-day buffer when omitted.
        """
        self._detector.check()
        return self._store.save(self._live_records if records is None else records)

    def get_snapshot_by_date(self, snapshot_date: date) -> Optional[Snapshot]:
        return self._store.get_by_date(snapshot_date)

    def list_snapshot_dates(self) -> List[date]:
        return self._store.list_dates()

    def update_historical_snapshot(self, snapshot_date: date, records: Sequence[MetricRecord]) -> None:
        """See SnapshotStore.update_historical_snapshot for the raised errors."""
        self._store.update_historical_snapshot(snapshot_date, records)

    # -------------------------------------------------------------------------
    # Forecast
    # -------------------------------------------------------------------------

    def forecast_records(self, as_of: Optional[date] = None) -> List[MetricRecord]:
        """
        History the forecast is computed from.

        Stored snapshots up to as_of. When as_of is today, today's part comes
        from the live buffer if it holds records, otherwise from today's
        stored snapshot. Live records supersede stored records of any date
        they carry, so a day is never counted twice.
        """
        self._detector.check()
        today = self.current_date
        as_of = as_of or today
        if as_of < today:
            return self._store.history(end=as_of)

        live_dates = {record.date for record in self._live_records}
        records = [
            record
            for record in self._store.history(end=today - timedelta(days=1))
            if record.date not in live_dates
        ]
        if self._live_records:
            records.extend(self._live_records)
        else:
            snapshot = self._store.get_by_date(today)
            if snapshot is not None:
                records.extend(snapshot.records)
        return records

    def compute_forecast(
        self,
        records: Optional[Sequence[MetricRecord]] = None,
        as_of: Optional[date] = None,
        monthly_goal: Optional[float] = None,
    ) -> MonthlyForecast:
        """
        Forecast month-end results.

        Args:
            records: Records to forecast from; stored history plus the live
                day when omitted.
            as_of: Reference date (defaults to today).
            monthly_goal: Goal override (defaults to settings).
        """
        as_of = as_of or self.current_date
        source = list(records) if records is not None else self.forecast_records(as_of)
        normalized = normalize_records(
            source,
            self._settings.display_currency,
            self._settings.exchange_rate,
        )
        return compute_forecast(
            normalized,
            as_of=as_of,
            monthly_goal=monthly_goal or self._settings.monthly_revenue_goal,
            budget_ceiling=self._settings.monthly_budget_ceiling,
        )

    # -------------------------------------------------------------------------
    # Auto-save
    # -------------------------------------------------------------------------

    def _handle_rollover(self, event: RolloverEvent) -> None:
        self._cancel_safety_save()
        if not self._live_records:
            logger.info(f"No live records to save for {event.previousDate}")
            return
        self._store.save_for_date(event.previousDate, self._live_records)
        logger.info(
            f"Auto-saved {len(self._live_records)} records for {event.previousDate}; live day reset"
        )
        self._live_records = []

    def _arm_safety_save(self) -> None:
        self._cancel_safety_save()
        self._safety_handle = self._scheduler.call_later(
            self._settings.safety_save_delay_seconds,
            self._run_safety_save,
        )

    def _cancel_safety_save(self) -> None:
        if self._safety_handle is not None:
            self._safety_handle.cancel()
            self._safety_handle = None

    def _run_safety_save(self) -> None:
        self._safety_handle = None
        self._detector.check()
        if not self._live_records:
            return
        today = self.current_date
        if self._store.get_by_date(today) is not None:
            logger.debug(f"Snapshot for {today} already exists, safety save skipped")
            return
        self._store.save(self._live_records)
        logger.info(f"Safety save wrote {len(self._live_records)} records for {today}")

    @property
    def has_pending_safety_save(self) -> bool:
        return self._safety_handle is not None

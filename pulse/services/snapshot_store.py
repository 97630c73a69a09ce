"""
Daily Snapshot Store.

Keyed persistence of one snapshot per calendar date in the reference
timezone. The store sits on top of an abstract string key/value backend; the
persisted layout is:

    key   = ISO calendar date ("2026-10-18")
    value = JSON {date, timestamp, timezone, records[]}

Invariants:
    - At most one snapshot per date key (writes replace, last write wins).
    - Date keys come from the reference timezone via the injected clock,
      never from the caller's local clock.
    - Saving identical records for a date that already holds them leaves the
      stored value byte-for-byte unchanged.
    - Existing snapshots change only through update_historical_snapshot,
      which keeps the date key and replaces records and timestamp.

Usage:
    store = SnapshotStore(InMemoryKeyValueStore(), clock, tz, "America/Sao_Paulo")
    snapshot = store.save(records)
    store.get_by_date(snapshot.date)
    store.list_dates()
"""

import logging
from datetime import date, tzinfo
from typing import Dict, List, Optional, Protocol, Sequence

from pulse.core.timekeeping import Clock, reference_date
from pulse.models.schemas import MetricRecord, Snapshot


logger = logging.getLogger(__name__)


# =============================================================================
# Exceptions
# =============================================================================


class HistoricalEditError(ValueError):
    """Raised when a historical edit targets today's snapshot."""


class SnapshotNotFoundError(LookupError):
    """Raised when a historical edit targets a date with no snapshot."""


# =============================================================================
# Key/Value Backend
# =============================================================================


class KeyValueStore(Protocol):
    """Minimal string key/value persistence the snapshot store relies on."""

    def get(self, key: str) -> Optional[str]:
        ...

    def put(self, key: str, value: str) -> None:
        ...

    def keys(self) -> List[str]:
        ...


class InMemoryKeyValueStore:
    """Dict-backed KeyValueStore; the process-lifetime default."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def put(self, key: str, value: str) -> None:
        self._data[key] = value

    def keys(self) -> List[str]:
        return list(self._data.keys())


# =============================================================================
# Snapshot Store
# =============================================================================


def _date_key(snapshot_date: date) -> str:
    return snapshot_date.isoformat()


class SnapshotStore:
    """
    One immutable-by-default snapshot per reference-timezone calendar date.

    Args:
        backend: Key/value persistence.
        clock: Source of the current instant (timestamps and "today").
        tz: Reference timezone.
        timezone_name: Name recorded in each snapshot.
    """

    def __init__(
        self,
        backend: KeyValueStore,
        clock: Clock,
        tz: tzinfo,
        timezone_name: str,
    ) -> None:
        self._backend = backend
        self._clock = clock
        self._tz = tz
        self._timezone_name = timezone_name

    def today(self) -> date:
        """Today's date in the reference timezone."""
        return reference_date(self._clock.now(), self._tz)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def save(self, records: Sequence[MetricRecord]) -> Snapshot:
        """
        Save today's snapshot, replacing any existing one for today.

        Args:
            records: Campaign metrics, stored in the given order.

        Returns:
            The stored snapshot. When today's snapshot already holds exactly
            these records it is returned unchanged.
        """
        return self.save_for_date(self.today(), records)

    def save_for_date(self, snapshot_date: date, records: Sequence[MetricRecord]) -> Snapshot:
        """
        Save the snapshot for an explicit reference-timezone date.

        Used by rollover auto-save, which persists the just-completed day
        after the clock has already moved on. Same replace/idempotency rules
        as save().
        """
        records = list(records)
        existing = self.get_by_date(snapshot_date)
        if existing is not None and existing.records == records:
            logger.debug(f"Snapshot for {snapshot_date} unchanged, keeping stored copy")
            return existing

        snapshot = Snapshot(
            date=snapshot_date,
            timestamp=self._clock.now(),
            timezone=self._timezone_name,
            records=records,
        )
        self._backend.put(_date_key(snapshot_date), snapshot.model_dump_json())
        logger.info(
            f"Snapshot saved for {snapshot_date} with {len(records)} records ({self._timezone_name})"
        )
        return snapshot

    def update_historical_snapshot(self, snapshot_date: date, records: Sequence[MetricRecord]) -> None:
        """
        Replace the records of a past day's snapshot.

        The date key is preserved; only the records and the timestamp change.

        Raises:
            HistoricalEditError: If snapshot_date is today (today's snapshot is
                owned by save() and the auto-save policy).
            SnapshotNotFoundError: If no snapshot exists for snapshot_date.
        """
        if snapshot_date == self.today():
            raise HistoricalEditError(
                f"{snapshot_date} is today in {self._timezone_name}; use save() instead"
            )

        existing = self.get_by_date(snapshot_date)
        if existing is None:
            raise SnapshotNotFoundError(f"No snapshot stored for {snapshot_date}")

        updated = existing.model_copy(update={
            'records': list(records),
            'timestamp': self._clock.now(),
        })
        self._backend.put(_date_key(existing.date), updated.model_dump_json())
        logger.info(f"Historical snapshot for {snapshot_date} updated with {len(updated.records)} records")

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_by_date(self, snapshot_date: date) -> Optional[Snapshot]:
        """Return the snapshot for a date, or None when there is none."""
        raw = self._backend.get(_date_key(snapshot_date))
        if raw is None:
            return None
        return Snapshot.model_validate_json(raw)

    def list_dates(self) -> List[date]:
        """All snapshot dates, most recent first, each at most once."""
        return sorted({date.fromisoformat(key) for key in self._backend.keys()}, reverse=True)

    def history(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[MetricRecord]:
        """
        Records of every stored snapshot in ascending date order.

        Args:
            start: Earliest snapshot date to include (inclusive).
            end: Latest snapshot date to include (inclusive).
        """
        records: List[MetricRecord] = []
        for snapshot_date in reversed(self.list_dates()):
            if start is not None and snapshot_date < start:
                continue
            if end is not None and snapshot_date > end:
                continue
            snapshot = self.get_by_date(snapshot_date)
            if snapshot is not None:
                records.extend(snapshot.records)
        return records

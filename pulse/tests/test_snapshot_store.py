"""
Test Module for the Daily Snapshot Store.

Validates:
- Date keys come from the reference timezone
- Saving identical records is byte-for-byte idempotent
- Each date is listed at most once, most recent first
- Historical edits keep the date key and reject today / unknown dates
- Persisted layout (ISO date key, JSON value)
"""

from datetime import date, datetime, timezone
from typing import List

import pytest

from pulse.models import MetricRecord, Snapshot
from pulse.services.snapshot_store import (
    HistoricalEditError,
    InMemoryKeyValueStore,
    SnapshotNotFoundError,
    SnapshotStore,
)
from pulse.tests.conftest import REFERENCE_TIMEZONE, FakeClock, make_record


@pytest.fixture
def backend() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def store(backend: InMemoryKeyValueStore, clock: FakeClock, tz) -> SnapshotStore:
    return SnapshotStore(backend, clock, tz, REFERENCE_TIMEZONE)


class TestSave:
    """save() writes today's snapshot in the reference timezone."""

    def test_date_key_uses_reference_timezone(
        self,
        clock: FakeClock,
        store: SnapshotStore,
        sample_records: List[MetricRecord],
    ) -> None:
        # 01:30 UTC on the 19th is still the 18th in Sao Paulo
        clock.set(datetime(2026, 10, 19, 1, 30, tzinfo=timezone.utc))

        snapshot = store.save(sample_records)

        assert snapshot.date == date(2026, 10, 18)
        assert snapshot.timezone == REFERENCE_TIMEZONE
        assert snapshot.records == sample_records

    def test_persisted_layout(
        self,
        backend: InMemoryKeyValueStore,
        store: SnapshotStore,
        sample_records: List[MetricRecord],
    ) -> None:
        store.save(sample_records)

        assert backend.keys() == ['2026-10-18']
        stored = Snapshot.model_validate_json(backend.get('2026-10-18'))
        assert stored.records == sample_records

    def test_identical_save_is_byte_identical(
        self,
        clock: FakeClock,
        backend: InMemoryKeyValueStore,
        store: SnapshotStore,
        sample_records: List[MetricRecord],
    ) -> None:
        store.save(sample_records)
        before = backend.get('2026-10-18')

        clock.advance(60)
        store.save(list(sample_records))

        assert backend.get('2026-10-18') == before

    def test_changed_records_replace_snapshot(
        self,
        clock: FakeClock,
        store: SnapshotStore,
        sample_records: List[MetricRecord],
    ) -> None:
        store.save(sample_records)
        clock.advance(60)

        updated = store.save(sample_records[:1])

        assert store.get_by_date(date(2026, 10, 18)).records == sample_records[:1]
        assert updated.timestamp == clock.now()

    def test_save_for_explicit_date(
        self,
        store: SnapshotStore,
        sample_records: List[MetricRecord],
    ) -> None:
        store.save_for_date(date(2026, 10, 17), sample_records)

        assert store.get_by_date(date(2026, 10, 17)) is not None
        assert store.get_by_date(date(2026, 10, 18)) is None


class TestReads:
    """Listing and history."""

    def test_list_dates_unique_and_descending(
        self,
        clock: FakeClock,
        store: SnapshotStore,
        sample_records: List[MetricRecord],
    ) -> None:
        store.save_for_date(date(2026, 10, 16), sample_records)
        store.save(sample_records)
        store.save(sample_records[:1])
        store.save_for_date(date(2026, 10, 17), sample_records)

        dates = store.list_dates()

        assert dates == [date(2026, 10, 18), date(2026, 10, 17), date(2026, 10, 16)]
        assert len(dates) == len(set(dates))

    def test_get_missing_date_returns_none(self, store: SnapshotStore) -> None:
        assert store.get_by_date(date(2020, 1, 1)) is None

    def test_history_ascending_with_bounds(self, store: SnapshotStore) -> None:
        for day in (15, 16, 17):
            store.save_for_date(date(2026, 10, day), [make_record(record_date=date(2026, 10, day))])

        assert [r.date.day for r in store.history()] == [15, 16, 17]
        assert [r.date.day for r in store.history(start=date(2026, 10, 16))] == [16, 17]
        assert [r.date.day for r in store.history(end=date(2026, 10, 16))] == [15, 16]


class TestHistoricalEdit:
    """update_historical_snapshot only touches past days that exist."""

    def test_update_preserves_date_key(
        self,
        clock: FakeClock,
        backend: InMemoryKeyValueStore,
        store: SnapshotStore,
        sample_records: List[MetricRecord],
    ) -> None:
        past = date(2026, 10, 10)
        store.save_for_date(past, sample_records)
        replacement = [make_record('cmp-009', record_date=past, revenue=999.0)]
        clock.advance(120)

        store.update_historical_snapshot(past, replacement)

        snapshot = store.get_by_date(past)
        assert snapshot.date == past
        assert snapshot.records == replacement
        assert snapshot.timestamp == clock.now()
        assert backend.keys() == ['2026-10-10']

    def test_update_today_rejected(
        self,
        store: SnapshotStore,
        sample_records: List[MetricRecord],
    ) -> None:
        store.save(sample_records)

        with pytest.raises(HistoricalEditError):
            store.update_historical_snapshot(date(2026, 10, 18), [])

    def test_update_unknown_date_rejected(self, store: SnapshotStore) -> None:
        with pytest.raises(SnapshotNotFoundError):
            store.update_historical_snapshot(date(2026, 9, 1), [])

        assert store.list_dates() == []

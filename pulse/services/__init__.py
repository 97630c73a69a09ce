"""
Services package for Campaign Pulse.

- number_parser: locale-tolerant numeric parsing
- rollover: calendar-day rollover detection
- snapshot_store: one snapshot per reference-timezone date
- forecasting: month-end projection, confidence, scenarios
- insights: rule-based recommendations
- currency: BRL/USD normalization
- ingestion: campaign report CSV parsing
- engine: facade wiring the above together
"""

from pulse.services.engine import SnapshotEngine
from pulse.services.forecasting import compute_forecast, linear_forecast, calculate_confidence
from pulse.services.ingestion import ingest_csv
from pulse.services.number_parser import parse, parse_value, is_numeric
from pulse.services.rollover import RolloverDetector
from pulse.services.snapshot_store import (
    HistoricalEditError,
    InMemoryKeyValueStore,
    SnapshotNotFoundError,
    SnapshotStore,
)


__all__ = [
    'SnapshotEngine',
    'compute_forecast',
    'linear_forecast',
    'calculate_confidence',
    'ingest_csv',
    'parse',
    'parse_value',
    'is_numeric',
    'RolloverDetector',
    'HistoricalEditError',
    'InMemoryKeyValueStore',
    'SnapshotNotFoundError',
    'SnapshotStore',
]

"""
Package initialization file for models.

This module exports all Pydantic schemas and enumerations from schemas.py and
enums.py, making them importable from pulse.models directly.

Usage:
    from pulse.models import (
        MetricRecord,
        Snapshot,
        MonthlyForecast,
        InsightType,
    )
"""

# =============================================================================
# Enums
# =============================================================================

from pulse.models.enums import (
    Currency,
    DetectorState,
    GoalStatus,
    InsightType,
    NumberFormat,
    ScenarioName,
)

# =============================================================================
# Schemas
# =============================================================================

from pulse.models.schemas import (
    # Campaign metrics
    MetricRecord,
    # Snapshots
    Snapshot,
    SnapshotDatesResponse,
    SnapshotSaveRequest,
    SnapshotUpdateRequest,
    # Rollover
    RolloverEvent,
    RolloverStatus,
    # Forecasting
    ForecastScenario,
    ForecastScenarios,
    Insight,
    MonthlyForecast,
    ForecastRequest,
    # Ingestion
    ValidationError,
    IngestionResult,
    CsvIngestRequest,
)


__all__ = [
    # Enums
    'Currency',
    'DetectorState',
    'GoalStatus',
    'InsightType',
    'NumberFormat',
    'ScenarioName',
    # Schemas
    'MetricRecord',
    'Snapshot',
    'SnapshotDatesResponse',
    'SnapshotSaveRequest',
    'SnapshotUpdateRequest',
    'RolloverEvent',
    'RolloverStatus',
    'ForecastScenario',
    'ForecastScenarios',
    'Insight',
    'MonthlyForecast',
    'ForecastRequest',
    'ValidationError',
    'IngestionResult',
    'CsvIngestRequest',
]

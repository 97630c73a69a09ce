"""
Pydantic request/response models for the Campaign Pulse backend.

This module provides type-safe data validation and serialization for the
campaign metric records consumed by the engine, the daily snapshots it
persists, and the forecast/insight payloads it returns to the dashboard.

Dashboard-facing models keep the camelCase field names the frontend already
uses (campaignId, currentROAS, goalStatus, ...); backend-native payloads such
as ingestion results use snake_case.

All models use Pydantic v2 syntax with proper field validation and examples.
"""

from datetime import datetime, date as DateType
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, ConfigDict

from pulse.models.enums import (
    Currency,
    DetectorState,
    GoalStatus,
    InsightType,
)


# =============================================================================
# Campaign Metrics
# =============================================================================


class MetricRecord(BaseModel):
    """
    One campaign's metrics for one day.

    Produced by the campaign store (or by CSV ingestion) and immutable once
    read. Amounts are expected in a single display currency by the time they
    reach aggregation; see pulse.services.currency.normalize_records.
    """
    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {
                "campaignId": "cmp-001",
                "campaignName": "Search - Brand",
                "date": "2026-10-18",
                "impressions": 12000,
                "clicks": 540,
                "cost": 320.50,
                "revenue": 1450.00,
                "conversions": 12,
                "currency": "BRL",
                "missingFields": []
            }
        }
    )

    campaignId: str = Field(
        ...,
        min_length=1,
        description="Campaign identifier"
    )
    campaignName: Optional[str] = Field(
        default=None,
        description="Human-readable campaign name"
    )
    date: DateType = Field(
        ...,
        description="Day the metrics refer to"
    )
    impressions: int = Field(default=0, ge=0)
    clicks: int = Field(default=0, ge=0)
    cost: float = Field(default=0.0, ge=0.0)
    revenue: float = Field(default=0.0, ge=0.0)
    conversions: int = Field(default=0, ge=0)
    currency: Currency = Field(
        default=Currency.BRL,
        description="Currency cost and revenue are expressed in"
    )
    missingFields: List[str] = Field(
        default_factory=list,
        description="Numeric fields that were absent or non-numeric in the source and defaulted to 0"
    )


# =============================================================================
# Daily Snapshots
# =============================================================================


class Snapshot(BaseModel):
    """
    Immutable-by-default record of all campaign metrics for one calendar day.

    The date key is always computed in the reference timezone, never from the
    caller's clock. Only SnapshotStore.update_historical_snapshot replaces the
    records of an existing snapshot.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "date": "2026-10-18",
                "timestamp": "2026-10-19T03:00:12Z",
                "timezone": "America/Sao_Paulo",
                "records": []
            }
        }
    )

    date: DateType = Field(
        ...,
        description="Calendar date key in the reference timezone"
    )
    timestamp: datetime = Field(
        ...,
        description="Instant the snapshot was last written (UTC)"
    )
    timezone: str = Field(
        ...,
        description="Reference timezone the date key was computed in"
    )
    records: List[MetricRecord] = Field(
        default_factory=list,
        description="Campaign metrics in the order they were saved"
    )


class SnapshotDatesResponse(BaseModel):
    """Snapshot dates, most recent first."""
    dates: List[DateType] = Field(default_factory=list)
    currentDate: DateType = Field(
        ...,
        description="Today in the reference timezone"
    )


class SnapshotSaveRequest(BaseModel):
    """
    Body for saving a snapshot.

    When records is omitted the live-day records held by the engine are saved.
    """
    records: Optional[List[MetricRecord]] = None


class SnapshotUpdateRequest(BaseModel):
    """Replacement records for a historical snapshot."""
    records: List[MetricRecord] = Field(default_factory=list)


# =============================================================================
# Rollover
# =============================================================================


class RolloverEvent(BaseModel):
    """Emitted once per calendar-day transition in the reference timezone."""
    model_config = ConfigDict(frozen=True)

    previousDate: DateType
    newDate: DateType
    timezone: str
    timestamp: datetime


class RolloverStatus(BaseModel):
    """Detector state exposed on the health endpoint."""
    state: DetectorState
    currentDate: DateType
    timezone: str


# =============================================================================
# Forecasting
# =============================================================================


class ForecastScenario(BaseModel):
    """
    Month-end projection for one scenario.

    profit is always revenue - cost and may be negative; every other field is
    non-negative.
    """
    revenue: float = Field(default=0.0, ge=0.0)
    cost: float = Field(default=0.0, ge=0.0)
    profit: float = 0.0
    conversions: float = Field(default=0.0, ge=0.0)
    clicks: float = Field(default=0.0, ge=0.0)
    impressions: float = Field(default=0.0, ge=0.0)


class ForecastScenarios(BaseModel):
    """The four named scenarios branched from the realistic baseline."""
    optimistic: ForecastScenario = Field(default_factory=ForecastScenario)
    realistic: ForecastScenario = Field(default_factory=ForecastScenario)
    conservative: ForecastScenario = Field(default_factory=ForecastScenario)
    pessimistic: ForecastScenario = Field(default_factory=ForecastScenario)


class Insight(BaseModel):
    """
    Rule-generated recommendation shown in the dashboard insights card.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "type": "warning",
                "message": "Projected cost of 12,400.00 may exceed the monthly budget of 10,000.00",
                "confidence": 75,
                "action": "adjust budgets"
            }
        }
    )

    type: InsightType
    message: str
    confidence: float = Field(..., ge=0.0, le=100.0)
    action: Optional[str] = None


class MonthlyForecast(BaseModel):
    """
    Derived month-end forecast.

    Never persisted; recomputed on demand from snapshot history and the live
    day's records.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "scenarios": {},
                "confidence": 72.4,
                "currentROAS": 3.4,
                "monthlyGoal": 15000,
                "goalStatus": "ontrack",
                "goalPercentage": 4.2,
                "daysRemaining": 12,
                "weeklyPattern": {"0": 1200.0},
                "insights": [],
                "asOf": "2026-10-19",
                "historyDays": 30
            }
        }
    )

    scenarios: ForecastScenarios = Field(default_factory=ForecastScenarios)
    confidence: float = Field(default=0.0, ge=0.0, le=100.0)
    currentROAS: float = Field(default=0.0, ge=0.0)
    monthlyGoal: float = Field(..., gt=0.0)
    goalStatus: GoalStatus = GoalStatus.BELOW
    goalPercentage: float = 0.0
    daysRemaining: int = Field(..., ge=1)
    weeklyPattern: Dict[int, float] = Field(
        default_factory=dict,
        description="Mean daily revenue by weekday (Monday=0)"
    )
    insights: List[Insight] = Field(default_factory=list)
    asOf: DateType
    historyDays: int = Field(default=0, ge=0)


class ForecastRequest(BaseModel):
    """Body for an ad-hoc forecast over caller-supplied records."""
    records: List[MetricRecord] = Field(default_factory=list)
    asOf: Optional[DateType] = None
    monthlyGoal: Optional[float] = Field(default=None, gt=0.0)


# =============================================================================
# Ingestion
# =============================================================================


class ValidationError(BaseModel):
    """
    Validation error detail.

    Used for reporting data validation issues during ingestion.
    """
    field: str = Field(
        ...,
        description="Field with validation error"
    )
    message: str = Field(
        ...,
        description="Error message"
    )
    row_number: Optional[int] = Field(
        default=None,
        ge=1,
        description="Row number where error occurred"
    )


class IngestionResult(BaseModel):
    """
    Result of a CSV ingestion.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "rows_processed": 25,
                "records": [],
                "incomplete_records": 2,
                "errors": []
            }
        }
    )

    success: bool = Field(
        ...,
        description="Whether the CSV could be parsed into records"
    )
    rows_processed: int = Field(
        default=0,
        ge=0,
        description="Number of data rows read from the CSV"
    )
    records: List[MetricRecord] = Field(default_factory=list)
    incomplete_records: int = Field(
        default=0,
        ge=0,
        description="Records with at least one absent numeric field"
    )
    errors: List[ValidationError] = Field(default_factory=list)


class CsvIngestRequest(BaseModel):
    """Raw CSV text pasted or exported from the ads platform."""
    content: str = Field(..., min_length=1)
    currency: Currency = Currency.BRL
    delimiter: Optional[str] = Field(
        default=None,
        max_length=1,
        description="Column delimiter; sniffed when omitted"
    )

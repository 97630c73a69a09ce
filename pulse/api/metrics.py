"""
FastAPI router module for the live day's campaign metrics.

Implements GET/PUT /metrics (read or replace the live-day records) and
POST /metrics/csv (parse a campaign report into live-day records).

Every replacement of the live records re-arms the engine's debounced safety
save; the records are persisted automatically at the next day rollover.
"""

import logging
from datetime import date
from typing import List

from fastapi import APIRouter, Body, HTTPException
from pydantic import BaseModel, Field

from pulse.core.dependencies import EngineDep
from pulse.models import CsvIngestRequest, IngestionResult, MetricRecord
from pulse.services.engine import SnapshotEngine
from pulse.services.ingestion import ingest_csv


# Configure logging
logger = logging.getLogger(__name__)


# =============================================================================
# Local Pydantic Models for API Requests/Responses
# =============================================================================

class LiveRecordsRequest(BaseModel):
    """Replacement records for the live day."""
    records: List[MetricRecord] = Field(default_factory=list)


class LiveRecordsResponse(BaseModel):
    """Records currently held for the live day."""
    currentDate: date = Field(..., description="Today in the reference timezone")
    count: int = Field(default=0, ge=0)
    records: List[MetricRecord] = Field(default_factory=list)


router = APIRouter()


def _live_response(engine: SnapshotEngine) -> LiveRecordsResponse:
    records = engine.live_records
    return LiveRecordsResponse(
        currentDate=engine.current_date,
        count=len(records),
        records=records,
    )


# =============================================================================
# Endpoint Implementations
# =============================================================================


@router.get("", response_model=LiveRecordsResponse)
async def get_live_metrics(engine: EngineDep) -> LiveRecordsResponse:
    """Return the live-day records."""
    return _live_response(engine)


@router.put("", response_model=LiveRecordsResponse)
async def replace_live_metrics(
    engine: EngineDep,
    request: LiveRecordsRequest = Body(...),
) -> LiveRecordsResponse:
    """
    Replace the live-day records.

    Arms the safety save: if no snapshot exists for today once the quiet
    period elapses, these records are written as today's snapshot.
    """
    try:
        engine.set_live_records(request.records)
        logger.info(f"Live records replaced with {len(request.records)} records")
        return _live_response(engine)
    except Exception as e:
        logger.exception("Error replacing live records")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to replace live records: {str(e)}"
        )


@router.post("/csv", response_model=IngestionResult)
async def ingest_metrics_csv(
    engine: EngineDep,
    request: CsvIngestRequest = Body(...),
) -> IngestionResult:
    """
    Parse a campaign report and use it as the live-day records.

    Non-numeric cells ("Diário", "--", ...) do not fail the upload; the
    affected fields are listed in each record's missingFields.

    Raises:
        HTTPException(422) if the report has no campaign column or no
            usable rows
    """
    try:
        result, errors = ingest_csv(
            request.content,
            currency=request.currency,
            default_date=engine.current_date,
            delimiter=request.delimiter,
        )
        if not result.success:
            raise HTTPException(
                status_code=422,
                detail={
                    "message": "CSV could not be converted into campaign records",
                    "errors": [error.model_dump() for error in errors],
                }
            )

        engine.set_live_records(result.records)
        logger.info(
            f"CSV ingested: {len(result.records)} records, "
            f"{result.incomplete_records} incomplete"
        )
        return result
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error ingesting CSV")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to ingest CSV: {str(e)}"
        )

"""
FastAPI router module for daily snapshots.

Implements GET/POST /snapshots (list dates, save today's snapshot) and
GET/PUT /snapshots/{date} (read one snapshot, edit a past day).

Dates in paths are ISO calendar dates in the reference timezone
(e.g. /snapshots/2026-10-18).

Error Mapping:
- Unknown date on GET or PUT -> 404
- PUT on today's date -> 409 (today's snapshot is owned by the auto-save
  policy; use POST /snapshots)
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Body, HTTPException

from pulse.core.dependencies import EngineDep
from pulse.models import (
    Snapshot,
    SnapshotDatesResponse,
    SnapshotSaveRequest,
    SnapshotUpdateRequest,
)
from pulse.services.snapshot_store import HistoricalEditError, SnapshotNotFoundError


# Configure logging
logger = logging.getLogger(__name__)


router = APIRouter()


# =============================================================================
# Endpoint Implementations
# =============================================================================


@router.get("", response_model=SnapshotDatesResponse)
async def list_snapshots(engine: EngineDep) -> SnapshotDatesResponse:
    """
    List snapshot dates, most recent first.

    Returns:
        SnapshotDatesResponse with every stored date (each at most once) and
        today's reference date.
    """
    try:
        dates = engine.list_snapshot_dates()
        return SnapshotDatesResponse(dates=dates, currentDate=engine.current_date)
    except Exception as e:
        logger.exception("Error listing snapshot dates")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to list snapshots: {str(e)}"
        )


@router.post("", response_model=Snapshot)
async def save_snapshot(
    engine: EngineDep,
    request: Optional[SnapshotSaveRequest] = Body(default=None),
) -> Snapshot:
    """
    Save today's snapshot.

    The body's records are saved when given; otherwise the live-day records
    held by the engine. Saving the same records again leaves the stored
    snapshot unchanged.
    """
    try:
        snapshot = engine.save_snapshot(request.records if request else None)
        logger.info(f"Saved snapshot for {snapshot.date} via API")
        return snapshot
    except Exception as e:
        logger.exception("Error saving snapshot")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to save snapshot: {str(e)}"
        )


@router.get("/{snapshot_date}", response_model=Snapshot)
async def get_snapshot(snapshot_date: date, engine: EngineDep) -> Snapshot:
    """
    Get the snapshot stored for a date.

    Raises:
        HTTPException(404) if no snapshot exists for the date
    """
    try:
        snapshot = engine.get_snapshot_by_date(snapshot_date)
        if snapshot is None:
            raise HTTPException(
                status_code=404,
                detail=f"No snapshot for {snapshot_date.isoformat()}"
            )
        return snapshot
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error retrieving snapshot for {snapshot_date}")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to retrieve snapshot: {str(e)}"
        )


@router.put("/{snapshot_date}", response_model=Snapshot)
async def update_snapshot(
    snapshot_date: date,
    engine: EngineDep,
    request: SnapshotUpdateRequest = Body(...),
) -> Snapshot:
    """
    Replace the records of a past day's snapshot.

    The date key never changes; only the records and the write timestamp do.

    Raises:
        HTTPException(404) if no snapshot exists for the date
        HTTPException(409) if the date is today
    """
    try:
        engine.update_historical_snapshot(snapshot_date, request.records)
        snapshot = engine.get_snapshot_by_date(snapshot_date)
        logger.info(f"Updated historical snapshot for {snapshot_date} via API")
        return snapshot
    except SnapshotNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except HistoricalEditError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.exception(f"Error updating snapshot for {snapshot_date}")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to update snapshot: {str(e)}"
        )

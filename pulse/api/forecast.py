"""
FastAPI router module for month-end forecasts.

Implements GET /forecast (stored history plus the live day) and
POST /forecast (caller-supplied records).

Forecasts are derived on every request and never persisted.
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Body, HTTPException, Query

from pulse.core.dependencies import EngineDep
from pulse.models import ForecastRequest, MonthlyForecast


# Configure logging
logger = logging.getLogger(__name__)


router = APIRouter()


# =============================================================================
# Endpoint Implementations
# =============================================================================


@router.get("", response_model=MonthlyForecast)
async def get_forecast(
    engine: EngineDep,
    as_of: Optional[date] = Query(default=None, alias="asOf", description="Reference date (default: today)"),
    monthly_goal: Optional[float] = Query(default=None, alias="monthlyGoal", gt=0, description="Revenue goal override"),
) -> MonthlyForecast:
    """
    Forecast the month from stored snapshots and the live day.

    Returns:
        MonthlyForecast with four scenarios, confidence, goal status, and
        insights. An empty history yields a zeroed forecast.
    """
    try:
        forecast = engine.compute_forecast(as_of=as_of, monthly_goal=monthly_goal)
        logger.info(
            f"Forecast for {forecast.asOf} over {forecast.historyDays} days: "
            f"{forecast.goalStatus.value}, confidence {forecast.confidence:.1f}"
        )
        return forecast
    except Exception as e:
        logger.exception("Error computing forecast")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to compute forecast: {str(e)}"
        )


@router.post("", response_model=MonthlyForecast)
async def post_forecast(
    engine: EngineDep,
    request: ForecastRequest = Body(...),
) -> MonthlyForecast:
    """Forecast the month from the records in the request body."""
    try:
        return engine.compute_forecast(
            records=request.records,
            as_of=request.asOf,
            monthly_goal=request.monthlyGoal,
        )
    except Exception as e:
        logger.exception("Error computing forecast from request records")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to compute forecast: {str(e)}"
        )

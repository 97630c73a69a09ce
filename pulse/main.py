"""
FastAPI application entry point for the Campaign Pulse API.

This module serves as the central orchestration file for the service. It
configures logging and CORS, owns the SnapshotEngine lifecycle through the
lifespan context, registers API routers, and starts the ASGI server.

Lifespan:
- Startup builds the SnapshotEngine from settings, subscribes the optional
  Slack day-change notification, and starts rollover detection.
- Shutdown disposes the engine, cancelling every pending timer.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pulse import __version__
from pulse.api.forecast import router as forecast_router
from pulse.api.metrics import router as metrics_router
from pulse.api.snapshots import router as snapshots_router
from pulse.core.config import Settings, get_settings
from pulse.jobs.rollover_digest import send_rollover_digest
from pulse.models import RolloverEvent
from pulse.services.engine import SnapshotEngine


settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


def subscribe_rollover_digest(engine: SnapshotEngine, settings: Settings) -> None:
    """
    Post a Slack message on every day change.

    Delivery runs in the default executor; the rollover tick only schedules it.
    """

    def on_rollover(event: RolloverEvent) -> None:
        snapshot = engine.get_snapshot_by_date(event.previousDate)
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(None, send_rollover_digest, event, snapshot, settings)
        future.add_done_callback(_log_digest_result)

    engine.on_rollover(on_rollover)
    logger.info("Slack day-change notifications enabled")


def _log_digest_result(future: "asyncio.Future") -> None:
    if future.cancelled():
        logger.warning("Day-change notification cancelled before delivery")
        return
    result = future.result()
    if result.get('success'):
        logger.info(f"Day-change notification sent for {result.get('date')}")
    else:
        logger.warning(f"Day-change notification failed: {result.get('error')}")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for FastAPI application startup and shutdown events.

    On startup:
        - Build the SnapshotEngine and store it on app.state
        - Enable Slack notifications when SLACK_WEBHOOK_URL is set
        - Start rollover detection
    On shutdown:
        - Dispose the engine (stops the detector, cancels the safety save)
    """
    # Startup
    logger.info(f"Campaign Pulse API starting (reference timezone {settings.reference_timezone})")
    engine = SnapshotEngine(settings)
    if settings.slack_webhook_url:
        subscribe_rollover_digest(engine, settings)
    engine.start()
    app.state.engine = engine

    yield

    # Shutdown
    logger.info("Campaign Pulse API shutting down")
    engine.dispose()
    app.state.engine = None


# Create FastAPI application
app = FastAPI(
    title="Campaign Pulse API",
    version=__version__,
    description=(
        "FastAPI backend for campaign analytics. "
        "Provides daily snapshots with automatic day rollover, live-day "
        "metrics and CSV ingestion, and month-end forecasts with insights."
    ),
    lifespan=lifespan,
)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register API routers
app.include_router(snapshots_router, prefix="/snapshots", tags=["snapshots"])
app.include_router(metrics_router, prefix="/metrics", tags=["metrics"])
app.include_router(forecast_router, prefix="/forecast", tags=["forecast"])


@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring and load balancer probes.

    Returns:
        Dict with status 'healthy' and the rollover detector status
    """
    engine = getattr(app.state, 'engine', None)
    if engine is None:
        return {"status": "starting"}
    return {
        "status": "healthy",
        "rollover": engine.status().model_dump(mode='json'),
    }


@app.get("/")
async def root():
    """
    Root endpoint providing API information.

    Returns:
        Dict with API name and version
    """
    return {
        "name": "Campaign Pulse API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "pulse.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )

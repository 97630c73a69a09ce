"""
FastAPI dependency injection module for the Campaign Pulse backend.

This module provides the FastAPI dependency for the SnapshotEngine owned by
the application lifespan.

Key Dependencies Provided:
- get_engine: Returns the SnapshotEngine stored on app.state
- EngineDep: Type alias for injecting the engine into endpoints

This module is not re-exported from pulse.core: it imports the services
layer, which itself depends on pulse.core.

Usage Examples:
    @router.get("/snapshots")
    async def list_snapshots(engine: EngineDep) -> SnapshotDatesResponse:
        return SnapshotDatesResponse(
            dates=engine.list_snapshot_dates(),
            currentDate=engine.current_date,
        )

Testing:
    app.dependency_overrides[get_engine] = lambda: engine_under_test
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from pulse.services.engine import SnapshotEngine


# =============================================================================
# Engine Dependency
# =============================================================================

def get_engine(request: Request) -> SnapshotEngine:
    """
    Return the SnapshotEngine created by the application lifespan.

    Raises:
        HTTPException: 503 if the engine has not been started (lifespan not
            run, or already shut down).
    """
    engine = getattr(request.app.state, 'engine', None)
    if engine is None:
        raise HTTPException(
            status_code=503,
            detail="Snapshot engine is not running"
        )
    return engine


# =============================================================================
# Type Aliases for Dependency Injection
# =============================================================================

# Usage: async def endpoint(engine: EngineDep)
EngineDep = Annotated[SnapshotEngine, Depends(get_engine)]

"""
Core infrastructure package for the Campaign Pulse backend.

Provides:
- Configuration management via pydantic-settings
- Clock, scheduler, and reference-timezone helpers

FastAPI dependencies live in pulse.core.dependencies and are imported from
there directly (they depend on the services layer).

Usage Examples:
    from pulse.core import get_settings, resolve_timezone

    settings = get_settings()
    tz = resolve_timezone(settings.reference_timezone)
"""

# =============================================================================
# Re-exports from pulse.core.config
# =============================================================================
from pulse.core.config import Settings, get_settings

# =============================================================================
# Re-exports from pulse.core.timekeeping
# =============================================================================
from pulse.core.timekeeping import (
    AsyncioScheduler,
    Clock,
    Scheduler,
    SystemClock,
    days_remaining_in_month,
    is_near_midnight,
    reference_date,
    resolve_timezone,
)


__all__ = [
    # Configuration management (from config.py)
    'Settings',
    'get_settings',
    # Time sources and timezone helpers (from timekeeping.py)
    'AsyncioScheduler',
    'Clock',
    'Scheduler',
    'SystemClock',
    'days_remaining_in_month',
    'is_near_midnight',
    'reference_date',
    'resolve_timezone',
]

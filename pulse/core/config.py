"""
Settings and environment management module for the Campaign Pulse backend.

This module provides centralized configuration management using pydantic-settings,
which automatically loads settings from environment variables and .env files.

Key Features:
- Environment variable validation and type coercion
- Sensible defaults for development
- Singleton pattern via @lru_cache for efficient access
- Forecasting and rollover tuning knobs with dashboard-compatible defaults

Environment Variables:
- REFERENCE_TIMEZONE: Timezone that defines every snapshot date key
  (default: America/Sao_Paulo). Accepts an IANA name or a fixed offset such as
  UTC-03:00.
- DISPLAY_CURRENCY: Currency records are normalized into before aggregation.
- EXCHANGE_RATE: USD->BRL rate supplied by the caller (optional).
- SLACK_WEBHOOK_URL: Slack webhook for day-change notifications (optional).

Forecast Defaults:
- monthly_revenue_goal: 15000 (goal used for goal_status)
- monthly_budget_ceiling: 10000 (projected cost above this raises a warning)

Usage:
    from pulse.core.config import get_settings

    settings = get_settings()
    tz_name = settings.reference_timezone
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from pulse.models.enums import Currency


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    The class inherits from pydantic-settings BaseSettings which provides:
    - Automatic loading from environment variables (case-insensitive)
    - Support for .env file loading
    - Type validation and coercion
    - Default values for optional settings

    Attributes:
        reference_timezone: Timezone used to compute calendar-date keys.
        display_currency: Currency every record is converted into.
        exchange_rate: USD->BRL rate used by currency normalization.
        monthly_revenue_goal: Revenue goal compared against the realistic scenario.
        monthly_budget_ceiling: Projected-cost ceiling for the budget insight.
        rollover_default_interval_seconds: Poll interval far from midnight.
        rollover_near_midnight_interval_seconds: Poll interval close to midnight.
        rollover_midnight_window_minutes: Width of the window around midnight.
        safety_save_delay_seconds: Quiet period before the backup save runs.
        slack_webhook_url: Slack incoming webhook for day-change digests.
        log_level: Root logging level.
        cors_origins: Origins allowed to call the API from a browser.
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=False,
    )

    # =========================================================================
    # Calendar
    # =========================================================================

    # All snapshot keys and "today" checks are computed in this timezone,
    # never from the server's local clock
    reference_timezone: str = 'America/Sao_Paulo'

    # =========================================================================
    # Currency normalization
    # =========================================================================

    display_currency: Currency = Currency.BRL

    # Rate is supplied from outside (the dashboard fetches it); None disables
    # conversion and leaves amounts untouched
    exchange_rate: Optional[float] = Field(default=None, gt=0)

    # =========================================================================
    # Forecasting
    # =========================================================================

    monthly_revenue_goal: float = Field(default=15000.0, gt=0)
    monthly_budget_ceiling: float = Field(default=10000.0, ge=0)

    # =========================================================================
    # Rollover detection
    # =========================================================================

    rollover_default_interval_seconds: float = Field(default=300.0, gt=0)
    rollover_near_midnight_interval_seconds: float = Field(default=30.0, gt=0)
    rollover_midnight_window_minutes: int = Field(default=5, ge=0, le=60)

    # Debounce for the backup save of today's snapshot after metric changes
    safety_save_delay_seconds: float = Field(default=5.0, ge=0)

    # =========================================================================
    # Notifications (optional)
    # =========================================================================

    # Format: https://hooks.slack.com/services/xxx/yyy/zzz
    slack_webhook_url: Optional[str] = None

    # =========================================================================
    # Service
    # =========================================================================

    log_level: str = 'INFO'
    cors_origins: List[str] = [
        'http://localhost:5173',
        'http://localhost:3000',
    ]


@lru_cache()
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Returns:
        Settings: The cached settings instance.

    Raises:
        pydantic.ValidationError: If an environment variable has an invalid value
            (e.g., a negative EXCHANGE_RATE).

    Note:
        To refresh settings in tests, clear the cache:
        >>> get_settings.cache_clear()
    """
    return Settings()

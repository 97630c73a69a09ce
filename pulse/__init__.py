"""
Campaign Pulse Backend Package.

FastAPI service layer for the campaign analytics dashboard. Owns the daily
snapshot history and the monthly forecasting engine; the dashboard itself
(forms, tables, charts) talks to it over HTTP.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, timekeeping, and dependencies
    - models: Pydantic schemas and enums
    - services: Parsing, rollover detection, snapshots, forecasting, insights
    - jobs: Day-change notifications
"""

__version__ = "1.0.0"

"""
API package initialization.

This package contains FastAPI router modules for Campaign Pulse:
- snapshots: Daily snapshot listing, saving, reading, and historical edits
- metrics: Live-day campaign records and CSV report ingestion
- forecast: Month-end forecast with scenarios and insights
"""

'''
Campaign Pulse Test Suite

Test Modules:
-------------
- test_number_parser.py: Brazilian/international formats, denylist, percentages
- test_rollover.py: One event per day change, adaptive polling, stop()
- test_snapshot_store.py: Idempotent saves, unique dates, historical edits
- test_forecasting.py: Linear projection, confidence, scenarios, goal status
- test_insights.py: Each insight rule in isolation
- test_currency.py: BRL/USD conversion and record normalization
- test_ingestion.py: Campaign report CSV parsing
- test_engine.py: Auto-save on rollover, debounced safety save
- test_jobs.py: Slack day-change notification
- test_api.py: HTTP contract
'''

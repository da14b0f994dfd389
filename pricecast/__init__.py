"""Core forecasting logic: indicators, signal fusion, and the prediction ledger.

This package contains pure business logic with no I/O dependencies
(no Redis or network access). Persistence is injected via callbacks
by the application layer (pricecast_app/).
"""

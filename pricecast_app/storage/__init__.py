"""Data storage layer."""

from pricecast_app.storage import cache
from pricecast_app.storage import ledger_cache

__all__ = [
    "cache",
    "ledger_cache",
]

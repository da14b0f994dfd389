"""Prediction ledger persistence.

Stores the ledger in Redis as a single JSON array for:
- Persistence across restarts
- Shared read access for reporting scripts

Data structure:
- ledger:{ledger_id} -> JSON [{createdAt, assetId, priceAtCreation, ...}, ...]

Validation of the records is left to PredictionLedger.from_records, which
treats malformed data as an empty ledger.
"""

from __future__ import annotations

import logging
from typing import Any

from pricecast_app.storage import cache

logger = logging.getLogger(__name__)


def _ledger_key(ledger_id: str) -> str:
    """Get the cache key for a ledger."""
    return f"{cache.KEY_PREFIX_LEDGER}{ledger_id}"


async def save_ledger(records: list[dict], ledger_id: str = "default") -> bool:
    """Save ledger records to cache.

    Args:
        records: Serialized ledger entries (PredictionLedger.to_records())
        ledger_id: Stable ledger identifier

    Returns:
        True if saved successfully
    """
    if not cache.is_cache_available():
        return False

    return await cache.set_json(_ledger_key(ledger_id), records)


async def load_ledger(ledger_id: str = "default") -> Any | None:
    """Load raw ledger records from cache.

    Args:
        ledger_id: Stable ledger identifier

    Returns:
        Decoded JSON value or None if not found/cache unavailable
    """
    if not cache.is_cache_available():
        return None

    data = await cache.get_json(_ledger_key(ledger_id))
    if data is None:
        logger.info(f"No persisted ledger under {_ledger_key(ledger_id)}")
    return data


async def clear_ledger(ledger_id: str = "default") -> bool:
    """Remove a persisted ledger."""
    if not cache.is_cache_available():
        return False

    return await cache.delete(_ledger_key(ledger_id))


def ledger_callbacks(ledger_id: str = "default"):
    """Build (load, save) callbacks bound to one ledger id for ForecastTracker."""

    async def _load() -> Any | None:
        return await load_ledger(ledger_id)

    async def _save(records: list[dict]) -> bool:
        return await save_ledger(records, ledger_id)

    return _load, _save

"""Redis key-value store for persisted forecast state.

Holds:
- The prediction ledger (ledger:{ledger_id})

Uses orjson for fast serialization/deserialization. Every operation
degrades to a no-op (None/False) when Redis is unavailable, so the
forecasting core keeps running without persistence.
"""

from __future__ import annotations

import logging
from typing import Any

import orjson
import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool

from pricecast_app.config import get_settings

logger = logging.getLogger(__name__)

# Global connection pool
_pool: ConnectionPool | None = None
_client: redis.Redis | None = None


# =============================================================================
# Key prefixes for different data types
# =============================================================================

KEY_PREFIX_LEDGER = "ledger:"        # Prediction ledger: ledger:{ledger_id}


# =============================================================================
# Connection management
# =============================================================================

async def init_cache(redis_url: str | None = None) -> None:
    """Initialize Redis connection pool.

    The module-level client is only published after a successful ping, so a
    failed or cancelled connection attempt leaves the cache unavailable.
    """
    global _pool, _client

    if _client is not None:
        return

    url = redis_url or get_settings().redis_url
    pool = ConnectionPool.from_url(
        url,
        max_connections=10,
        decode_responses=False,  # We handle encoding ourselves with orjson
    )
    client = redis.Redis(connection_pool=pool)

    # Test connection
    try:
        await client.ping()
    except redis.RedisError as e:
        logger.warning(f"Redis connection failed: {e}. Ledger persistence will be disabled.")
        return

    _pool = pool
    _client = client
    logger.info(f"Redis connected: {url}")


async def close_cache() -> None:
    """Close Redis connection pool."""
    global _pool, _client

    if _client is not None:
        await _client.aclose()
        _client = None

    if _pool is not None:
        await _pool.disconnect()
        _pool = None

    logger.info("Redis connection closed")


def is_cache_available() -> bool:
    """Check if cache is available."""
    return _client is not None


# =============================================================================
# Basic operations
# =============================================================================

async def get(key: str) -> bytes | None:
    """Get a value from cache.

    Args:
        key: Cache key

    Returns:
        Raw bytes or None if not found/cache unavailable
    """
    if _client is None:
        return None

    try:
        return await _client.get(key)
    except redis.RedisError as e:
        logger.warning(f"Redis GET error: {e}")
        return None


async def set(key: str, value: bytes) -> bool:
    """Set a value in cache.

    Args:
        key: Cache key
        value: Raw bytes to store

    Returns:
        True if successful, False otherwise
    """
    if _client is None:
        return False

    try:
        await _client.set(key, value)
        return True
    except redis.RedisError as e:
        logger.warning(f"Redis SET error: {e}")
        return False


async def delete(key: str) -> bool:
    """Delete a key from cache."""
    if _client is None:
        return False

    try:
        await _client.delete(key)
        return True
    except redis.RedisError as e:
        logger.warning(f"Redis DELETE error: {e}")
        return False


# =============================================================================
# JSON operations (using orjson)
# =============================================================================

async def get_json(key: str) -> Any | None:
    """Get a JSON value from cache.

    Undecodable payloads are logged and reported as missing.
    """
    data = await get(key)
    if data is None:
        return None

    try:
        return orjson.loads(data)
    except orjson.JSONDecodeError as e:
        logger.warning(f"JSON decode error for key {key}: {e}")
        return None


async def set_json(key: str, value: Any) -> bool:
    """Set a JSON value in cache."""
    try:
        data = orjson.dumps(value)
        return await set(key, data)
    except (TypeError, orjson.JSONEncodeError) as e:
        logger.warning(f"JSON encode error for key {key}: {e}")
        return False


# =============================================================================
# Health check
# =============================================================================

async def ping() -> bool:
    """Check if Redis is responsive."""
    if _client is None:
        return False

    try:
        return await _client.ping()
    except redis.RedisError:
        return False

"""Runtime wiring for a host refresh loop.

Usage:
    async with forecast_runtime() as tracker:
        forecasts = await tracker.refresh(inputs)

The host owns data retrieval and scheduling; this module only connects
Redis, loads the fusion weights and restores the ledger.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from pricecast.fusion import SignalFusionEngine
from pricecast.tracker import ForecastTracker
from pricecast_app.config import Settings, get_settings
from pricecast_app.fusion_config import load_fusion_config
from pricecast_app.storage import cache, ledger_cache

# Startup timeout in seconds
CACHE_TIMEOUT = 10

logger = logging.getLogger(__name__)


def configure_logging(debug: bool = False) -> None:
    """Configure root logging and quiet noisy libraries."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("redis").setLevel(logging.WARNING)


async def create_tracker(settings: Settings | None = None) -> ForecastTracker:
    """Connect persistence and build an initialized ForecastTracker."""
    settings = settings or get_settings()

    try:
        await asyncio.wait_for(cache.init_cache(settings.redis_url), timeout=CACHE_TIMEOUT)
    except asyncio.TimeoutError:
        logger.warning(f"Redis init timed out after {CACHE_TIMEOUT}s, running without persistence")

    load, save = ledger_cache.ledger_callbacks(settings.ledger_id)
    tracker = ForecastTracker(
        engine=SignalFusionEngine(load_fusion_config(Path(settings.fusion_config_path))),
        ledger_config=settings.ledger_config(),
        load_ledger=load,
        save_ledger=save,
    )
    await tracker.init()

    logger.info(
        "Forecast tracker ready: assets=%s, ledger=%s, persistence=%s",
        ",".join(settings.assets),
        settings.ledger_id,
        "redis" if cache.is_cache_available() else "disabled",
    )
    return tracker


async def shutdown(tracker: ForecastTracker) -> None:
    """Persist the ledger and release the Redis pool."""
    try:
        await tracker.close()
    finally:
        await cache.close_cache()


@asynccontextmanager
async def forecast_runtime(settings: Settings | None = None) -> AsyncIterator[ForecastTracker]:
    """Tracker lifespan manager."""
    settings = settings or get_settings()
    configure_logging(settings.debug)
    tracker = await create_tracker(settings)
    try:
        yield tracker
    finally:
        await shutdown(tracker)

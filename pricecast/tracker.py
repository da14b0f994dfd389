"""Forecast tracker: the host-owned object tying fusion and ledger together.

Owns one PredictionLedger and serializes every mutation of it behind an
asyncio.Lock, so concurrent refresh cycles on one event loop cannot
interleave record/evict/resolve.

All I/O is injected via callbacks:
- load_ledger: Return persisted ledger records at startup (or None)
- save_ledger: Persist the ledger records after every mutation
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable, Mapping

from pricecast.fusion import SignalFusionEngine
from pricecast.ledger import Clock, PredictionLedger, epoch_ms
from pricecast.models import Forecast, ForecastInput, LedgerConfig, LedgerStats

logger = logging.getLogger(__name__)

# Type aliases for callbacks
LoadLedgerCallback = Callable[[], Awaitable[Any]]
SaveLedgerCallback = Callable[[list[dict]], Awaitable[bool]]


class ForecastTracker:
    """Compute forecasts, record them, and keep their accuracy up to date.

    Lifecycle: ``await init()`` once, ``await refresh(...)`` per cycle,
    ``await close()`` at shutdown.
    """

    def __init__(
        self,
        engine: SignalFusionEngine | None = None,
        ledger_config: LedgerConfig | None = None,
        load_ledger: LoadLedgerCallback | None = None,
        save_ledger: SaveLedgerCallback | None = None,
        clock: Clock = epoch_ms,
    ):
        self.engine = engine or SignalFusionEngine()
        self.ledger_config = ledger_config or LedgerConfig()
        self._clock = clock

        # Injected callbacks (None = in-memory only)
        self._load_ledger = load_ledger
        self._save_ledger = save_ledger

        self._ledger = PredictionLedger(self.ledger_config, clock)
        self._lock = asyncio.Lock()
        self._initialized = False

    @property
    def ledger(self) -> PredictionLedger:
        return self._ledger

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def init(self) -> None:
        """Restore the ledger from persistence."""
        if self._initialized:
            return

        if self._load_ledger:
            records = await self._load_ledger()
            async with self._lock:
                self._ledger = PredictionLedger.from_records(
                    records, self.ledger_config, self._clock
                )
            logger.info(f"Loaded prediction ledger with {len(self._ledger)} entries")

        self._initialized = True

    async def close(self) -> None:
        """Persist the final ledger state."""
        async with self._lock:
            await self._persist()
        logger.info("Forecast tracker closed")

    # ------------------------------------------------------------------
    # Forecasting
    # ------------------------------------------------------------------

    def forecast(self, data: ForecastInput) -> Forecast:
        """Compute a forecast without touching the ledger."""
        return self.engine.compute(data)

    async def refresh(self, inputs: Iterable[ForecastInput]) -> list[Forecast]:
        """Run one refresh cycle.

        1. Resolve due ledger entries using the current prices in ``inputs``
        2. Compute a forecast per input
        3. Record each forecast (subject to the ledger's spacing rule)
        4. Persist the ledger
        """
        inputs = list(inputs)
        prices = {data.asset_id: data.current_price for data in inputs}
        forecasts = [self.engine.compute(data) for data in inputs]

        async with self._lock:
            self._ledger.resolve(prices.get)
            recorded = 0
            for forecast in forecasts:
                if self._ledger.record_forecast(forecast) is not None:
                    recorded += 1
            await self._persist()

        logger.info(
            "Refresh: %d forecast(s), %d recorded, %d pending",
            len(forecasts),
            recorded,
            len(self._ledger.pending()),
        )
        return forecasts

    async def resolve(self, prices: Mapping[str, float]) -> int:
        """Resolve due entries against ``prices`` and persist."""
        async with self._lock:
            resolved = self._ledger.resolve(prices.get)
            if resolved:
                await self._persist()
        return resolved

    def stats(self, asset_id: str | None = None) -> LedgerStats:
        return self._ledger.stats(asset_id)

    async def _persist(self) -> None:
        if self._save_ledger is None:
            return
        if not await self._save_ledger(self._ledger.to_records()):
            logger.warning("Prediction ledger was not persisted")

"""Prediction ledger: record forecasts and verify them once their horizon passes.

Lifecycle per entry and per horizon:

    pending --(elapsed >= horizon AND current price available)--> resolved

Resolved horizons are terminal; ``resolve`` never overwrites them, so it is
safe to call on every refresh cycle.

Rules:
- One entry per asset per ``min_spacing_ms`` (later calls are dropped)
- At most ``max_entries`` entries, oldest evicted first
- A missing price leaves the horizon pending until a later call

Mutation is not internally synchronized. The owner must serialize
``record``/``resolve`` (see ForecastTracker).
"""

from __future__ import annotations

import logging
import math
import time
from collections import deque
from typing import Any, Callable

from pydantic import ValidationError

from pricecast.models import (
    Forecast,
    Horizon,
    HorizonStats,
    LedgerConfig,
    LedgerEntry,
    LedgerStats,
)
from pricecast.utils import sign

logger = logging.getLogger(__name__)

Clock = Callable[[], int]
PriceLookup = Callable[[str], float | None]


def epoch_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class PredictionLedger:
    """Append-only record of forecasts and their realized outcomes."""

    def __init__(
        self,
        config: LedgerConfig | None = None,
        clock: Clock = epoch_ms,
    ):
        self.config = config or LedgerConfig()
        self._clock = clock
        self._entries: deque[LedgerEntry] = deque(maxlen=self.config.max_entries)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def record(
        self,
        asset_id: str,
        price_at_creation: float,
        short_forecast: float,
        long_forecast: float,
    ) -> LedgerEntry | None:
        """Append a pending entry.

        Returns None (and records nothing) when the latest entry for the
        asset is younger than ``min_spacing_ms``.
        """
        now = self._clock()
        latest = self._latest(asset_id)
        if latest is not None and now - latest.created_at < self.config.min_spacing_ms:
            logger.debug(
                "Skip ledger record for %s: last entry %d ms ago (< %d ms)",
                asset_id,
                now - latest.created_at,
                self.config.min_spacing_ms,
            )
            return None

        entry = LedgerEntry(
            created_at=now,
            asset_id=asset_id,
            price_at_creation=price_at_creation,
            short_horizon_forecast=short_forecast,
            long_horizon_forecast=long_forecast,
        )
        if len(self._entries) == self._entries.maxlen:
            evicted = self._entries[0]
            logger.debug("Ledger full, evicting %s entry from %d", evicted.asset_id, evicted.created_at)
        self._entries.append(entry)
        return entry.model_copy()

    def record_forecast(self, forecast: Forecast) -> LedgerEntry | None:
        """Record a fusion engine forecast."""
        return self.record(
            forecast.asset_id,
            forecast.observed_price,
            forecast.short_horizon_price,
            forecast.long_horizon_price,
        )

    def resolve(self, price_lookup: PriceLookup) -> int:
        """Resolve every pending horizon whose duration has elapsed.

        Args:
            price_lookup: Returns the current price for an asset, or None
                when no price is available (the horizon stays pending).

        Returns:
            Number of horizons resolved by this call
        """
        now = self._clock()
        durations = {
            Horizon.SHORT: self.config.short_horizon_ms,
            Horizon.LONG: self.config.long_horizon_ms,
        }
        prices: dict[str, float | None] = {}
        resolved = 0

        for entry in self._entries:
            for horizon, duration in durations.items():
                if entry.is_resolved(horizon) or now - entry.created_at < duration:
                    continue

                if entry.asset_id not in prices:
                    prices[entry.asset_id] = price_lookup(entry.asset_id)
                price = prices[entry.asset_id]
                if price is None or not math.isfinite(price) or price <= 0:
                    continue

                if entry.resolve(horizon, price, now):
                    resolved += 1

        if resolved:
            logger.info("Resolved %d forecast horizon(s)", resolved)
        return resolved

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def entries(self) -> tuple[LedgerEntry, ...]:
        """Snapshot copies of all entries, oldest first.

        Entries only change through record/resolve; mutating a returned copy
        has no effect on the ledger.
        """
        return tuple(e.model_copy() for e in self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def latest(self, asset_id: str) -> LedgerEntry | None:
        """Copy of the most recent entry for an asset."""
        entry = self._latest(asset_id)
        return entry.model_copy() if entry is not None else None

    def _latest(self, asset_id: str) -> LedgerEntry | None:
        for entry in reversed(self._entries):
            if entry.asset_id == asset_id:
                return entry
        return None

    def pending(self, horizon: Horizon | None = None) -> list[LedgerEntry]:
        """Entries with at least one pending horizon (or the given one)."""
        horizons = [horizon] if horizon else list(Horizon)
        return [
            e.model_copy() for e in self._entries
            if any(not e.is_resolved(h) for h in horizons)
        ]

    def asset_ids(self) -> list[str]:
        """Distinct asset ids in first-seen order."""
        return list(dict.fromkeys(e.asset_id for e in self._entries))

    def stats(self, asset_id: str | None = None) -> LedgerStats:
        """Compute hit rate and mean percentage error per horizon.

        A hit is a resolved entry whose forecast moved in the same direction
        (relative to the creation price) as the realized price.
        Error is |forecast - actual| / price_at_creation * 100.
        """
        entries = [
            e for e in self._entries
            if asset_id is None or e.asset_id == asset_id
        ]
        result = LedgerStats(asset_id=asset_id)
        for horizon in Horizon:
            self._calc_horizon(result.for_horizon(horizon), entries, horizon)
        return result

    @staticmethod
    def _calc_horizon(
        stats: HorizonStats,
        entries: list[LedgerEntry],
        horizon: Horizon,
    ) -> None:
        errors: list[float] = []
        stats.count = len(entries)

        for entry in entries:
            actual = entry.actual(horizon)
            if actual is None:
                continue
            stats.resolved += 1
            forecast = entry.forecast(horizon)
            base = entry.price_at_creation
            if sign(forecast - base) == sign(actual - base):
                stats.hits += 1
            errors.append(abs(forecast - actual) / base * 100)

        if stats.resolved > 0:
            stats.hit_rate = stats.hits / stats.resolved * 100
            stats.mean_pct_error = sum(errors) / len(errors)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_records(self) -> list[dict]:
        """Serialize all entries, oldest first."""
        return [e.to_record() for e in self._entries]

    @classmethod
    def from_records(
        cls,
        data: Any,
        config: LedgerConfig | None = None,
        clock: Clock = epoch_ms,
    ) -> "PredictionLedger":
        """Restore a ledger from persisted records.

        Malformed data (not a list, or any invalid entry) yields an empty
        ledger. Only the newest ``max_entries`` entries are kept.
        """
        ledger = cls(config, clock)
        if data is None:
            return ledger

        if not isinstance(data, list):
            logger.warning(
                "Discarding persisted ledger: expected a list, got %s",
                type(data).__name__,
            )
            return ledger

        try:
            entries = [LedgerEntry.model_validate(item) for item in data]
        except ValidationError as e:
            logger.warning(f"Discarding malformed persisted ledger: {e}")
            return ledger

        ledger._entries.extend(entries)
        logger.info(
            "Ledger restored: %d entries (%d persisted)",
            len(ledger),
            len(entries),
        )
        return ledger

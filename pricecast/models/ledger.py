"""Prediction ledger entry and statistics models."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Horizon(str, Enum):
    """Forecast horizons tracked by the ledger."""

    SHORT = "short"
    LONG = "long"


class LedgerEntry(BaseModel):
    """A recorded forecast awaiting (or holding) its realized prices.

    Each horizon is pending while its ``*_actual`` is None and becomes
    resolved exactly once. Timestamps are epoch milliseconds. Serialized
    with camelCase keys (``createdAt``, ``shortHorizonActual``...).
    """

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    created_at: int
    asset_id: str
    price_at_creation: float = Field(gt=0)
    short_horizon_forecast: float
    long_horizon_forecast: float
    short_horizon_actual: float | None = None
    short_horizon_resolved_at: int | None = None
    long_horizon_actual: float | None = None
    long_horizon_resolved_at: int | None = None

    def forecast(self, horizon: Horizon) -> float:
        return getattr(self, f"{horizon.value}_horizon_forecast")

    def actual(self, horizon: Horizon) -> float | None:
        return getattr(self, f"{horizon.value}_horizon_actual")

    def resolved_at(self, horizon: Horizon) -> int | None:
        return getattr(self, f"{horizon.value}_horizon_resolved_at")

    def is_resolved(self, horizon: Horizon) -> bool:
        return self.actual(horizon) is not None

    def resolve(self, horizon: Horizon, price: float, timestamp: int) -> bool:
        """
        Set the realized price for a horizon.
        Returns True if the horizon changed from pending to resolved.
        """
        if self.is_resolved(horizon):
            return False

        setattr(self, f"{horizon.value}_horizon_actual", price)
        setattr(self, f"{horizon.value}_horizon_resolved_at", timestamp)
        return True

    def to_record(self) -> dict:
        """Serialize to the persisted camelCase shape."""
        return self.model_dump(by_alias=True)


@dataclass
class HorizonStats:
    """Accuracy statistics for one horizon.

    hit_rate is a percentage in [0, 100]; both hit_rate and mean_pct_error
    are None until at least one entry has resolved.
    """

    horizon: str
    count: int = 0
    resolved: int = 0
    hits: int = 0
    hit_rate: float | None = None
    mean_pct_error: float | None = None

    @property
    def pending(self) -> int:
        return self.count - self.resolved


@dataclass
class LedgerStats:
    """Per-horizon statistics, optionally for a single asset."""

    asset_id: str | None = None
    short: HorizonStats = field(default_factory=lambda: HorizonStats(horizon=Horizon.SHORT.value))
    long: HorizonStats = field(default_factory=lambda: HorizonStats(horizon=Horizon.LONG.value))

    def for_horizon(self, horizon: Horizon) -> HorizonStats:
        return self.short if horizon == Horizon.SHORT else self.long

    def to_dict(self) -> dict:
        return asdict(self)

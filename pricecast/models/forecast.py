"""Indicator reading and forecast models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from pricecast.utils import trend_label


class IndicatorKind(str, Enum):
    """Indicators that vote in the fusion stage."""

    EMA = "ema"
    RSI = "rsi"
    MACD = "macd"
    BOLLINGER = "bollinger"
    STOCHASTIC = "stochastic"
    ATR = "atr"
    MEAN_REVERSION = "mean_reversion"


class Direction(str, Enum):
    """Directional verdict of a single indicator or of the whole forecast."""

    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"

    @classmethod
    def from_signal(cls, signal: float) -> "Direction":
        """Sign of the signal; exactly zero is neutral."""
        if signal > 0:
            return cls.BULLISH
        if signal < 0:
            return cls.BEARISH
        return cls.NEUTRAL


class IndicatorReading(BaseModel):
    """One indicator's contribution to a forecast.

    ``value`` is the headline number (e.g. RSI level, MACD histogram,
    %B), ``components`` carries the secondary values, and ``signal`` is
    the dimensionless score the fusion weights are applied to.
    ``sufficient_data`` is False when the indicator ran on its
    short-history fallback.
    """

    model_config = ConfigDict(frozen=True)

    kind: IndicatorKind
    value: float
    components: dict[str, float] = Field(default_factory=dict)
    signal: float = 0.0
    direction: Direction = Direction.NEUTRAL
    strength: float = Field(default=0.0, ge=0.0, le=100.0)
    sufficient_data: bool = True


class Forecast(BaseModel):
    """Short and long horizon price forecasts for one asset."""

    model_config = ConfigDict(frozen=True)

    asset_id: str
    observed_price: float
    short_horizon_price: float
    long_horizon_price: float
    readings: dict[IndicatorKind, IndicatorReading]
    sentiment: Direction

    # Fusion internals, kept for logging and diagnostics
    raw_short: float = 0.0
    raw_long: float = 0.0
    atr_pct: float = 0.0
    hourly_slope: float = 0.0

    def to_record(self) -> dict:
        """Flatten to a single-level dict for display or logging."""
        record = {
            "asset_id": self.asset_id,
            "observed_price": self.observed_price,
            "short_horizon_price": self.short_horizon_price,
            "long_horizon_price": self.long_horizon_price,
            "short_trend": trend_label(self.observed_price, self.short_horizon_price),
            "long_trend": trend_label(self.observed_price, self.long_horizon_price),
            "sentiment": self.sentiment.value,
            "atr_pct": self.atr_pct,
            "hourly_slope": self.hourly_slope,
        }
        for kind, reading in self.readings.items():
            record[f"{kind.value}_value"] = reading.value
            record[f"{kind.value}_direction"] = reading.direction.value
            record[f"{kind.value}_strength"] = reading.strength
        return record

"""Signal fusion engine.

Turns one asset's price history into a short horizon and a long horizon
forecast:

1. Each indicator is reduced to a dimensionless directional signal
   (EMA spread, RSI zones, MACD histogram, Bollinger %B, Stochastic
   extremes, daily mean reversion). ATR is not directional; it only
   scales the size of the forecast move.
2. Signals are blended with fixed per-horizon weights into a raw score,
   clamped to [-1, 1].
3. forecast = price * (1 + raw * min(atr_pct * mult, cap)), so the move is
   bounded by the horizon cap no matter how extreme the indicators are.

This module is pure business logic with no I/O dependencies.
"""

from __future__ import annotations

import logging
from collections import Counter

import numpy as np

from pricecast.indicators import atr, bollinger, ema, macd, rsi, stochastic
from pricecast.models import (
    Direction,
    Forecast,
    ForecastInput,
    FusionConfig,
    HorizonWeights,
    IndicatorKind,
    IndicatorReading,
)
from pricecast.utils import clamp, slope

logger = logging.getLogger(__name__)


def _strength(signal: float, saturation: float) -> float:
    """Map |signal| onto [0, 100], saturating at ``saturation``."""
    if saturation <= 0:
        return 0.0
    return clamp(abs(signal) / saturation * 100.0, 0.0, 100.0)


def _reading(
    kind: IndicatorKind,
    value: float,
    signal: float,
    saturation: float,
    components: dict[str, float] | None = None,
    sufficient_data: bool = True,
) -> IndicatorReading:
    return IndicatorReading(
        kind=kind,
        value=value,
        components=components or {},
        signal=signal,
        direction=Direction.from_signal(signal),
        strength=_strength(signal, saturation),
        sufficient_data=sufficient_data,
    )


def consensus(readings: dict[IndicatorKind, IndicatorReading]) -> Direction:
    """Majority vote over reading directions.

    The most frequent direction wins; a tie for the top count is neutral.
    """
    ranked = Counter(r.direction for r in readings.values()).most_common()
    if not ranked:
        return Direction.NEUTRAL
    if len(ranked) > 1 and ranked[0][1] == ranked[1][1]:
        return Direction.NEUTRAL
    return ranked[0][0]


class SignalFusionEngine:
    """Blend indicator signals into horizon forecasts.

    Stateless apart from its configuration: ``compute`` can be called for
    different assets concurrently.
    """

    def __init__(self, config: FusionConfig | None = None):
        self.config = config or FusionConfig()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def compute(self, data: ForecastInput) -> Forecast:
        """Compute a forecast for one asset."""
        cfg = self.config
        price = data.current_price

        readings = {
            IndicatorKind.EMA: self._ema_reading(data.hourly_closes, price),
            IndicatorKind.RSI: self._rsi_reading(data.hourly_closes),
            IndicatorKind.MACD: self._macd_reading(data.hourly_closes, price),
            IndicatorKind.BOLLINGER: self._bollinger_reading(data.hourly_closes),
            IndicatorKind.STOCHASTIC: self._stochastic_reading(data),
            IndicatorKind.ATR: self._atr_reading(data, price),
            IndicatorKind.MEAN_REVERSION: self._mean_reversion_reading(data.daily_closes, price),
        }

        atr_pct = readings[IndicatorKind.ATR].components["atr_pct"]
        raw_short = self.blend(readings, cfg.short_weights)
        raw_long = self.blend(readings, cfg.long_weights)

        short_scale = clamp(atr_pct * cfg.short_atr_mult, 0.0, cfg.short_cap)
        long_scale = clamp(atr_pct * cfg.long_atr_mult, 0.0, cfg.long_cap)

        forecast = Forecast(
            asset_id=data.asset_id,
            observed_price=price,
            short_horizon_price=price * (1 + raw_short * short_scale),
            long_horizon_price=price * (1 + raw_long * long_scale),
            readings=readings,
            sentiment=consensus(readings),
            raw_short=raw_short,
            raw_long=raw_long,
            atr_pct=atr_pct,
            hourly_slope=slope(data.hourly_closes[-cfg.slope_window:]),
        )

        logger.debug(
            "Forecast %s: price=%.6g short=%.6g long=%.6g sentiment=%s",
            data.asset_id,
            price,
            forecast.short_horizon_price,
            forecast.long_horizon_price,
            forecast.sentiment.value,
        )
        return forecast

    @staticmethod
    def blend(
        readings: dict[IndicatorKind, IndicatorReading],
        weights: HorizonWeights,
    ) -> float:
        """Weighted sum of directional signals, clamped to [-1, 1]."""
        raw = (
            weights.ema * readings[IndicatorKind.EMA].signal
            + weights.rsi * readings[IndicatorKind.RSI].signal
            + weights.macd * readings[IndicatorKind.MACD].signal
            + weights.bollinger * readings[IndicatorKind.BOLLINGER].signal
            + weights.stochastic * readings[IndicatorKind.STOCHASTIC].signal
            + weights.mean_reversion * readings[IndicatorKind.MEAN_REVERSION].signal
        )
        return clamp(raw, -1.0, 1.0)

    def rsi_signal(self, level: float) -> float:
        """
        Map an RSI level to a reversal signal.

        Overbought -> negative, oversold -> positive:
        > 75 strong negative, 60..75 mild negative,
        < 25 strong positive, 25..40 mild positive, otherwise 0.
        """
        cfg = self.config
        if level > cfg.rsi_overbought_strong:
            return -cfg.rsi_strong_signal
        if level >= cfg.rsi_overbought_mild:
            return -cfg.rsi_mild_signal
        if level < cfg.rsi_oversold_strong:
            return cfg.rsi_strong_signal
        if level <= cfg.rsi_oversold_mild:
            return cfg.rsi_mild_signal
        return 0.0

    def bollinger_signal(self, percent_b: float) -> float:
        """Expect reversion from the band edges, small pull toward the mid inside."""
        cfg = self.config
        if percent_b > cfg.bollinger_upper_trigger:
            return -cfg.bollinger_extreme_signal
        if percent_b < cfg.bollinger_lower_trigger:
            return cfg.bollinger_extreme_signal
        return (0.5 - percent_b) * cfg.bollinger_inner_factor

    def stochastic_signal(self, k: float, d: float) -> float:
        cfg = self.config
        if k > cfg.stochastic_overbought and k > d:
            return -cfg.stochastic_signal
        if k < cfg.stochastic_oversold and k < d:
            return cfg.stochastic_signal
        return 0.0

    # ------------------------------------------------------------------
    # Indicator readings
    # ------------------------------------------------------------------

    def _ema_reading(self, closes: list[float], price: float) -> IndicatorReading:
        cfg = self.config
        if not closes:
            return _reading(
                IndicatorKind.EMA, price, 0.0, cfg.ema_saturation,
                {"ema_fast": price, "ema_mid": price, "ema_slow": price},
                sufficient_data=False,
            )

        fast = ema(closes, cfg.ema_fast_period)[-1]
        mid = ema(closes, cfg.ema_mid_period)[-1]
        has_slow = len(closes) >= cfg.ema_slow_period
        # Without enough history the slow leg collapses onto the mid EMA
        slow = ema(closes, cfg.ema_slow_period)[-1] if has_slow else mid

        signal = (
            cfg.ema_fast_mix * ((fast - mid) / price)
            + cfg.ema_slow_mix * ((mid - slow) / price)
        )
        return _reading(
            IndicatorKind.EMA, fast, signal, cfg.ema_saturation,
            {"ema_fast": fast, "ema_mid": mid, "ema_slow": slow},
            sufficient_data=has_slow,
        )

    def _rsi_reading(self, closes: list[float]) -> IndicatorReading:
        cfg = self.config
        level = rsi(closes, cfg.rsi_period)
        return _reading(
            IndicatorKind.RSI, level, self.rsi_signal(level), cfg.rsi_saturation,
            sufficient_data=len(closes) >= cfg.rsi_period + 1,
        )

    def _macd_reading(self, closes: list[float], price: float) -> IndicatorReading:
        cfg = self.config
        result = macd(
            closes,
            cfg.macd_fast_period,
            cfg.macd_slow_period,
            cfg.macd_signal_period,
        )
        return _reading(
            IndicatorKind.MACD, result.histogram, result.histogram / price, cfg.macd_saturation,
            {"line": result.line, "signal": result.signal, "histogram": result.histogram},
            sufficient_data=len(closes) >= cfg.macd_slow_period,
        )

    def _bollinger_reading(self, closes: list[float]) -> IndicatorReading:
        cfg = self.config
        bands = bollinger(
            closes,
            cfg.bollinger_period,
            cfg.bollinger_mult,
            cfg.bollinger_fallback_upper_pct,
            cfg.bollinger_fallback_lower_pct,
        )
        return _reading(
            IndicatorKind.BOLLINGER,
            bands.percent_b,
            self.bollinger_signal(bands.percent_b),
            cfg.bollinger_saturation,
            {
                "mid": bands.mid,
                "upper": bands.upper,
                "lower": bands.lower,
                "bandwidth_ratio": bands.bandwidth_ratio,
            },
            sufficient_data=len(closes) >= cfg.bollinger_period,
        )

    def _stochastic_reading(self, data: ForecastInput) -> IndicatorReading:
        cfg = self.config
        result = stochastic(
            data.highs,
            data.lows,
            data.hourly_closes,
            cfg.stochastic_k_period,
            cfg.stochastic_d_period,
        )
        return _reading(
            IndicatorKind.STOCHASTIC,
            result.k,
            self.stochastic_signal(result.k, result.d),
            cfg.stochastic_saturation,
            {"k": result.k, "d": result.d},
            sufficient_data=len(data.hourly_closes) >= cfg.stochastic_k_period,
        )

    def _atr_reading(self, data: ForecastInput, price: float) -> IndicatorReading:
        cfg = self.config
        value = atr(data.highs, data.lows, data.hourly_closes, cfg.atr_period)
        atr_pct = max(value / price, 0.0)
        return IndicatorReading(
            kind=IndicatorKind.ATR,
            value=value,
            components={"atr_pct": atr_pct},
            signal=0.0,
            direction=Direction.NEUTRAL,
            strength=_strength(atr_pct, cfg.atr_saturation),
            sufficient_data=len(data.hourly_closes) >= cfg.atr_period,
        )

    def _mean_reversion_reading(self, daily: list[float], price: float) -> IndicatorReading:
        cfg = self.config
        if not daily:
            return _reading(
                IndicatorKind.MEAN_REVERSION, price, 0.0, cfg.mean_reversion_saturation,
                {"daily_mean": price},
                sufficient_data=False,
            )

        mean = float(np.mean(daily))
        signal = (mean - price) / mean if mean != 0 else 0.0
        return _reading(
            IndicatorKind.MEAN_REVERSION, mean, signal, cfg.mean_reversion_saturation,
            {"daily_mean": mean},
        )

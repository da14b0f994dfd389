"""Forecast configuration models.

Every weight, cap and threshold used by the fusion engine is a field here,
so retuning is a config change (see pricecast_app/fusion_config.py for the
YAML loader).
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class HorizonWeights(BaseModel):
    """Blend weights for one forecast horizon."""

    ema: float = 0.0
    rsi: float = 0.0
    macd: float = 0.0
    bollinger: float = 0.0
    stochastic: float = 0.0
    mean_reversion: float = 0.0


class FusionConfig(BaseModel):
    """Signal fusion parameters."""

    # Indicator periods
    ema_fast_period: int = 8
    ema_mid_period: int = 21
    ema_slow_period: int = 50
    rsi_period: int = 14
    bollinger_period: int = 20
    bollinger_mult: float = 2.0
    stochastic_k_period: int = 14
    stochastic_d_period: int = 3
    atr_period: int = 14
    macd_fast_period: int = 12
    macd_slow_period: int = 26
    macd_signal_period: int = 9

    # Bollinger fallback band when history is shorter than bollinger_period
    bollinger_fallback_upper_pct: float = 0.002
    bollinger_fallback_lower_pct: float = 0.005

    # EMA signal mix: fast/mid spread vs mid/slow spread
    ema_fast_mix: float = 0.6
    ema_slow_mix: float = 0.4

    # RSI piecewise mapping
    rsi_overbought_strong: float = 75.0
    rsi_overbought_mild: float = 60.0
    rsi_oversold_mild: float = 40.0
    rsi_oversold_strong: float = 25.0
    rsi_strong_signal: float = 0.004
    rsi_mild_signal: float = 0.0015

    # Bollinger %B mapping
    bollinger_upper_trigger: float = 0.95
    bollinger_lower_trigger: float = 0.05
    bollinger_extreme_signal: float = 0.003
    bollinger_inner_factor: float = 0.004

    # Stochastic mapping
    stochastic_overbought: float = 80.0
    stochastic_oversold: float = 20.0
    stochastic_signal: float = 0.02

    # Horizon blends
    short_weights: HorizonWeights = HorizonWeights(
        ema=0.30, rsi=0.10, macd=0.25, bollinger=0.15, stochastic=0.10, mean_reversion=0.05,
    )
    long_weights: HorizonWeights = HorizonWeights(
        ema=0.20, rsi=0.15, macd=0.15, bollinger=0.15, stochastic=0.10, mean_reversion=0.20,
    )

    # Volatility scaling: forecast move = raw * min(atr_pct * mult, cap)
    short_atr_mult: float = 8.0
    short_cap: float = Field(default=0.03, ge=0.0)
    long_atr_mult: float = 80.0
    long_cap: float = Field(default=0.15, ge=0.0)

    # Trailing hourly points used for the displayed trend slope
    slope_window: int = Field(default=120, ge=1)

    # |signal| at which an indicator reading reports strength 100
    ema_saturation: float = 0.01
    rsi_saturation: float = 0.004
    macd_saturation: float = 0.005
    bollinger_saturation: float = 0.003
    stochastic_saturation: float = 0.02
    mean_reversion_saturation: float = 0.05
    atr_saturation: float = 0.05


class LedgerConfig(BaseModel):
    """Prediction ledger parameters (all durations in milliseconds)."""

    max_entries: int = Field(default=100, ge=1)
    min_spacing_ms: int = Field(default=300_000, ge=0)
    short_horizon_ms: int = Field(default=60_000, gt=0)
    long_horizon_ms: int = Field(default=86_400_000, gt=0)

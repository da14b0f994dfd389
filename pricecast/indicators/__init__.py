"""Technical indicators (pure math, no I/O)."""

from pricecast.indicators.indicators import (
    ema,
    sma,
    rsi,
    macd,
    bollinger,
    stochastic,
    atr,
    true_range,
    highest,
    lowest,
    MacdResult,
    BollingerResult,
    StochasticResult,
    RSI_NEUTRAL,
    STOCHASTIC_NEUTRAL,
)

__all__ = [
    "ema",
    "sma",
    "rsi",
    "macd",
    "bollinger",
    "stochastic",
    "atr",
    "true_range",
    "highest",
    "lowest",
    "MacdResult",
    "BollingerResult",
    "StochasticResult",
    "RSI_NEUTRAL",
    "STOCHASTIC_NEUTRAL",
]

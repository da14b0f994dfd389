"""Technical indicators for forecast generation.

All functions are pure NumPy transforms over float sequences and are total:
insufficient history never raises, it resolves to a documented neutral
fallback so the fusion stage can always produce a forecast.

Sequence-valued indicators (ema, sma, highest, lowest, true_range) return
lists with the same length as the input. Scalar indicators (rsi, atr) and
composite indicators (macd, bollinger, stochastic) return the value at the
latest element.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

RSI_NEUTRAL = 50.0
STOCHASTIC_NEUTRAL = 50.0


@dataclass(frozen=True, slots=True)
class MacdResult:
    """MACD values at the latest element."""

    line: float
    signal: float
    histogram: float


@dataclass(frozen=True, slots=True)
class BollingerResult:
    """Bollinger Band values at the latest element."""

    mid: float
    upper: float
    lower: float
    bandwidth_ratio: float
    percent_b: float


@dataclass(frozen=True, slots=True)
class StochasticResult:
    """Stochastic oscillator values at the latest element."""

    k: float
    d: float


def _to_array(values: Sequence[float]) -> np.ndarray:
    return np.asarray(values, dtype=np.float64)


# =============================================================================
# Moving averages and rolling windows
# =============================================================================

def ema(values: Sequence[float], period: int) -> list[float]:
    """
    Calculate Exponential Moving Average.

    The recurrence is seeded with the first value (not an SMA), so every
    element is defined:

        v[0] = x[0]
        v[i] = x[i] * k + v[i-1] * (1 - k),  k = 2 / (period + 1)

    Args:
        values: Sequence of price values
        period: EMA period

    Returns:
        List of EMA values (same length as input)
    """
    arr = _to_array(values)
    if arr.size == 0:
        return []

    multiplier = 2.0 / (period + 1)
    result = np.empty_like(arr)
    result[0] = arr[0]
    for i in range(1, len(arr)):
        result[i] = arr[i] * multiplier + result[i - 1] * (1 - multiplier)

    return result.tolist()


def sma(values: Sequence[float], period: int) -> list[float]:
    """
    Calculate Simple Moving Average.

    Args:
        values: Sequence of price values
        period: SMA period

    Returns:
        List of SMA values (NaN for the first period - 1 entries)
    """
    arr = _to_array(values)
    result = np.full(arr.shape, np.nan)

    for i in range(period - 1, len(arr)):
        result[i] = np.mean(arr[i - period + 1 : i + 1])

    return result.tolist()


def highest(values: Sequence[float], period: int) -> list[float]:
    """
    Calculate highest value over the trailing window.

    Leading entries use the shorter window that is available.

    Args:
        values: Sequence of values (typically highs)
        period: Lookback period

    Returns:
        List of highest values
    """
    arr = _to_array(values)
    result = np.empty_like(arr)

    for i in range(len(arr)):
        result[i] = np.max(arr[max(0, i - period + 1) : i + 1])

    return result.tolist()


def lowest(values: Sequence[float], period: int) -> list[float]:
    """
    Calculate lowest value over the trailing window.

    Leading entries use the shorter window that is available.

    Args:
        values: Sequence of values (typically lows)
        period: Lookback period

    Returns:
        List of lowest values
    """
    arr = _to_array(values)
    result = np.empty_like(arr)

    for i in range(len(arr)):
        result[i] = np.min(arr[max(0, i - period + 1) : i + 1])

    return result.tolist()


# =============================================================================
# Oscillators
# =============================================================================

def rsi(values: Sequence[float], period: int = 14) -> float:
    """
    Calculate Relative Strength Index at the latest element.

    Average gain/loss over the first ``period`` deltas seed Wilder's
    smoothing, which is then applied to every later delta:

        avg = (avg * (period - 1) + current) / period

    Args:
        values: Sequence of close prices
        period: RSI period

    Returns:
        RSI in [0, 100]. 50.0 when fewer than period + 1 values exist,
        100.0 when the average loss is zero.
    """
    arr = _to_array(values)
    if len(arr) < period + 1:
        return RSI_NEUTRAL

    deltas = np.diff(arr)
    gains = np.where(deltas > 0, deltas, 0.0)
    losses = np.where(deltas < 0, -deltas, 0.0)

    avg_gain = float(np.mean(gains[:period]))
    avg_loss = float(np.mean(losses[:period]))

    for i in range(period, len(deltas)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period

    if avg_loss == 0:
        return 100.0

    rs = avg_gain / avg_loss
    return float(100.0 - 100.0 / (1.0 + rs))


def macd(
    values: Sequence[float],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> MacdResult:
    """
    Calculate MACD at the latest element.

    line = EMA(fast) - EMA(slow), signal = EMA(signal_period) of the line,
    histogram = line - signal.

    Args:
        values: Sequence of close prices
        fast_period: Fast EMA period
        slow_period: Slow EMA period
        signal_period: Signal line EMA period

    Returns:
        MacdResult (all zeros for an empty input)
    """
    if len(values) == 0:
        return MacdResult(line=0.0, signal=0.0, histogram=0.0)

    line = _to_array(ema(values, fast_period)) - _to_array(ema(values, slow_period))
    signal = ema(line, signal_period)

    latest_line = float(line[-1])
    latest_signal = float(signal[-1])
    return MacdResult(
        line=latest_line,
        signal=latest_signal,
        histogram=latest_line - latest_signal,
    )


def bollinger(
    values: Sequence[float],
    period: int = 20,
    mult: float = 2.0,
    fallback_upper_pct: float = 0.002,
    fallback_lower_pct: float = 0.005,
) -> BollingerResult:
    """
    Calculate Bollinger Bands at the latest element.

    Uses the trailing ``period`` window mean plus/minus ``mult`` population
    standard deviations. With fewer than ``period`` values the bands fall
    back to fixed offsets around the last price:

        upper = last * (1 + fallback_upper_pct)
        lower = last * (1 - fallback_lower_pct)

    Args:
        values: Sequence of close prices
        period: Rolling window
        mult: Standard deviation multiplier
        fallback_upper_pct: Upper offset when history is short
        fallback_lower_pct: Lower offset when history is short

    Returns:
        BollingerResult. percent_b is 0.5 when the band has zero width.
    """
    arr = _to_array(values)
    if arr.size == 0:
        return BollingerResult(mid=0.0, upper=0.0, lower=0.0, bandwidth_ratio=0.0, percent_b=0.5)

    last = float(arr[-1])
    if len(arr) < period:
        mid = last
        upper = last * (1 + fallback_upper_pct)
        lower = last * (1 - fallback_lower_pct)
    else:
        window = arr[-period:]
        mid = float(np.mean(window))
        std = float(np.std(window))
        upper = mid + mult * std
        lower = mid - mult * std

    width = upper - lower
    percent_b = (last - lower) / width if width > 0 else 0.5
    bandwidth_ratio = width / mid if mid != 0 else 0.0

    return BollingerResult(
        mid=mid,
        upper=upper,
        lower=lower,
        bandwidth_ratio=bandwidth_ratio,
        percent_b=percent_b,
    )


def stochastic(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    k_period: int = 14,
    d_period: int = 3,
) -> StochasticResult:
    """
    Calculate the Stochastic oscillator at the latest element.

    %K = (close - lowest low) / (highest high - lowest low) * 100 over the
    trailing ``k_period`` window (50 when the window is flat).
    %D = mean of the last ``d_period`` %K values.

    Args:
        highs: Sequence of high prices
        lows: Sequence of low prices
        closes: Sequence of close prices
        k_period: %K lookback
        d_period: %D smoothing

    Returns:
        StochasticResult (50/50 for an empty input)
    """
    if len(closes) == 0:
        return StochasticResult(k=STOCHASTIC_NEUTRAL, d=STOCHASTIC_NEUTRAL)

    hh = highest(highs, k_period)
    ll = lowest(lows, k_period)

    k_values = []
    for close, high, low in zip(closes, hh, ll):
        price_range = high - low
        if price_range <= 0:
            k_values.append(STOCHASTIC_NEUTRAL)
        else:
            k_values.append((close - low) / price_range * 100.0)

    return StochasticResult(
        k=k_values[-1],
        d=float(np.mean(k_values[-d_period:])),
    )


# =============================================================================
# Volatility
# =============================================================================

def true_range(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
) -> list[float]:
    """
    Calculate True Range.

    TR = max(high - low, abs(high - prev_close), abs(low - prev_close))
    The first element has no previous close and uses high - low.

    Args:
        highs: Sequence of high prices
        lows: Sequence of low prices
        closes: Sequence of close prices

    Returns:
        List of True Range values
    """
    n = len(highs)
    if n == 0:
        return []

    result = [float(highs[0] - lows[0])]

    for i in range(1, n):
        hl = highs[i] - lows[i]
        hc = abs(highs[i] - closes[i - 1])
        lc = abs(lows[i] - closes[i - 1])
        result.append(float(max(hl, hc, lc)))

    return result


def atr(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    period: int = 14,
) -> float:
    """
    Calculate Average True Range at the latest element.

    EMA-smoothed true range (seeded with the first true range).

    Args:
        highs: Sequence of high prices
        lows: Sequence of low prices
        closes: Sequence of close prices
        period: ATR period

    Returns:
        Latest ATR value (0.0 for an empty input)
    """
    tr = true_range(highs, lows, closes)
    if not tr:
        return 0.0
    return ema(tr, period)[-1]

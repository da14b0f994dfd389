"""Tests for technical indicators."""

import math

import numpy as np
import pytest

from pricecast.indicators import (
    atr,
    bollinger,
    ema,
    highest,
    lowest,
    macd,
    rsi,
    sma,
    stochastic,
    true_range,
)


def rsi_82_series() -> list[float]:
    """15 closes whose 14 deltas gain 82 and lose 18 in total -> RSI 82."""
    return [100.0, 141.0, 132.0, 173.0, 164.0] + [164.0] * 10


class TestEMA:
    """Tests for EMA calculation."""

    def test_ema_same_length_and_seed(self):
        values = [float(i) for i in range(1, 31)]
        result = ema(values, 8)

        assert len(result) == len(values)
        assert result[0] == values[0]

    def test_ema_recurrence(self):
        """k = 2 / (3 + 1) = 0.5 -> each value halves the gap."""
        result = ema([10.0, 20.0, 20.0], 3)
        assert result == pytest.approx([10.0, 15.0, 17.5])

    def test_ema_single_element(self):
        assert ema([42.0], 50) == [42.0]

    def test_ema_empty(self):
        assert ema([], 10) == []

    def test_ema_tracks_uptrend_with_lag(self):
        values = list(np.linspace(95, 100, 120))
        fast = ema(values, 8)[-1]
        slow = ema(values, 21)[-1]
        assert values[-1] > fast > slow


class TestSMA:
    """Tests for SMA calculation."""

    def test_sma_basic(self):
        values = [float(i) for i in range(1, 11)]  # 1-10
        result = sma(values, 3)

        assert len(result) == 10
        assert math.isnan(result[0])
        assert math.isnan(result[1])
        assert result[2] == pytest.approx(2.0)
        assert result[3] == pytest.approx(3.0)
        assert result[-1] == pytest.approx(9.0)

    def test_sma_insufficient_data(self):
        result = sma([100.0, 101.0], 5)
        assert len(result) == 2
        assert all(math.isnan(v) for v in result)


class TestRSI:
    """Tests for RSI calculation."""

    @pytest.mark.parametrize("length", [0, 1, 2, 10, 14])
    def test_rsi_insufficient_history_is_neutral(self, length):
        values = [100.0 + i * 3 for i in range(length)]
        assert rsi(values) == 50

    def test_rsi_all_gains_saturates_at_100(self):
        values = [100.0 + i for i in range(30)]
        assert rsi(values) == 100

    def test_rsi_flat_series_has_no_loss(self):
        assert rsi([100.0] * 20) == 100

    def test_rsi_all_losses_is_zero(self):
        values = [100.0 - i for i in range(30)]
        assert rsi(values) == pytest.approx(0.0)

    def test_rsi_seed_window(self):
        """With exactly period + 1 values only the seed averages are used."""
        assert rsi(rsi_82_series()) == pytest.approx(82.0)

    def test_rsi_wilder_smoothing(self):
        """Deltas after the seed window use avg = (avg * 13 + current) / 14."""
        values = rsi_82_series() + [154.0]  # one more delta: loss of 10

        avg_gain = (82 / 14 * 13 + 0) / 14
        avg_loss = (18 / 14 * 13 + 10) / 14
        expected = 100 - 100 / (1 + avg_gain / avg_loss)

        assert rsi(values) == pytest.approx(expected)

    def test_rsi_bounded(self):
        rng = np.random.default_rng(7)
        values = list(100 + np.cumsum(rng.normal(0, 1, 200)))
        assert 0 <= rsi(values) <= 100


class TestMACD:
    """Tests for MACD calculation."""

    def test_macd_flat_series(self):
        result = macd([100.0] * 60)
        assert result.line == pytest.approx(0.0, abs=1e-9)
        assert result.signal == pytest.approx(0.0, abs=1e-9)
        assert result.histogram == pytest.approx(0.0, abs=1e-9)

    def test_macd_uptrend_positive_line(self):
        values = [100.0 + i for i in range(80)]
        result = macd(values)

        assert result.line > 0
        assert result.histogram == pytest.approx(result.line - result.signal)

    def test_macd_downtrend_negative_line(self):
        values = [200.0 - i for i in range(80)]
        assert macd(values).line < 0

    def test_macd_empty(self):
        result = macd([])
        assert (result.line, result.signal, result.histogram) == (0.0, 0.0, 0.0)


class TestBollinger:
    """Tests for Bollinger Bands."""

    def test_bollinger_known_window(self):
        values = [float(i) for i in range(1, 21)]  # 1..20
        result = bollinger(values, period=20, mult=2)

        std = math.sqrt((20 ** 2 - 1) / 12)  # population std of 1..20
        assert result.mid == pytest.approx(10.5)
        assert result.upper == pytest.approx(10.5 + 2 * std)
        assert result.lower == pytest.approx(10.5 - 2 * std)
        assert result.percent_b == pytest.approx((20 - result.lower) / (result.upper - result.lower))
        assert result.bandwidth_ratio == pytest.approx((result.upper - result.lower) / 10.5)

    def test_bollinger_uses_trailing_window(self):
        values = [1000.0] * 10 + [100.0] * 20
        assert bollinger(values).mid == pytest.approx(100.0)

    def test_bollinger_zero_width_band(self):
        result = bollinger([100.0] * 25)
        assert result.upper == result.lower
        assert result.percent_b == 0.5

    def test_bollinger_short_history_fallback(self):
        result = bollinger([100.0] * 5)

        assert result.mid == 100.0
        assert result.upper == pytest.approx(100.2)
        assert result.lower == pytest.approx(99.5)
        assert result.percent_b == pytest.approx(0.5 / 0.7)

    def test_bollinger_empty(self):
        assert bollinger([]).percent_b == 0.5


class TestStochastic:
    """Tests for the Stochastic oscillator."""

    def test_stochastic_flat_window_is_neutral(self):
        values = [100.0] * 20
        result = stochastic(values, values, values)
        assert result.k == 50
        assert result.d == 50

    def test_stochastic_close_at_high(self):
        values = [100.0 + i for i in range(20)]
        result = stochastic(values, values, values)
        assert result.k == 100
        assert result.d == 100

    def test_stochastic_close_at_low(self):
        closes = [100.0] * 19 + [90.0]
        highs = [101.0] * 20
        lows = [99.0] * 19 + [90.0]
        result = stochastic(highs, lows, closes)

        assert result.k == pytest.approx(0.0)
        # %D averages the last three %K values: 50, 50, 0
        assert result.d == pytest.approx((50 + 50 + 0) / 3)

    def test_stochastic_short_history_uses_available_window(self):
        result = stochastic([10.0, 12.0], [8.0, 9.0], [9.0, 11.0])
        assert result.k == pytest.approx((11 - 8) / (12 - 8) * 100)

    def test_stochastic_empty(self):
        result = stochastic([], [], [])
        assert (result.k, result.d) == (50, 50)


class TestHighestLowest:
    def test_shrinking_leading_window(self):
        values = [3.0, 1.0, 4.0, 1.0, 5.0]
        assert highest(values, 3) == [3.0, 3.0, 4.0, 4.0, 5.0]
        assert lowest(values, 3) == [3.0, 1.0, 1.0, 1.0, 1.0]


class TestATR:
    """Tests for true range and ATR."""

    def test_true_range_first_bar_uses_high_low(self):
        result = true_range([105.0, 103.0], [100.0, 101.0], [102.0, 102.0])
        assert result[0] == 5.0

    def test_true_range_gap_uses_previous_close(self):
        # Gap up: |high - prev_close| = 120 - 100 dominates high - low = 5
        result = true_range([101.0, 120.0], [99.0, 115.0], [100.0, 118.0])
        assert result[1] == 20.0

    def test_atr_constant_range(self):
        highs = [102.0] * 40
        lows = [100.0] * 40
        closes = [101.0] * 40
        assert atr(highs, lows, closes, 14) == pytest.approx(2.0)

    def test_atr_is_ema_of_true_range(self):
        highs = [102.0, 104.0, 103.0]
        lows = [100.0, 101.0, 99.0]
        closes = [101.0, 103.0, 100.0]
        expected = ema(true_range(highs, lows, closes), 14)[-1]
        assert atr(highs, lows, closes) == pytest.approx(expected)

    def test_atr_empty(self):
        assert atr([], [], []) == 0.0

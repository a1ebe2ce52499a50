"""Tests for technical indicators."""

import math

import pytest

from engine.indicators import (
    atr,
    bollinger_bands,
    ema,
    highest,
    last_valid,
    lowest,
    macd,
    percent_b,
    pivot_points,
    rsi,
    sma,
    stochastic,
    true_range,
    vwap,
)


class TestEMA:
    """Tests for EMA calculation."""

    def test_ema_basic(self):
        """Test basic EMA calculation."""
        values = [float(i) for i in range(1, 11)]  # 1-10
        result = ema(values, 5)

        # First 4 values should be NaN
        assert math.isnan(result[0])
        assert math.isnan(result[3])

        # 5th value should be SMA of first 5 = (1+2+3+4+5)/5 = 3
        assert result[4] == 3.0

        # Subsequent values should be EMA
        assert result[5] > result[4]

    def test_ema_insufficient_data(self):
        """Test EMA with insufficient data."""
        result = ema([100.0, 101.0, 102.0], 10)

        assert len(result) == 3
        assert all(math.isnan(v) for v in result)


class TestSMA:
    """Tests for SMA calculation."""

    def test_sma_basic(self):
        """Test basic SMA calculation."""
        values = [float(i) for i in range(1, 11)]
        result = sma(values, 3)

        assert math.isnan(result[0])
        assert math.isnan(result[1])

        # (1+2+3)/3 = 2
        assert result[2] == 2.0
        # (2+3+4)/3 = 3
        assert result[3] == 3.0
        assert len(result) == len(values)


class TestRSI:
    """Tests for Wilder RSI."""

    def test_rsi_known_values(self):
        """Seed with plain averages, then Wilder smoothing."""
        result = rsi([1.0, 2.0, 1.0, 2.0], period=2)

        assert math.isnan(result[0])
        assert math.isnan(result[1])
        # avg gain 0.5, avg loss 0.5
        assert result[2] == pytest.approx(50.0)
        # avg gain (0.5 + 1) / 2 = 0.75, avg loss 0.25 -> RS 3
        assert result[3] == pytest.approx(75.0)

    def test_rsi_only_gains(self):
        """No losses in the window reads 100."""
        result = rsi([float(i) for i in range(30)], 14)
        assert result[-1] == 100.0

    def test_rsi_only_losses(self):
        """No gains in the window reads 0."""
        result = rsi([float(30 - i) for i in range(30)], 14)
        assert result[-1] == 0.0

    def test_rsi_bounded(self):
        values = [100 + 10 * math.sin(i / 2.0) for i in range(100)]
        result = [v for v in rsi(values, 14) if not math.isnan(v)]

        assert result
        assert all(0.0 <= v <= 100.0 for v in result)

    def test_rsi_insufficient_data(self):
        result = rsi([1.0] * 14, 14)
        assert all(math.isnan(v) for v in result)


class TestMACD:
    """Tests for MACD."""

    def test_histogram_is_line_minus_signal(self):
        values = [100 + 5 * math.sin(i / 4.0) for i in range(80)]
        series = macd(values, 12, 26, 9)

        assert len(series.line) == len(values)
        for line, signal, hist in zip(series.line, series.signal, series.histogram):
            if not math.isnan(hist):
                assert hist == pytest.approx(line - signal)

    def test_warm_up_is_nan(self):
        values = [float(i) for i in range(60)]
        series = macd(values, 12, 26, 9)

        # Line needs the slow EMA, signal needs 9 line values on top
        assert math.isnan(series.line[24])
        assert not math.isnan(series.line[25])
        assert math.isnan(series.signal[32])
        assert not math.isnan(series.signal[33])

    def test_short_series(self):
        series = macd([1.0, 2.0, 3.0])
        assert all(math.isnan(v) for v in series.histogram)


class TestBollinger:
    """Tests for Bollinger Bands."""

    def test_population_stddev(self):
        values = [1.0, 2.0, 3.0, 4.0, 5.0]
        bands = bollinger_bands(values, period=5, num_std=2.0)

        # mean 3, population std sqrt(2)
        assert bands.middle[-1] == pytest.approx(3.0)
        assert bands.upper[-1] == pytest.approx(3.0 + 2 * math.sqrt(2))
        assert bands.lower[-1] == pytest.approx(3.0 - 2 * math.sqrt(2))

    def test_flat_series_collapses_bands(self):
        bands = bollinger_bands([10.0] * 25, 20)

        assert bands.upper[-1] == bands.middle[-1] == bands.lower[-1] == 10.0

    def test_percent_b(self):
        assert percent_b(15.0, upper=20.0, lower=10.0) == 0.5
        assert percent_b(25.0, upper=20.0, lower=10.0) == 1.5
        assert percent_b(10.0, upper=20.0, lower=10.0) == 0.0

    def test_percent_b_zero_width(self):
        """A zero-width band reads as price on the middle band."""
        assert percent_b(10.0, upper=10.0, lower=10.0) == 0.5


class TestATR:
    """Tests for ATR calculation."""

    def test_atr_constant_range(self):
        """Test ATR with constant range candles."""
        highs = [102.0] * 20
        lows = [100.0] * 20
        closes = [101.0] * 20

        result = atr(highs, lows, closes, 14)

        assert result[-1] == pytest.approx(2.0)

    def test_atr_insufficient_data(self):
        """Test ATR with insufficient data."""
        result = atr([102.0] * 5, [100.0] * 5, [101.0] * 5, 14)

        assert len(result) == 5
        assert all(math.isnan(v) for v in result)

    def test_true_range_uses_previous_close(self):
        # Gap up: prev close 100, bar 110-108
        result = true_range([101.0, 110.0], [99.0, 108.0], [100.0, 109.0])

        assert result[0] == 2.0
        assert result[1] == 10.0


class TestHighestLowest:
    """Tests for highest/lowest calculations."""

    def test_highest_basic(self):
        values = [1.0, 3.0, 2.0, 5.0, 4.0, 6.0, 3.0, 8.0, 7.0]
        result = highest(values, 3)

        assert math.isnan(result[0])
        assert math.isnan(result[1])
        assert result[2] == 3.0
        assert result[3] == 5.0
        assert result[4] == 5.0

    def test_lowest_basic(self):
        values = [5.0, 3.0, 4.0, 1.0, 6.0, 2.0, 7.0, 3.0, 8.0]
        result = lowest(values, 3)

        assert result[2] == 3.0
        assert result[3] == 1.0


class TestStochastic:
    """Tests for the stochastic oscillator."""

    def test_close_at_window_high(self):
        closes = [float(i) for i in range(1, 21)]
        highs = list(closes)
        lows = [c - 1 for c in closes]

        result = stochastic(highs, lows, closes, 14, 3)

        assert result.k[-1] == 100.0
        assert result.d[-1] == 100.0

    def test_zero_range_reads_fifty(self):
        result = stochastic([10.0] * 20, [10.0] * 20, [10.0] * 20, 14, 3)

        assert result.k[-1] == 50.0
        assert result.d[-1] == 50.0

    def test_d_is_sma_of_k(self):
        closes = [100 + 3 * math.sin(i / 2.0) for i in range(40)]
        highs = [c + 1 for c in closes]
        lows = [c - 1 for c in closes]

        result = stochastic(highs, lows, closes, 14, 3)

        assert result.d[-1] == pytest.approx(sum(result.k[-3:]) / 3)
        assert all(0.0 <= v <= 100.0 for v in result.k if not math.isnan(v))


class TestVWAP:
    """Tests for whole-series VWAP."""

    def test_volume_defaults_to_close(self):
        # (10*10 + 20*20) / (10 + 20)
        assert vwap([10.0, 20.0]) == pytest.approx(500.0 / 30.0)

    def test_with_volumes(self):
        assert vwap([10.0, 20.0], [1.0, 3.0]) == pytest.approx(17.5)

    def test_missing_volume_uses_close(self):
        assert vwap([10.0, 20.0], [None, 1.0]) == pytest.approx(120.0 / 11.0)

    def test_zero_volume(self):
        assert vwap([10.0, 20.0], [0.0, 0.0]) == 0.0

    def test_empty(self):
        assert vwap([]) == 0.0


class TestPivotPoints:
    """Tests for classic pivots."""

    def test_classic_formula(self):
        levels = pivot_points(high=110.0, low=90.0, close=100.0)

        assert levels.pp == 100.0
        assert levels.r1 == 110.0
        assert levels.s1 == 90.0
        assert levels.r2 == 120.0
        assert levels.s2 == 80.0
        assert levels.r3 == 130.0
        assert levels.s3 == 70.0


class TestLastValid:
    def test_nan_and_empty_use_default(self):
        assert last_valid([1.0, math.nan], default=7.0) == 7.0
        assert last_valid([], default=3.0) == 3.0
        assert last_valid([1.0, 2.0]) == 2.0

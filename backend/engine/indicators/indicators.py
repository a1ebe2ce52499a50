"""Technical indicators for the signal engine.

Pure NumPy implementations over float price series. Series-valued
functions return a list aligned with the input, with NaN for the
warm-up positions that do not have enough history yet.
"""

import math
from typing import NamedTuple, Sequence

import numpy as np


def _as_array(values: Sequence[float]) -> np.ndarray:
    return np.asarray(values, dtype=np.float64)


def _nan_list(n: int) -> list[float]:
    return [math.nan] * n


def sma(values: Sequence[float], period: int) -> list[float]:
    """
    Calculate Simple Moving Average.

    Args:
        values: Sequence of price values
        period: SMA period

    Returns:
        List of SMA values (NaN for the first period - 1 entries)
    """
    if len(values) < period:
        return _nan_list(len(values))

    arr = _as_array(values)
    result = np.full_like(arr, np.nan)

    for i in range(period - 1, len(arr)):
        result[i] = np.mean(arr[i - period + 1 : i + 1])

    return result.tolist()


def ema(values: Sequence[float], period: int) -> list[float]:
    """
    Calculate Exponential Moving Average.

    The first value is seeded with the SMA of the first window.

    Args:
        values: Sequence of price values
        period: EMA period

    Returns:
        List of EMA values (same length as input, with NaN for initial values)
    """
    if len(values) < period:
        return _nan_list(len(values))

    arr = _as_array(values)
    multiplier = 2.0 / (period + 1)

    result = np.empty_like(arr)
    result[:period - 1] = np.nan
    result[period - 1] = np.mean(arr[:period])

    for i in range(period, len(arr)):
        result[i] = arr[i] * multiplier + result[i - 1] * (1 - multiplier)

    return result.tolist()


def rsi(values: Sequence[float], period: int = 14) -> list[float]:
    """
    Calculate Relative Strength Index with Wilder smoothing.

    Average gain/loss are seeded with the plain mean of the first
    ``period`` changes, then smoothed with alpha = 1 / period.
    A window with no losses reads 100; no gains (and some losses) reads 0.

    Args:
        values: Sequence of close prices
        period: RSI period

    Returns:
        List of RSI values in [0, 100]
    """
    n = len(values)
    if n <= period:
        return _nan_list(n)

    arr = _as_array(values)
    deltas = np.diff(arr)
    gains = np.clip(deltas, 0.0, None)
    losses = np.clip(-deltas, 0.0, None)

    result = np.full(n, np.nan)
    avg_gain = float(np.mean(gains[:period]))
    avg_loss = float(np.mean(losses[:period]))
    result[period] = _rsi_value(avg_gain, avg_loss)

    for i in range(period + 1, n):
        avg_gain = (avg_gain * (period - 1) + gains[i - 1]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i - 1]) / period
        result[i] = _rsi_value(avg_gain, avg_loss)

    return result.tolist()


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    if avg_gain == 0:
        return 0.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


class MacdSeries(NamedTuple):
    line: list[float]
    signal: list[float]
    histogram: list[float]


def macd(
    values: Sequence[float],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> MacdSeries:
    """
    Calculate MACD (EMA-based oscillator and signal line).

    line = EMA(fast) - EMA(slow); signal = EMA(signal_period) of the line;
    histogram = line - signal.

    Returns:
        MacdSeries of three lists aligned with the input
    """
    n = len(values)
    fast = _as_array(ema(values, fast_period))
    slow = _as_array(ema(values, slow_period))
    line = fast - slow

    signal = np.full(n, np.nan)
    start = slow_period - 1
    if n > start:
        signal_tail = ema(line[start:].tolist(), signal_period)
        signal[start:] = signal_tail

    histogram = line - signal
    return MacdSeries(line.tolist(), signal.tolist(), histogram.tolist())


class BollingerSeries(NamedTuple):
    upper: list[float]
    middle: list[float]
    lower: list[float]


def bollinger_bands(
    values: Sequence[float],
    period: int = 20,
    num_std: float = 2.0,
) -> BollingerSeries:
    """
    Calculate Bollinger Bands using the population standard deviation.

    Args:
        values: Sequence of close prices
        period: Window length for the middle band (SMA)
        num_std: Band width in standard deviations

    Returns:
        BollingerSeries of (upper, middle, lower) lists
    """
    n = len(values)
    if n < period:
        nan = _nan_list(n)
        return BollingerSeries(nan, list(nan), list(nan))

    arr = _as_array(values)
    middle = _as_array(sma(values, period))
    std = np.full(n, np.nan)
    for i in range(period - 1, n):
        std[i] = np.std(arr[i - period + 1 : i + 1])  # ddof=0

    upper = middle + num_std * std
    lower = middle - num_std * std
    return BollingerSeries(upper.tolist(), middle.tolist(), lower.tolist())


def percent_b(close: float, upper: float, lower: float) -> float:
    """
    Position of the close within the bands: (close - lower) / (upper - lower).

    A zero-width band (flat window) reads 0.5, i.e. price on the middle band.
    """
    width = upper - lower
    if width == 0:
        return 0.5
    return (close - lower) / width


def true_range(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
) -> list[float]:
    """
    Calculate True Range.

    TR = max(high - low, abs(high - prev_close), abs(low - prev_close))
    The first bar has no previous close and uses high - low.
    """
    n = len(highs)
    if n == 0:
        return []

    result = [highs[0] - lows[0]]

    for i in range(1, n):
        hl = highs[i] - lows[i]
        hc = abs(highs[i] - closes[i - 1])
        lc = abs(lows[i] - closes[i - 1])
        result.append(max(hl, hc, lc))

    return result


def atr(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    period: int = 14,
) -> list[float]:
    """
    Calculate Average True Range (ATR).

    Uses RMA (Relative Moving Average) / Wilder's smoothing, seeded with the
    mean of the first ``period`` true ranges.
    """
    tr = true_range(highs, lows, closes)

    if len(tr) < period:
        return _nan_list(len(tr))

    tr_arr = _as_array(tr)
    result = np.empty_like(tr_arr)
    result[:period - 1] = np.nan
    result[period - 1] = np.mean(tr_arr[:period])

    alpha = 1.0 / period
    for i in range(period, len(tr_arr)):
        result[i] = alpha * tr_arr[i] + (1 - alpha) * result[i - 1]

    return result.tolist()


def highest(values: Sequence[float], period: int) -> list[float]:
    """Calculate highest value over lookback period."""
    if len(values) < period:
        return _nan_list(len(values))

    arr = _as_array(values)
    result = np.full_like(arr, np.nan)
    for i in range(period - 1, len(arr)):
        result[i] = np.max(arr[i - period + 1 : i + 1])
    return result.tolist()


def lowest(values: Sequence[float], period: int) -> list[float]:
    """Calculate lowest value over lookback period."""
    if len(values) < period:
        return _nan_list(len(values))

    arr = _as_array(values)
    result = np.full_like(arr, np.nan)
    for i in range(period - 1, len(arr)):
        result[i] = np.min(arr[i - period + 1 : i + 1])
    return result.tolist()


class StochasticSeries(NamedTuple):
    k: list[float]
    d: list[float]


def stochastic(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    period: int = 14,
    signal_period: int = 3,
) -> StochasticSeries:
    """
    Calculate the (fast) Stochastic Oscillator.

    %K = 100 * (close - lowest_low) / (highest_high - lowest_low)
    %D = SMA(signal_period) of %K

    A window with zero high/low range reads %K = 50.
    """
    n = len(closes)
    hh = highest(highs, period)
    ll = lowest(lows, period)

    k = np.full(n, np.nan)
    for i in range(period - 1, n):
        span = hh[i] - ll[i]
        if span == 0:
            k[i] = 50.0
        else:
            k[i] = 100.0 * (closes[i] - ll[i]) / span

    d = np.full(n, np.nan)
    start = period - 1
    if n - start >= signal_period:
        d[start:] = sma(k[start:].tolist(), signal_period)

    return StochasticSeries(np.clip(k, 0.0, 100.0).tolist(), np.clip(d, 0.0, 100.0).tolist())


def vwap(
    closes: Sequence[float],
    volumes: Sequence[float | None] | None = None,
) -> float:
    """
    Calculate a whole-series Volume Weighted Average Price.

    VWAP = sum(close * volume) / sum(volume). Missing volumes default to the
    close price, which makes this an approximation rather than a true
    volume weighting. A zero total volume uses a denominator of 1.
    """
    if len(closes) == 0:
        return 0.0

    close_arr = _as_array(closes)
    if volumes is None:
        vol_arr = close_arr.copy()
    else:
        vol_arr = np.array(
            [c if v is None else v for c, v in zip(closes, volumes)],
            dtype=np.float64,
        )

    denominator = float(np.sum(vol_arr)) or 1.0
    return float(np.sum(close_arr * vol_arr)) / denominator


class PivotLevels(NamedTuple):
    pp: float
    r1: float
    r2: float
    r3: float
    s1: float
    s2: float
    s3: float


def pivot_points(high: float, low: float, close: float) -> PivotLevels:
    """
    Calculate classic pivot points from one period's high/low/close.

    pp = (H + L + C) / 3
    r1 = 2pp - L      s1 = 2pp - H
    r2 = pp + (H - L) s2 = pp - (H - L)
    r3 = H + 2(pp - L) s3 = L - 2(H - pp)
    """
    pp = (high + low + close) / 3
    return PivotLevels(
        pp=pp,
        r1=2 * pp - low,
        r2=pp + (high - low),
        r3=high + 2 * (pp - low),
        s1=2 * pp - high,
        s2=pp - (high - low),
        s3=low - 2 * (high - pp),
    )


def last_valid(values: Sequence[float], default: float = 0.0) -> float:
    """Return the last value of a series, or ``default`` if it is NaN or missing."""
    if len(values) == 0:
        return default
    value = values[-1]
    if value is None or math.isnan(value):
        return default
    return float(value)

"""Technical indicators (pure math, no I/O)."""

from engine.indicators.indicators import (
    BollingerSeries,
    MacdSeries,
    PivotLevels,
    StochasticSeries,
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

__all__ = [
    "BollingerSeries",
    "MacdSeries",
    "PivotLevels",
    "StochasticSeries",
    "atr",
    "bollinger_bands",
    "ema",
    "highest",
    "last_valid",
    "lowest",
    "macd",
    "percent_b",
    "pivot_points",
    "rsi",
    "sma",
    "stochastic",
    "true_range",
    "vwap",
]

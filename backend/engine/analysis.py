"""Indicator engine: OHLCV series to indicator bundle and signal summary.

Pure and deterministic. Series shorter than ``MIN_CANDLES`` never raise;
they get the safe-default analysis so callers do not special-case
"not enough data".
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from pydantic import ValidationError as PydanticValidationError

from engine.errors import ValidationError
from engine.indicators import (
    atr,
    bollinger_bands,
    ema,
    last_valid,
    macd,
    percent_b,
    pivot_points,
    rsi,
    sma,
    stochastic,
    vwap,
)
from engine.models import (
    BollingerValue,
    Candle,
    Classification,
    ExponentialAverages,
    IndicatorBundle,
    MacdValue,
    MovingAverages,
    PivotPoints,
    SignalSummary,
    StochasticValue,
    TechnicalAnalysis,
)

logger = logging.getLogger(__name__)

MIN_CANDLES = 200

BASE_SCORE = 50
BULLISH_ABOVE = 60
BEARISH_BELOW = 40

INSUFFICIENT_DATA = "Insufficient Data"


def safe_default_analysis() -> TechnicalAnalysis:
    """The analysis returned for series that are too short."""
    return TechnicalAnalysis(
        indicators=IndicatorBundle(),
        summary=SignalSummary(
            classification=Classification.NEUTRAL,
            score=BASE_SCORE,
            reasons=(INSUFFICIENT_DATA,),
        ),
    )


def classify(score: int) -> Classification:
    """Map a 0-100 score to a classification."""
    if score > BULLISH_ABOVE:
        return Classification.BULLISH
    if score < BEARISH_BELOW:
        return Classification.BEARISH
    return Classification.NEUTRAL


def score_signal(bundle: IndicatorBundle, close: float) -> SignalSummary:
    """
    Score an indicator bundle with the fixed heuristic rule set.

    Starts at 50; each rule that fires adds its delta and appends its
    reason. Reasons always come out in rule order:

        RSI > 70                 -15  RSI Overbought
        RSI < 30                 +15  RSI Oversold
        MACD histogram > 0       +10  MACD Bullish Cross
        MACD histogram <= 0      -10  MACD Bearish Momentum
        close > SMA200           +10  Price above SMA200
        close <= SMA200          -10  Price below SMA200
        SMA20 > SMA50             +5  Golden Cross (Short-term)
        SMA20 <= SMA50            -5  Death Cross (Short-term)
        close > upper band       -10  Price above Upper BB
        close < lower band       +10  Price below Lower BB

    Args:
        bundle: Indicator values for the latest bar
        close: Latest close price

    Returns:
        SignalSummary with the score clamped to [0, 100]
    """
    score = BASE_SCORE
    reasons: list[str] = []

    if bundle.rsi > 70:
        score -= 15
        reasons.append("RSI Overbought")
    elif bundle.rsi < 30:
        score += 15
        reasons.append("RSI Oversold")

    if bundle.macd.histogram > 0:
        score += 10
        reasons.append("MACD Bullish Cross")
    else:
        score -= 10
        reasons.append("MACD Bearish Momentum")

    if close > bundle.sma.period200:
        score += 10
        reasons.append("Price above SMA200")
    else:
        score -= 10
        reasons.append("Price below SMA200")

    if bundle.sma.period20 > bundle.sma.period50:
        score += 5
        reasons.append("Golden Cross (Short-term)")
    else:
        score -= 5
        reasons.append("Death Cross (Short-term)")

    if close > bundle.bollinger.upper:
        score -= 10
        reasons.append("Price above Upper BB")
    if close < bundle.bollinger.lower:
        score += 10
        reasons.append("Price below Lower BB")

    score = max(0, min(100, score))
    return SignalSummary(classification=classify(score), score=score, reasons=tuple(reasons))


def _to_candle(item: Candle | Mapping[str, Any]) -> Candle:
    if isinstance(item, Candle):
        return item
    try:
        return Candle.model_validate(item)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid candle: {e}") from e


class TechnicalAnalyzer:
    """Calculator for the full indicator bundle with fixed windows."""

    def __init__(
        self,
        rsi_period: int = 14,
        atr_period: int = 14,
        bb_period: int = 20,
        bb_std: float = 2.0,
        stoch_period: int = 14,
        stoch_signal: int = 3,
        min_candles: int = MIN_CANDLES,
    ):
        self.rsi_period = rsi_period
        self.atr_period = atr_period
        self.bb_period = bb_period
        self.bb_std = bb_std
        self.stoch_period = stoch_period
        self.stoch_signal = stoch_signal
        self.min_candles = min_candles

    def compute_bundle(self, candles: Sequence[Candle]) -> IndicatorBundle:
        """Calculate the latest value of every indicator.

        Assumes ``len(candles) >= min_candles``.
        """
        closes = [c.close for c in candles]
        highs = [c.high for c in candles]
        lows = [c.low for c in candles]
        volumes = [c.volume for c in candles]
        close = closes[-1]

        macd_series = macd(closes, 12, 26, 9)
        bands = bollinger_bands(closes, self.bb_period, self.bb_std)
        upper = last_valid(bands.upper)
        lower = last_valid(bands.lower)
        stoch = stochastic(highs, lows, closes, self.stoch_period, self.stoch_signal)

        # Second-to-last candle stands in for "yesterday"
        ref = candles[-2] if len(candles) >= 2 else candles[-1]
        pivots = pivot_points(ref.high, ref.low, ref.close)

        return IndicatorBundle(
            rsi=last_valid(rsi(closes, self.rsi_period), default=50.0),
            sma=MovingAverages(
                period20=last_valid(sma(closes, 20)),
                period50=last_valid(sma(closes, 50)),
                period200=last_valid(sma(closes, 200)),
            ),
            ema=ExponentialAverages(
                period12=last_valid(ema(closes, 12)),
                period26=last_valid(ema(closes, 26)),
            ),
            macd=MacdValue(
                line=last_valid(macd_series.line),
                signal=last_valid(macd_series.signal),
                histogram=last_valid(macd_series.histogram),
            ),
            bollinger=BollingerValue(
                upper=upper,
                middle=last_valid(bands.middle),
                lower=lower,
                percent_b=percent_b(close, upper, lower),
            ),
            atr=last_valid(atr(highs, lows, closes, self.atr_period)),
            vwap=vwap(closes, volumes),
            stochastic=StochasticValue(
                k=last_valid(stoch.k, default=50.0),
                d=last_valid(stoch.d, default=50.0),
            ),
            pivot_points=PivotPoints(**pivots._asdict()),
        )

    def analyze(self, series: Sequence[Candle | Mapping[str, Any]]) -> TechnicalAnalysis:
        """
        Run the engine over a series.

        Args:
            series: Candles (or candle-shaped mappings), oldest first

        Returns:
            TechnicalAnalysis; the safe-default analysis for short series

        Raises:
            ValidationError: a candle mapping is malformed
        """
        if len(series) < self.min_candles:
            logger.debug(f"Series too short for analysis ({len(series)} < {self.min_candles})")
            return safe_default_analysis()

        candles = [_to_candle(item) for item in series]
        bundle = self.compute_bundle(candles)
        close = candles[-1].close
        return TechnicalAnalysis(
            indicators=bundle,
            summary=score_signal(bundle, close),
            close=close,
        )


_default_analyzer = TechnicalAnalyzer()


def analyze(series: Sequence[Candle | Mapping[str, Any]]) -> TechnicalAnalysis:
    """Run the engine with the standard windows."""
    return _default_analyzer.analyze(series)


# Alias used by callers that only need the one-shot entry point
compute = analyze

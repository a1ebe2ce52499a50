"""Indicator bundle and signal summary models.

All models here are frozen: a bundle never changes once computed.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class MovingAverages(_Frozen):
    """SMA values keyed by period."""

    period20: float = 0.0
    period50: float = 0.0
    period200: float = 0.0


class ExponentialAverages(_Frozen):
    """EMA values keyed by period."""

    period12: float = 0.0
    period26: float = 0.0


class MacdValue(_Frozen):
    line: float = 0.0
    signal: float = 0.0
    histogram: float = 0.0


class BollingerValue(_Frozen):
    upper: float = 0.0
    middle: float = 0.0
    lower: float = 0.0
    percent_b: float = 0.0


class StochasticValue(_Frozen):
    k: float = 50.0
    d: float = 50.0


class PivotPoints(_Frozen):
    """Classic floor-trader pivots."""

    pp: float = 0.0
    r1: float = 0.0
    r2: float = 0.0
    r3: float = 0.0
    s1: float = 0.0
    s2: float = 0.0
    s3: float = 0.0


class IndicatorBundle(_Frozen):
    """Latest value of every indicator for a series.

    The defaults are the safe-default bundle returned for series that are
    too short for a full computation.
    """

    rsi: float = 50.0
    sma: MovingAverages = Field(default_factory=MovingAverages)
    ema: ExponentialAverages = Field(default_factory=ExponentialAverages)
    macd: MacdValue = Field(default_factory=MacdValue)
    bollinger: BollingerValue = Field(default_factory=BollingerValue)
    atr: float = 0.0
    vwap: float = 0.0
    stochastic: StochasticValue = Field(default_factory=StochasticValue)
    pivot_points: PivotPoints = Field(default_factory=PivotPoints)


class Classification(str, Enum):
    """Overall technical bias."""

    BULLISH = "Bullish"
    BEARISH = "Bearish"
    NEUTRAL = "Neutral"


class SignalSummary(_Frozen):
    classification: Classification = Classification.NEUTRAL
    score: int = 50
    reasons: tuple[str, ...] = ()


class TechnicalAnalysis(_Frozen):
    """Result of running the indicator engine over a series."""

    indicators: IndicatorBundle = Field(default_factory=IndicatorBundle)
    summary: SignalSummary = Field(default_factory=SignalSummary)
    close: float | None = None

    @property
    def is_insufficient(self) -> bool:
        return self.summary.reasons == ("Insufficient Data",)

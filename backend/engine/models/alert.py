"""Alert rule models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

if TYPE_CHECKING:
    from engine.models.indicators import TechnicalAnalysis


class AlertKind(str, Enum):
    """Condition an alert rule watches for."""

    PRICE_ABOVE = "price_above"
    PRICE_BELOW = "price_below"
    RSI_ABOVE = "rsi_above"
    RSI_BELOW = "rsi_below"
    MACD_BULLISH = "macd_bullish"
    MACD_BEARISH = "macd_bearish"

    @property
    def requires_threshold(self) -> bool:
        return self not in (AlertKind.MACD_BULLISH, AlertKind.MACD_BEARISH)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AlertRuleCreate(_CamelModel):
    """Client-supplied part of a rule: no id, no timestamps.

    Threshold presence is checked by the rule store so that a missing
    threshold surfaces as engine ValidationError.
    """

    coin_id: str
    coin_symbol: str
    kind: AlertKind
    threshold: float | None = None
    enabled: bool = True

    @model_validator(mode="after")
    def _drop_macd_threshold(self):
        if not self.kind.requires_threshold:
            self.threshold = None
        return self


class AlertRule(_CamelModel):
    """A stored alert rule.

    Lifecycle: created enabled with triggered_at=None; evaluation moves it
    to enabled=False, triggered_at=<now> exactly once. Deletion removes it.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    client_id: str
    coin_id: str
    coin_symbol: str
    kind: AlertKind
    threshold: float | None = None
    enabled: bool = True
    created_at: datetime
    triggered_at: datetime | None = None

    @property
    def is_triggered(self) -> bool:
        return self.triggered_at is not None

    def mark_triggered(self, now: datetime) -> AlertRule:
        """Return the triggered copy of this rule (no-op if already triggered)."""
        if self.is_triggered:
            return self
        return self.model_copy(update={"enabled": False, "triggered_at": now})


class AlertSnapshot(_CamelModel):
    """Live (price, indicator) values an evaluation runs against."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    coin_id: str
    price: float
    rsi: float
    macd_histogram: float

    @classmethod
    def from_analysis(
        cls,
        coin_id: str,
        analysis: TechnicalAnalysis,
        price: float | None = None,
    ) -> AlertSnapshot:
        """Build a snapshot from an engine result.

        Price defaults to the last close of the analysed series.
        """
        if price is None:
            price = analysis.close if analysis.close is not None else 0.0
        return cls(
            coin_id=coin_id,
            price=price,
            rsi=analysis.indicators.rsi,
            macd_histogram=analysis.indicators.macd.histogram,
        )

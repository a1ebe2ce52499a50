"""Candle (OHLCV) data model."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class Candle(BaseModel):
    """One time-bucketed price observation.

    A series is an ordered list of candles, oldest first. Volume is
    optional; the engine substitutes the close price when it is missing.
    """

    model_config = ConfigDict(frozen=True)

    time: datetime | int | float
    open: float
    high: float
    low: float
    close: float
    volume: float | None = None

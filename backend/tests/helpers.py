"""Importable test helpers."""

import math
from datetime import datetime, timedelta, timezone

from engine.models import Candle


def make_series(closes, spread=1.0, volumes=None):
    """Build daily candles around a list of closes."""
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    candles = []
    for i, close in enumerate(closes):
        candles.append(
            Candle(
                time=start + timedelta(days=i),
                open=close,
                high=close + spread,
                low=close - spread,
                close=close,
                volume=volumes[i] if volumes is not None else None,
            )
        )
    return candles


def wave_closes(n=250, base=100.0, drift=0.1, amplitude=5.0):
    """Trending series with a sine-like oscillation (no flat windows)."""
    return [base + i * drift + amplitude * math.sin(i / 3.0) for i in range(n)]

"""Presentational market heuristics.

Derivatives, on-chain and news snapshots shown next to the technical
analysis. These are fixed arithmetic approximations over provider
figures (liquidation volume as a flat share of open interest, constant
whale/miner scores, keyword sentiment). They are not models of the
underlying markets and are kept exactly as documented here.
"""

from __future__ import annotations

import random
import re
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Literal, Sequence

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

LIQUIDATION_SHARE_OF_OI = 0.006

LIVE_WHALE_SCORE = 71
LIVE_MINER_SCORE = 43
MOCK_WHALE_SCORE = 62
MOCK_MINER_SCORE = 39

FLOW_POINTS = 14
NETFLOW_WINDOW = 7
NEWS_LIMIT = 30

_POSITIVE = re.compile(r"(surge|rally|approval|breakout|inflow|bull)")
_NEGATIVE = re.compile(r"(hack|lawsuit|ban|drop|liquidation|bear)")
_HIGH_IMPACT = re.compile(r"(hack|lawsuit|etf|sec|liquidation|ban|approval)", re.IGNORECASE)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Derivatives
# =============================================================================

class DerivativesSnapshot(_CamelModel):
    source: Literal["binance", "mock"]
    symbol: str
    open_interest_usd: float
    funding_rate: float
    long_short_ratio: float
    estimated_long_pct: int
    estimated_short_pct: int
    liquidation24h_usd: float


def futures_symbol(coin_symbol: str) -> str:
    """Binance USDT-margined perpetual symbol for a coin ticker."""
    return f"{coin_symbol.upper()}USDT"


def long_pct_from_ratio(long_short_ratio: float) -> int:
    """Share of long accounts implied by a long/short account ratio."""
    return round(long_short_ratio / (1 + long_short_ratio) * 100)


def _num(value: Any, default: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number or default


def derivatives_from_payloads(
    symbol: str,
    open_interest: dict,
    premium_index: dict,
    ratios: Sequence[dict],
) -> DerivativesSnapshot:
    """
    Build a derivatives snapshot from raw Binance futures responses.

    Args:
        symbol: Futures symbol (e.g. BTCUSDT)
        open_interest: /fapi/v1/openInterest payload
        premium_index: /fapi/v1/premiumIndex payload
        ratios: globalLongShortAccountRatio payload (latest first)
    """
    mark_price = _num(premium_index.get("markPrice"), 0.0)
    oi = _num(open_interest.get("openInterest"), 0.0)
    ratio = _num(ratios[0].get("longShortRatio") if ratios else None, 1.0)

    long_pct = long_pct_from_ratio(ratio)
    oi_usd = oi * mark_price

    return DerivativesSnapshot(
        source="binance",
        symbol=symbol,
        open_interest_usd=oi_usd,
        funding_rate=_num(premium_index.get("lastFundingRate"), 0.0),
        long_short_ratio=ratio,
        estimated_long_pct=long_pct,
        estimated_short_pct=100 - long_pct,
        liquidation24h_usd=oi_usd * LIQUIDATION_SHARE_OF_OI,
    )


def mock_derivatives(symbol: str) -> DerivativesSnapshot:
    """Fixed snapshot shown when the exchange is unreachable."""
    ratio = 1.08
    return DerivativesSnapshot(
        source="mock",
        symbol=symbol,
        open_interest_usd=4_200_000_000,
        funding_rate=0.0001,
        long_short_ratio=ratio,
        estimated_long_pct=long_pct_from_ratio(ratio),
        estimated_short_pct=48,
        liquidation24h_usd=45_000_000,
    )


# =============================================================================
# On-chain flows
# =============================================================================

class FlowPoint(_CamelModel):
    time: datetime
    inflow: float
    outflow: float


class OnChainSnapshot(_CamelModel):
    source: Literal["glassnode", "mock"]
    netflow7d_usd: float
    whale_activity_score: int
    miner_pressure_score: int
    flows: list[FlowPoint]


def _netflow(flows: Sequence[FlowPoint]) -> float:
    return sum(p.inflow - p.outflow for p in flows[-NETFLOW_WINDOW:])


def onchain_from_series(inflow: Sequence[dict], outflow: Sequence[dict]) -> OnChainSnapshot:
    """
    Build an on-chain snapshot from Glassnode ``[{t, v}]`` series.

    Uses the last 14 points; a missing outflow point falls back to 85%
    of the inflow. Flows are floored at zero.
    """
    in_points = list(inflow)[-FLOW_POINTS:]
    out_points = list(outflow)[-FLOW_POINTS:]

    flows = []
    for i, point in enumerate(in_points):
        value = float(point["v"])
        out_value = float(out_points[i]["v"]) if i < len(out_points) else max(value * 0.85, 0.0)
        flows.append(
            FlowPoint(
                time=datetime.fromtimestamp(point["t"], tz=timezone.utc),
                inflow=max(value, 0.0),
                outflow=max(out_value, 0.0),
            )
        )

    return OnChainSnapshot(
        source="glassnode",
        netflow7d_usd=_netflow(flows),
        whale_activity_score=LIVE_WHALE_SCORE,
        miner_pressure_score=LIVE_MINER_SCORE,
        flows=flows,
    )


def mock_onchain(now: datetime | None = None, rng: random.Random | None = None) -> OnChainSnapshot:
    """Random daily flows for the last two weeks (netflow scaled to USD)."""
    now = now or datetime.now(timezone.utc)
    rng = rng or random.Random()

    flows = []
    for idx in range(FLOW_POINTS):
        base = 150 + rng.random() * 120
        flows.append(
            FlowPoint(
                time=now - timedelta(days=FLOW_POINTS - 1 - idx),
                inflow=round(base + rng.random() * 40, 2),
                outflow=round(base + (rng.random() - 0.2) * 60, 2),
            )
        )

    return OnChainSnapshot(
        source="mock",
        netflow7d_usd=_netflow(flows) * 1_000_000,
        whale_activity_score=MOCK_WHALE_SCORE,
        miner_pressure_score=MOCK_MINER_SCORE,
        flows=flows,
    )


# =============================================================================
# News
# =============================================================================

Sentiment = Literal["positive", "negative", "neutral"]
Impact = Literal["high", "normal"]


class NewsItem(BaseModel):
    id: str
    title: str
    url: str
    source: str
    published_at: str
    sentiment: Sentiment
    impact: Impact


def classify_sentiment(title: str) -> Sentiment:
    lower = title.lower()
    if _POSITIVE.search(lower):
        return "positive"
    if _NEGATIVE.search(lower):
        return "negative"
    return "neutral"


def classify_impact(title: str) -> Impact:
    return "high" if _HIGH_IMPACT.search(title) else "normal"


def normalize_news(
    raw_items: Iterable[dict],
    sentiment: str = "all",
    impact: str = "all",
    now: datetime | None = None,
) -> list[NewsItem]:
    """
    Normalize CryptoPanic/CoinGecko news items and apply filters.

    At most 30 raw items are considered; filters are applied afterwards.
    """
    now = now or datetime.now(timezone.utc)
    items = []

    for raw in list(raw_items)[:NEWS_LIMIT]:
        attributes = raw.get("attributes") or {}
        title = raw.get("title") or attributes.get("title") or "Untitled"
        source = raw.get("source")
        source_title = source.get("title") if isinstance(source, dict) else None
        item = NewsItem(
            id=str(raw.get("id") or raw.get("url") or uuid.uuid4()),
            title=title,
            url=raw.get("url") or attributes.get("url") or "#",
            source=source_title or attributes.get("source") or "Market Feed",
            published_at=raw.get("published_at") or raw.get("created_at") or now.isoformat(),
            sentiment=classify_sentiment(title),
            impact=classify_impact(title),
        )
        if sentiment != "all" and item.sentiment != sentiment:
            continue
        if impact != "all" and item.impact != impact:
            continue
        items.append(item)

    return items


def fallback_news(now: datetime | None = None) -> list[NewsItem]:
    now = now or datetime.now(timezone.utc)
    return [
        NewsItem(
            id="fallback-1",
            title="Market consolidates as traders await macro catalysts",
            url="#",
            source="Fallback Feed",
            published_at=now.isoformat(),
            sentiment="neutral",
            impact="normal",
        )
    ]

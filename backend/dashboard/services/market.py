"""Derivatives, on-chain and news snapshots from external providers.

Provider failures never propagate: each snapshot degrades to its fixed
mock/fallback and the failure is logged.
"""

from __future__ import annotations

import asyncio
import logging
import random

import httpx

from engine.market import (
    DerivativesSnapshot,
    NewsItem,
    OnChainSnapshot,
    derivatives_from_payloads,
    fallback_news,
    futures_symbol,
    mock_derivatives,
    mock_onchain,
    normalize_news,
    onchain_from_series,
)

from dashboard.clients import JsonFetcher
from dashboard.config import Settings

logger = logging.getLogger(__name__)

BINANCE_FUTURES_URL = "https://fapi.binance.com"
GLASSNODE_URL = "https://api.glassnode.com/v1/metrics"
CRYPTOPANIC_URL = "https://cryptopanic.com/api/developer/v2/posts/"
COINGECKO_NEWS_URL = "https://api.coingecko.com/api/v3/news"

# Provider errors that degrade to mock data
_PROVIDER_ERRORS = (httpx.HTTPError, ValueError, KeyError, TypeError, IndexError)


class MarketDataService:
    """Presentational market snapshots."""

    def __init__(
        self,
        fetcher: JsonFetcher,
        settings: Settings,
        rng: random.Random | None = None,
    ):
        self._fetcher = fetcher
        self._settings = settings
        self._rng = rng or random.Random()

    async def derivatives(self, coin_symbol: str) -> DerivativesSnapshot:
        """Open interest, funding and long/short split for a coin's perpetual."""
        symbol = futures_symbol(coin_symbol)
        try:
            open_interest, premium_index, ratios = await asyncio.gather(
                self._fetcher.fetch_json(
                    f"{BINANCE_FUTURES_URL}/fapi/v1/openInterest", {"symbol": symbol}
                ),
                self._fetcher.fetch_json(
                    f"{BINANCE_FUTURES_URL}/fapi/v1/premiumIndex", {"symbol": symbol}
                ),
                self._fetcher.fetch_json(
                    f"{BINANCE_FUTURES_URL}/futures/data/globalLongShortAccountRatio",
                    {"symbol": symbol, "period": "5m", "limit": 1},
                ),
            )
            return derivatives_from_payloads(symbol, open_interest, premium_index, ratios)
        except _PROVIDER_ERRORS as e:
            logger.warning(f"Derivatives provider failed for {symbol}, using mock: {e}")
            return mock_derivatives(symbol)

    async def onchain(self, coin_id: str) -> OnChainSnapshot:
        """Exchange flows. Live data only for bitcoin with a Glassnode key."""
        api_key = self._settings.glassnode_api_key
        if api_key and coin_id == "bitcoin":
            try:
                inflow, outflow = await asyncio.gather(
                    self._fetcher.fetch_json(
                        f"{GLASSNODE_URL}/distribution/exchange_net_position_change",
                        {"a": "BTC", "i": "24h", "api_key": api_key},
                    ),
                    self._fetcher.fetch_json(
                        f"{GLASSNODE_URL}/transactions/transfers_volume_to_exchanges_sum",
                        {"a": "BTC", "i": "24h", "api_key": api_key},
                    ),
                )
                return onchain_from_series(inflow, outflow)
            except _PROVIDER_ERRORS as e:
                logger.warning(f"On-chain provider failed, using mock: {e}")

        return mock_onchain(rng=self._rng)

    async def news(self, sentiment: str = "all", impact: str = "all") -> tuple[str, list[NewsItem]]:
        """
        Latest market news with keyword sentiment/impact tags.

        Returns:
            (source name, items)
        """
        api_key = self._settings.cryptopanic_api_key
        source = "cryptopanic" if api_key else "coingecko"
        try:
            if api_key:
                raw = await self._fetcher.fetch_json(
                    CRYPTOPANIC_URL,
                    {"auth_token": api_key, "kind": "news", "public": "true"},
                )
            else:
                raw = await self._fetcher.fetch_json(COINGECKO_NEWS_URL)
            raw_items = raw.get("results") or raw.get("data") or []
            return source, normalize_news(raw_items, sentiment, impact)
        except (*_PROVIDER_ERRORS, AttributeError) as e:
            logger.warning(f"News provider failed, using fallback: {e}")
            return "fallback", fallback_news()

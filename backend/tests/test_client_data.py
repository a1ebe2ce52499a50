"""Tests for per-client settings, watchlist and journal."""

import asyncio

import pytest

from dashboard.services import ClientDataService
from engine.errors import ValidationError
from engine.models import AppSettings, Mood, TradeSide, TradeStatus


def _trade(pair="BTC/USDT", **overrides):
    payload = {
        "pair": pair,
        "type": "Long",
        "entryPrice": 60000,
        "exitPrice": 61500,
        "size": 0.5,
        "pnl": 750,
        "status": "Closed",
    }
    payload.update(overrides)
    return payload


class TestSettings:
    @pytest.mark.asyncio
    async def test_defaults(self, state_store):
        settings = await ClientDataService(state_store).get_settings("c1")
        assert settings == AppSettings(
            refresh_interval="30", currency="usd", notifications=True, indicators=True
        )

    @pytest.mark.asyncio
    async def test_put_replaces(self, state_store):
        service = ClientDataService(state_store)

        await service.put_settings("c1", AppSettings(refresh_interval="10", currency="idr"))
        await service.put_settings("c1", {"currency": "eur"})

        # No merge: refresh interval goes back to its default
        settings = await service.get_settings("c1")
        assert settings.currency == "eur"
        assert settings.refresh_interval == "30"

    @pytest.mark.asyncio
    async def test_invalid_currency(self, state_store):
        with pytest.raises(ValidationError):
            await ClientDataService(state_store).put_settings("c1", {"currency": "gbp"})


class TestWatchlist:
    @pytest.mark.asyncio
    async def test_put_returns_deduplicated_list(self, state_store):
        service = ClientDataService(state_store)

        stored = await service.put_watchlist("c1", ["bitcoin", "solana", "bitcoin"])

        assert stored == ["bitcoin", "solana"]
        assert await service.get_watchlist("c1") == ["bitcoin", "solana"]

    @pytest.mark.asyncio
    async def test_empty_watchlist(self, state_store):
        service = ClientDataService(state_store)
        await service.put_watchlist("c1", ["bitcoin"])

        assert await service.put_watchlist("c1", []) == []


class TestJournal:
    """Tests for the trade journal."""

    @pytest.mark.asyncio
    async def test_add_trade_defaults(self, state_store):
        service = ClientDataService(state_store)

        trade = await service.add_trade("c1", _trade())

        assert trade.id
        assert trade.date is not None
        assert trade.type == TradeSide.LONG
        assert trade.status == TradeStatus.CLOSED
        assert trade.setup_tag == "Breakout"
        assert trade.mistake_tag == "None"
        assert trade.mood == Mood.NEUTRAL
        assert trade.notes == ""

    @pytest.mark.asyncio
    async def test_list_newest_first(self, state_store):
        service = ClientDataService(state_store)
        first = await service.add_trade("c1", _trade("BTC/USDT"))
        second = await service.add_trade("c1", _trade("ETH/USDT", mood="FOMO"))

        journal = await service.list_journal("c1")

        assert [t.id for t in journal] == [second.id, first.id]
        assert journal[0].mood == Mood.FOMO

    @pytest.mark.asyncio
    async def test_invalid_trade_writes_nothing(self, state_store):
        service = ClientDataService(state_store)

        with pytest.raises(ValidationError):
            await service.add_trade("c1", _trade(pair=""))
        with pytest.raises(ValidationError):
            await service.add_trade("c1", _trade(type="Sideways"))

        assert await service.list_journal("c1") == []

    @pytest.mark.asyncio
    async def test_delete_trade(self, state_store):
        service = ClientDataService(state_store)
        keep = await service.add_trade("c1", _trade())
        drop = await service.add_trade("c1", _trade())

        await service.delete_trade("c1", drop.id)
        await service.delete_trade("c1", "missing")

        assert [t.id for t in await service.list_journal("c1")] == [keep.id]

    @pytest.mark.asyncio
    async def test_concurrent_adds(self, state_store):
        service = ClientDataService(state_store)

        trades = await asyncio.gather(*(service.add_trade("c1", _trade()) for _ in range(10)))

        stored = {t.id for t in await service.list_journal("c1")}
        assert stored == {t.id for t in trades}

"""Per-client settings, watchlist and trade journal."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Mapping

from pydantic import ValidationError as PydanticValidationError

from engine.errors import ValidationError
from engine.models import AppSettings, JournalTrade, JournalTradeCreate

from dashboard.storage import ClientStateStore

logger = logging.getLogger(__name__)


class ClientDataService:
    """Whole-field reads and writes of a client's dashboard data."""

    def __init__(self, store: ClientStateStore):
        self._store = store

    async def get_settings(self, client_id: str) -> AppSettings:
        state = await self._store.get(client_id)
        return state.settings

    async def put_settings(
        self,
        client_id: str,
        settings: AppSettings | Mapping[str, Any],
    ) -> AppSettings:
        """Replace the settings object (no merge with the stored one)."""
        return await self._store.update(client_id, "settings", settings)

    async def get_watchlist(self, client_id: str) -> list[str]:
        state = await self._store.get(client_id)
        return state.watchlist

    async def put_watchlist(self, client_id: str, coin_ids: list[str]) -> list[str]:
        """Replace the watchlist. Returns the de-duplicated list actually stored."""
        return await self._store.update(client_id, "watchlist", coin_ids)

    async def list_journal(self, client_id: str) -> list[JournalTrade]:
        """Journal trades, newest first."""
        state = await self._store.get(client_id)
        return state.journal

    async def add_trade(
        self,
        client_id: str,
        payload: JournalTradeCreate | Mapping[str, Any],
    ) -> JournalTrade:
        """Record a trade with a fresh id and the current time."""
        try:
            if not isinstance(payload, JournalTradeCreate):
                payload = JournalTradeCreate.model_validate(payload)
            trade = JournalTrade(
                **payload.model_dump(),
                id=str(uuid.uuid4()),
                date=datetime.now(timezone.utc),
            )
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid trade: {e}") from e

        await self._store.modify(client_id, "journal", lambda trades: [trade, *trades])
        logger.info(f"Journal trade added: client={client_id} id={trade.id} {trade.pair}")
        return trade

    async def delete_trade(self, client_id: str, trade_id: str) -> None:
        """Remove a trade. Unknown ids are a no-op."""
        await self._store.modify(
            client_id,
            "journal",
            lambda trades: [t for t in trades if t.id != trade_id],
        )

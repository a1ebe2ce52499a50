"""Process-scoped owner of the stores and services.

Constructed once at startup and passed to whatever serves requests;
there is no module-level state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from dashboard.clients import JsonFetcher
from dashboard.config import Settings, get_settings
from dashboard.services import (
    AlertEvaluator,
    AlertRuleStore,
    AuthService,
    ClientDataService,
    MarketDataService,
)
from dashboard.storage import ClientStateStore, UserStore, create_stores

logger = logging.getLogger(__name__)


@dataclass
class SignalEngineRuntime:
    settings: Settings
    state_store: ClientStateStore
    user_store: UserStore
    fetcher: JsonFetcher
    alert_rules: AlertRuleStore
    alert_evaluator: AlertEvaluator
    client_data: ClientDataService
    auth: AuthService
    market: MarketDataService

    @classmethod
    async def start(cls, settings: Settings | None = None) -> SignalEngineRuntime:
        """
        Select the backend and wire the services.

        Raises:
            NotConfigured: database backend selected but unavailable
        """
        settings = settings or get_settings()
        state_store, user_store = await create_stores(settings)
        fetcher = JsonFetcher(timeout=settings.http_timeout)

        return cls(
            settings=settings,
            state_store=state_store,
            user_store=user_store,
            fetcher=fetcher,
            alert_rules=AlertRuleStore(state_store),
            alert_evaluator=AlertEvaluator(state_store),
            client_data=ClientDataService(state_store),
            auth=AuthService(state_store, user_store),
            market=MarketDataService(fetcher, settings),
        )

    def client_id(self, raw: str | None) -> str:
        return self.settings.resolve_client_id(raw)

    async def close(self) -> None:
        await self.fetcher.close()
        await self.state_store.close()
        logger.info("Runtime closed")

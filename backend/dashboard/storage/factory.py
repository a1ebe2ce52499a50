"""Backend selection. The only place that branches on the configured backend."""

from __future__ import annotations

import logging

from dashboard.config import Settings
from dashboard.storage.base import ClientStateStore, UserStore
from dashboard.storage.database import Database
from dashboard.storage.memory import InMemoryStateStore, InMemoryUserStore
from dashboard.storage.sql_store import DatabaseStateStore, DatabaseUserStore

logger = logging.getLogger(__name__)


async def create_stores(settings: Settings) -> tuple[ClientStateStore, UserStore]:
    """
    Build the client state and user stores for the configured backend.

    A database backend is connected and its tables created before returning.

    Raises:
        NotConfigured: database backend selected but missing or unreachable.
            There is no fallback to the in-memory backend.
    """
    backend = settings.resolved_backend

    if backend == "memory":
        logger.info("Client state backend: memory (not persisted across restarts)")
        return InMemoryStateStore(), InMemoryUserStore()

    db = Database(settings.database_url, debug=settings.debug)
    try:
        await db.create_tables()
    except Exception:
        await db.close()
        raise

    logger.info(f"Client state backend: database ({db.dialect})")
    return DatabaseStateStore(db), DatabaseUserStore(db)

"""Durable client state backend on a relational table.

Writes are scoped by client key: a field replace is a single UPDATE, and
a read-modify-write holds the row lock (SELECT ... FOR UPDATE) for the
whole transaction. An in-process per-client lock additionally serializes
callers sharing this store object, which also covers SQLite where row
locks are not available.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable

from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from engine.errors import NotConfigured, NotFound
from engine.models import STATE_FIELDS, ClientState, UserAccount

from dashboard.storage.base import (
    ClientLocks,
    ClientStateStore,
    UserStore,
    check_field,
    default_state,
    dump_field,
    validate_field,
)
from dashboard.storage.database import ClientStateTable, Database, UserTable

logger = logging.getLogger(__name__)

_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _default_row(client_id: str) -> dict:
    state = default_state()
    row = {field: dump_field(field, getattr(state, field)) for field in STATE_FIELDS}
    row["client_id"] = client_id
    return row


class DatabaseStateStore(ClientStateStore):
    """Client state persisted one row per client."""

    backend_name = "database"

    def __init__(self, db: Database):
        insert = _INSERTS.get(db.dialect)
        if insert is None:
            raise NotConfigured(f"Unsupported database dialect: {db.dialect}")
        self._db = db
        self._insert = insert
        self._locks = ClientLocks()

    async def _ensure_row(self, session: AsyncSession, client_id: str) -> None:
        """Get-or-insert the client's row (no-op when it already exists)."""
        stmt = (
            self._insert(ClientStateTable)
            .values(**_default_row(client_id))
            .on_conflict_do_nothing(index_elements=["client_id"])
        )
        result = await session.execute(stmt)
        if result.rowcount:
            logger.debug(f"Created client state for {client_id}")

    async def _load_row(
        self,
        session: AsyncSession,
        client_id: str,
        for_update: bool = False,
    ) -> ClientStateTable:
        stmt = select(ClientStateTable).where(ClientStateTable.client_id == client_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await session.execute(stmt)
        row = result.scalar_one_or_none()
        if row is None:
            # Only reachable if the row vanished after _ensure_row
            raise NotFound(client_id)
        return row

    async def _write_field(
        self,
        session: AsyncSession,
        client_id: str,
        field: str,
        value: Any,
    ) -> None:
        stmt = (
            update(ClientStateTable)
            .where(ClientStateTable.client_id == client_id)
            .values(
                {
                    field: dump_field(field, value),
                    "updated_at": datetime.now(timezone.utc),
                }
            )
        )
        await session.execute(stmt)

    async def get(self, client_id: str) -> ClientState:
        async with self._locks.for_client(client_id):
            async with self._db.session() as session:
                await self._ensure_row(session, client_id)
                row = await self._load_row(session, client_id)
                return self._row_to_state(row)

    async def update(self, client_id: str, field: str, value: Any) -> Any:
        validated = validate_field(field, value)
        async with self._locks.for_client(client_id):
            async with self._db.session() as session:
                await self._ensure_row(session, client_id)
                await self._write_field(session, client_id, field, validated)
        return validated

    async def modify(
        self,
        client_id: str,
        field: str,
        mutator: Callable[[Any], Any],
    ) -> Any:
        check_field(field)
        async with self._locks.for_client(client_id):
            async with self._db.session() as session:
                await self._ensure_row(session, client_id)
                row = await self._load_row(session, client_id, for_update=True)
                current = getattr(self._row_to_state(row), field)
                validated = validate_field(field, mutator(current))
                await self._write_field(session, client_id, field, validated)
        return validated

    async def close(self) -> None:
        await self._db.close()

    def _row_to_state(self, row: ClientStateTable) -> ClientState:
        """Convert database row to ClientState; NULL columns read as defaults."""
        data = {
            field: getattr(row, field)
            for field in STATE_FIELDS
            if getattr(row, field) is not None
        }
        return ClientState.model_validate(data)


class DatabaseUserStore(UserStore):
    """Accounts in the ``users`` table."""

    def __init__(self, db: Database):
        self._db = db

    async def create(self, username: str, password_hash: str) -> UserAccount | None:
        user = UserAccount(id=str(uuid.uuid4()), username=username, password_hash=password_hash)
        try:
            async with self._db.session() as session:
                session.add(
                    UserTable(id=user.id, username=user.username, password_hash=user.password_hash)
                )
        except IntegrityError:
            return None
        return user

    async def get_by_username(self, username: str) -> UserAccount | None:
        async with self._db.session() as session:
            stmt = select(UserTable).where(UserTable.username == username)
            result = await session.execute(stmt)
            row = result.scalar_one_or_none()

            if row is None:
                return None
            return UserAccount(id=row.id, username=row.username, password_hash=row.password_hash)

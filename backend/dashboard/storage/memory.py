"""Transient in-process client state backend.

State lives only as long as the owning store object; nothing survives a
process restart. The store is constructed once at startup and passed to
the services that need it.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Callable

from engine.models import ClientState, UserAccount

from dashboard.storage.base import (
    ClientLocks,
    ClientStateStore,
    UserStore,
    check_field,
    default_state,
    private_copy,
    validate_field,
)

logger = logging.getLogger(__name__)


class InMemoryStateStore(ClientStateStore):
    """Client state kept in a dict, one lock per client."""

    backend_name = "memory"

    def __init__(self):
        self._states: dict[str, ClientState] = {}
        self._locks = ClientLocks()

    def _get_or_create(self, client_id: str) -> ClientState:
        state = self._states.get(client_id)
        if state is None:
            state = default_state()
            self._states[client_id] = state
            logger.debug(f"Created client state for {client_id}")
        return state

    async def get(self, client_id: str) -> ClientState:
        async with self._locks.for_client(client_id):
            return private_copy(self._get_or_create(client_id))

    async def update(self, client_id: str, field: str, value: Any) -> Any:
        validated = validate_field(field, value)
        async with self._locks.for_client(client_id):
            state = self._get_or_create(client_id)
            self._states[client_id] = state.model_copy(update={field: validated})
        return private_copy(validated)

    async def modify(
        self,
        client_id: str,
        field: str,
        mutator: Callable[[Any], Any],
    ) -> Any:
        check_field(field)
        async with self._locks.for_client(client_id):
            state = self._get_or_create(client_id)
            current = private_copy(getattr(state, field))
            validated = validate_field(field, mutator(current))
            self._states[client_id] = state.model_copy(update={field: validated})
        return private_copy(validated)

    @property
    def client_count(self) -> int:
        return len(self._states)


class InMemoryUserStore(UserStore):
    """Accounts kept in a dict keyed by username."""

    def __init__(self):
        self._users: dict[str, UserAccount] = {}

    async def create(self, username: str, password_hash: str) -> UserAccount | None:
        if username in self._users:
            return None
        user = UserAccount(id=str(uuid.uuid4()), username=username, password_hash=password_hash)
        self._users[username] = user
        return user

    async def get_by_username(self, username: str) -> UserAccount | None:
        return self._users.get(username)

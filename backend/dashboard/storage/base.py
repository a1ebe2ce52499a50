"""Client state store contract shared by the in-memory and database backends.

Both backends expose the same behaviour:
- ``get`` lazily creates a default record on first read.
- ``update`` replaces one whole field; there is no partial merge.
- ``modify`` is a serialized read-modify-write of one field for one client.
  Concurrent calls for the same client never lose each other's writes.
"""

from __future__ import annotations

import asyncio
import copy
from abc import ABC, abstractmethod
from typing import Any, Callable

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from engine.errors import ValidationError
from engine.models import STATE_FIELDS, AlertRule, AppSettings, ClientState, JournalTrade, UserAccount

_FIELD_ADAPTERS: dict[str, TypeAdapter] = {
    "settings": TypeAdapter(AppSettings),
    "watchlist": TypeAdapter(list[str]),
    "journal": TypeAdapter(list[JournalTrade]),
    "alerts": TypeAdapter(list[AlertRule]),
    "auth_username": TypeAdapter(str | None),
}


def check_field(field: str) -> None:
    if field not in STATE_FIELDS:
        raise ValidationError(f"Unknown client state field: {field}")


def validate_field(field: str, value: Any) -> Any:
    """
    Coerce a whole-field value to its canonical type.

    Raises:
        ValidationError: unknown field or malformed value
    """
    check_field(field)
    try:
        validated = _FIELD_ADAPTERS[field].validate_python(value)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid value for '{field}': {e}") from e

    if field == "watchlist":
        # First occurrence wins
        validated = list(dict.fromkeys(validated))
    return validated


def dump_field(field: str, value: Any) -> Any:
    """Serialize a validated field value to JSON-compatible data (camelCase keys)."""
    return _FIELD_ADAPTERS[field].dump_python(value, mode="json", by_alias=True)


def default_state() -> ClientState:
    """Record created on first access: default settings, everything else empty."""
    return ClientState()


class ClientLocks:
    """One asyncio.Lock per client id, created on first use."""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}

    def for_client(self, client_id: str) -> asyncio.Lock:
        lock = self._locks.get(client_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[client_id] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)


class ClientStateStore(ABC):
    """Per-client record store. Keyed by an opaque client identifier."""

    backend_name: str = ""

    @abstractmethod
    async def get(self, client_id: str) -> ClientState:
        """Return the client's record, creating and persisting a default one if absent."""

    @abstractmethod
    async def update(self, client_id: str, field: str, value: Any) -> Any:
        """Replace one whole field. Returns the stored (validated) value."""

    @abstractmethod
    async def modify(
        self,
        client_id: str,
        field: str,
        mutator: Callable[[Any], Any],
    ) -> Any:
        """
        Serialized read-modify-write of one field.

        ``mutator`` receives a private copy of the current value and returns
        the replacement. Nothing is written if it raises.

        Returns:
            The stored (validated) replacement value
        """

    async def close(self) -> None:
        """Release backend resources."""


class UserStore(ABC):
    """Registered accounts, shared across clients."""

    @abstractmethod
    async def create(self, username: str, password_hash: str) -> UserAccount | None:
        """Create an account. Returns None if the username is taken."""

    @abstractmethod
    async def get_by_username(self, username: str) -> UserAccount | None:
        """Look up an account by username."""


def private_copy(value: Any) -> Any:
    """Deep copy handed to callers so they never alias canonical state."""
    return copy.deepcopy(value)

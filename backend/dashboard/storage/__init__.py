"""Client state storage layer."""

from dashboard.storage.base import (
    ClientLocks,
    ClientStateStore,
    UserStore,
    dump_field,
    validate_field,
)
from dashboard.storage.database import Database
from dashboard.storage.factory import create_stores
from dashboard.storage.memory import InMemoryStateStore, InMemoryUserStore
from dashboard.storage.sql_store import DatabaseStateStore, DatabaseUserStore

__all__ = [
    "ClientLocks",
    "ClientStateStore",
    "UserStore",
    "dump_field",
    "validate_field",
    "Database",
    "create_stores",
    "InMemoryStateStore",
    "InMemoryUserStore",
    "DatabaseStateStore",
    "DatabaseUserStore",
]

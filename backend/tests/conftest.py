"""Shared fixtures: both client state backends behind one parametrized fixture."""

import pytest
import pytest_asyncio

from dashboard.storage import (
    Database,
    DatabaseStateStore,
    DatabaseUserStore,
    InMemoryStateStore,
    InMemoryUserStore,
)


@pytest.fixture
def sqlite_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'state.db'}"


@pytest_asyncio.fixture
async def database(sqlite_url):
    db = Database(sqlite_url)
    await db.create_tables()
    yield db
    await db.close()


@pytest_asyncio.fixture(params=["memory", "database"])
async def state_store(request, sqlite_url):
    """Client state store, once per backend."""
    if request.param == "memory":
        yield InMemoryStateStore()
        return

    db = Database(sqlite_url)
    await db.create_tables()
    store = DatabaseStateStore(db)
    yield store
    await store.close()


@pytest_asyncio.fixture(params=["memory", "database"])
async def stores(request, sqlite_url):
    """(state store, user store) pair, once per backend."""
    if request.param == "memory":
        yield InMemoryStateStore(), InMemoryUserStore()
        return

    db = Database(sqlite_url)
    await db.create_tables()
    state = DatabaseStateStore(db)
    yield state, DatabaseUserStore(db)
    await state.close()

"""Database connection and table definitions."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import orjson
from sqlalchemy import JSON, Column, DateTime, Index, String, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.engine import Dialect
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from engine.errors import NotConfigured, TransientIOError

logger = logging.getLogger(__name__)

Base = declarative_base()

# jsonb on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JsonColumn = JSON().with_variant(JSONB(), "postgresql")


class ClientStateTable(Base):
    """One row per client id; each field holds serialized structured data."""

    __tablename__ = "app_state"

    client_id = Column(String(255), primary_key=True)
    settings = Column(JsonColumn, nullable=True)
    watchlist = Column(JsonColumn, nullable=True)
    journal = Column(JsonColumn, nullable=True)
    alerts = Column(JsonColumn, nullable=True)
    auth_username = Column(String(255), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"))


class UserTable(Base):
    """Registered dashboard accounts."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True)
    username = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)

    __table_args__ = (
        Index("idx_users_username", "username", unique=True),
    )


def _json_serializer(obj) -> str:
    return orjson.dumps(obj).decode()


def normalize_url(url: str) -> str:
    """Pick the async driver for a plain database URL."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


def is_transient(exc: BaseException, dialect: Dialect | None = None) -> bool:
    """Connection-level failures that are worth retrying.

    Other OperationalErrors (missing table, bad SQL) are
    permanent and are not retried.
    """
    if isinstance(exc, (ConnectionError, TimeoutError, InterfaceError)):
        return True
    if not isinstance(exc, DBAPIError):
        return False
    if exc.connection_invalidated:
        return True
    if isinstance(exc, OperationalError) and dialect is not None:
        return dialect.is_disconnect(exc.orig, None, None)
    return False


class Database:
    """Database connection manager."""

    def __init__(self, database_url: str, debug: bool = False):
        if not database_url:
            raise NotConfigured("Database backend selected but DATABASE_URL is empty")

        url = normalize_url(database_url)
        engine_kwargs: dict = {
            "echo": debug,
            "pool_pre_ping": True,
            "json_serializer": _json_serializer,
            "json_deserializer": orjson.loads,
        }

        if url.startswith("postgresql+asyncpg://"):
            engine_kwargs.update(
                pool_size=10,
                max_overflow=20,
                pool_recycle=3600,  # Recycle every hour
                pool_timeout=30,
                connect_args={
                    "timeout": 10,
                    "command_timeout": 30,
                },
            )

        self.url = url
        self.engine = create_async_engine(url, **engine_kwargs)
        self.dialect = self.engine.dialect.name
        self.session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    async def create_tables(self) -> None:
        """Create all tables.

        Raises:
            NotConfigured: the database cannot be reached
        """
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except (DBAPIError, OSError) as e:
            raise NotConfigured(f"Database unreachable: {e}") from e
        logger.info(f"Database ready ({self.dialect})")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get a database session.

        Commits on success, rolls back on error. Connection-level failures
        surface as TransientIOError.
        """
        try:
            async with self.session_factory() as session:
                try:
                    yield session
                    await session.commit()
                except Exception:
                    await session.rollback()
                    raise
        except Exception as e:
            if is_transient(e, self.engine.dialect):
                logger.warning(f"Transient database error: {e}")
                raise TransientIOError(str(e)) from e
            raise

    async def close(self) -> None:
        """Close database connection."""
        await self.engine.dispose()

"""Database session and engine management."""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import Settings


def create_engine(settings: Settings) -> AsyncEngine:
    engine = create_async_engine(settings.sqlalchemy_url, future=True, echo=False, pool_pre_ping=True)
    if make_url(settings.sqlalchemy_url).get_backend_name() == "sqlite":
        _take_write_lock_on_begin(engine)
    return engine


def _take_write_lock_on_begin(engine: AsyncEngine) -> None:
    """Make every SQLite transaction start with ``BEGIN IMMEDIATE``.

    SQLite ignores ``FOR UPDATE`` and the driver defers ``BEGIN`` until the
    first write, so a read followed by a write is not isolated from another
    connection doing the same. Taking the database write lock up front
    serialises transactions the way row locks do on PostgreSQL.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, _connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@asynccontextmanager
async def get_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    """Provide a transactional scope around a series of operations.

    Anything not committed by the caller is rolled back when the scope closes,
    including when the request is abandoned mid-flight.
    """

    async with session_factory() as session:
        try:
            yield session
        except BaseException:
            await session.rollback()
            raise
        finally:
            await session.close()

"""Database engine and session management for the FastAPI backend."""
from __future__ import annotations

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from . import models


def create_engine(database_url: str) -> AsyncEngine:
    """Build the pooled async engine for ``database_url``."""

    is_sqlite = database_url.startswith("sqlite+")
    connect_args = {"check_same_thread": False} if is_sqlite else {}
    engine = create_async_engine(database_url, future=True, echo=False, connect_args=connect_args)

    if is_sqlite:
        # Cascading deletes only fire in SQLite with foreign keys switched on.
        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


async def create_schema(engine: AsyncEngine) -> None:
    """Create every table known to the models' metadata."""

    async with engine.begin() as conn:
        await conn.run_sync(models.Base.metadata.create_all)


async def drop_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(models.Base.metadata.drop_all)

#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Database engine and session factory.

The store is the only shared mutable state of the service: nothing about
accounts or verification tokens is cached in-process between requests.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase


# -----------------------------------------------------------------------------

from .config import get_settings


# -----------------------------------------------------------------------------

class Base(DeclarativeBase):
    """Shared declarative base for all ORM models."""
    pass


# -----------------------------------------------------------------------------

def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# -----------------------------------------------------------------------------

def make_engine(url: str | None = None, echo: bool | None = None) -> AsyncEngine:
    settings = get_settings()
    db_url  = url  or settings.database_url
    db_echo = echo if echo is not None else settings.db_echo

    kwargs: dict = {}
    is_sqlite = db_url.startswith("sqlite")
    if is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        kwargs["pool_size"]     = settings.db_pool_size
        kwargs["max_overflow"]  = settings.db_max_overflow
        kwargs["pool_pre_ping"] = True

    engine = create_async_engine(db_url, echo=db_echo, **kwargs)
    if is_sqlite:
        # ON DELETE CASCADE is inert in SQLite without this pragma
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


# -----------------------------------------------------------------------------

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


# -----------------------------------------------------------------------------

def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


# -----------------------------------------------------------------------------

def init_db(url: str | None = None, echo: bool | None = None) -> None:
    """Initialise the engine and session factory.  Call once at startup."""
    global _engine, _session_factory
    _engine = make_engine(url, echo)
    _session_factory = make_session_factory(_engine)


# -----------------------------------------------------------------------------

async def dispose_db() -> None:
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


# -----------------------------------------------------------------------------

def get_engine() -> AsyncEngine:
    if _engine is None:
        init_db()
    return _engine


# -----------------------------------------------------------------------------

def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if _session_factory is None:
        init_db()
    return _session_factory


# -----------------------------------------------------------------------------

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request, committed on success."""
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# -----------------------------------------------------------------------------

@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Transactional session for scripts running outside a request."""
    factory = get_session_factory()
    async with factory() as session:
        async with session.begin():
            yield session


# -----------------------------------------------------------------------------

async def create_all_tables() -> None:
    """Create all tables (dev / test only; use Alembic in production)."""
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# -----------------------------------------------------------------------------

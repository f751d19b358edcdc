#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Alembic environment for Postgate.

* Reads the database URL from the app Settings (env var DATABASE_URL or
  .env file) so no credentials ever live in alembic.ini.
* Uses the async engine (asyncpg in production, aiosqlite locally).
* SQLite gets batch mode so ALTERs work via table copy.
* Imports all ORM models so autogenerate can diff the full schema.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from alembic import context

# ── App imports ──────────────────────────────────────────────────────────────
# Import Base *and* every model module so SQLAlchemy's metadata is populated
# before autogenerate inspects it.
from postgate.core.config import get_settings
from postgate.core.database import Base
import postgate.models.models  # noqa: F401  (registers accounts, verification_tokens, posts)


# ── Alembic config object ────────────────────────────────────────────────────

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Override sqlalchemy.url from app settings so credentials come from the
# environment/.env file, not from alembic.ini.
settings = get_settings()
config.set_main_option("sqlalchemy.url", settings.database_url)

target_metadata = Base.metadata


# ── Offline mode (generates SQL script without a live connection) ─────────────

def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def run_migrations_offline() -> None:
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        render_as_batch=_is_sqlite(url),
    )
    with context.begin_transaction():
        context.run_migrations()


# ── Online mode (connects to the DB and runs migrations) ─────────────────────

def do_run_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=connection.dialect.name == "sqlite",
    )
    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)
    await connectable.dispose()


def run_migrations_online() -> None:
    asyncio.run(run_async_migrations())


# ── Entry point ───────────────────────────────────────────────────────────────

if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

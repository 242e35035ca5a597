"""Alembic environment for the techbranch users schema.

Test runs pass a sync sqlite URL; deployed runs take the async
``DATABASE_URL`` from the environment or ``.env``.
"""

from __future__ import annotations

import asyncio
import os
from logging.config import fileConfig
from pathlib import Path

from dotenv import load_dotenv
from sqlalchemy import create_engine, pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from alembic import context
from techbranch.infrastructure.db.metadata import metadata

INI_DEFAULT_URL = "sqlite:///./techbranch.db"
ASYNC_DRIVERS = ("+asyncpg", "+aiosqlite")

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)


def resolve_url() -> str:
    """Prefer DATABASE_URL unless the caller overrode sqlalchemy.url."""

    load_dotenv(Path(__file__).resolve().parents[1] / ".env")
    url = config.get_main_option("sqlalchemy.url") or INI_DEFAULT_URL
    if url == INI_DEFAULT_URL:
        return os.getenv("DATABASE_URL") or url
    return url


def migrate(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=metadata)
    with context.begin_transaction():
        context.run_migrations()


async def migrate_async(url: str) -> None:
    engine = create_async_engine(url, poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(migrate)
    finally:
        await engine.dispose()


def migrate_online(url: str) -> None:
    if any(driver in url for driver in ASYNC_DRIVERS):
        asyncio.run(migrate_async(url))
        return
    engine = create_engine(url, poolclass=pool.NullPool)
    with engine.connect() as connection:
        migrate(connection)


def migrate_offline(url: str) -> None:
    """Emit SQL for the users schema without a database connection."""

    context.configure(
        url=url,
        target_metadata=metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


if context.is_offline_mode():
    migrate_offline(resolve_url())
else:
    migrate_online(resolve_url())

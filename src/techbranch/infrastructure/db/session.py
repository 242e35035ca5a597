"""Async SQLAlchemy engine and session factory helpers."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine


def create_session_factory(
    database_url: str,
    *,
    pool_pre_ping: bool = True,
) -> async_sessionmaker[AsyncSession]:
    """Create a reusable async session factory for the user directory database."""

    engine = create_async_engine(database_url, pool_pre_ping=pool_pre_ping)
    return async_sessionmaker(engine, expire_on_commit=False)

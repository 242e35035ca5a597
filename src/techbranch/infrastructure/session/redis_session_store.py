"""Redis-backed session store mapping principal keys to live token identities."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Protocol

import redis.asyncio as redis
from redis.exceptions import RedisError

from techbranch.application.ports.session_store_port import (
    SessionNotFoundError,
    SessionStoreError,
    SessionStorePort,
)

logger = logging.getLogger(__name__)


class RedisCommandsPort(Protocol):
    """Subset of redis.asyncio commands used by the session store."""

    async def set(self, name: str, value: str, ex: int | None = None) -> object:
        """Set key with expiry in seconds."""

    async def get(self, name: str) -> str | bytes | None:
        """Return key value or None."""

    async def delete(self, *names: str) -> int:
        """Delete keys and return removed count."""


def create_redis_client(url: str, *, db: int) -> redis.Redis:
    """Create an async Redis client bound to one logical database index."""

    return redis.Redis.from_url(url, db=db, decode_responses=True)


class RedisSessionStore(SessionStorePort):
    """Session store for one token kind, isolated by logical database index."""

    def __init__(self, client: RedisCommandsPort, *, ttl: timedelta, name: str) -> None:
        if ttl <= timedelta(0):
            raise ValueError("session ttl must be positive")
        self._client = client
        self._ttl_seconds = int(ttl.total_seconds())
        self._name = name

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    async def set(self, *, key: str, token_id: str) -> None:
        """Overwrite the live identity for ``key`` with the store TTL."""

        try:
            await self._client.set(key, token_id, ex=self._ttl_seconds)
        except RedisError as error:
            logger.error(
                "session_store_set_failed store=%s key=%s error=%s",
                self._name,
                key,
                error,
            )
            raise SessionStoreError(f"{self._name}: failed to set key") from error

    async def get(self, *, key: str) -> str:
        """Return the live identity for ``key``."""

        try:
            value = await self._client.get(key)
        except RedisError as error:
            logger.error(
                "session_store_get_failed store=%s key=%s error=%s",
                self._name,
                key,
                error,
            )
            raise SessionStoreError(f"{self._name}: failed to get key") from error

        if value is None:
            raise SessionNotFoundError(key=key)
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def delete(self, *, key: str) -> None:
        """Remove the record for ``key``."""

        try:
            removed = await self._client.delete(key)
        except RedisError as error:
            logger.error(
                "session_store_delete_failed store=%s key=%s error=%s",
                self._name,
                key,
                error,
            )
            raise SessionStoreError(f"{self._name}: failed to delete key") from error

        if not removed:
            raise SessionNotFoundError(key=key)

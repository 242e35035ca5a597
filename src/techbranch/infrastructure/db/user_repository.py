"""SQLAlchemy adapter for the user directory."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import cast

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from techbranch.application.ports.user_repository_port import (
    UserCreateInput,
    UserDirectoryError,
    UserRecord,
    UserRepositoryPort,
)
from techbranch.domain.auth.errors import DuplicateEmailError
from techbranch.infrastructure.db.metadata import users

logger = logging.getLogger(__name__)

_USER_COLUMNS = (
    users.c.id,
    users.c.display_name,
    users.c.email,
    users.c.password_hash,
    users.c.google_id,
    users.c.created_at,
    users.c.updated_at,
)


class SqlAlchemyUserRepository(UserRepositoryPort):
    """User repository backed by SQLAlchemy async sessions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create_user(self, payload: UserCreateInput) -> UserRecord:
        """Insert one principal row and return the persisted record."""

        statement = (
            sa.insert(users)
            .values(
                display_name=payload.display_name,
                email=payload.email,
                password_hash=payload.password_hash,
                google_id=payload.google_id,
            )
            .returning(*_USER_COLUMNS)
        )

        try:
            async with self._session_factory() as session:
                result = await session.execute(statement)
                row = result.mappings().one()
                await session.commit()
        except IntegrityError as error:
            if await self.get_by_email(email=payload.email) is not None:
                raise DuplicateEmailError() from error
            raise UserDirectoryError("failed to create user") from error
        except SQLAlchemyError as error:
            raise UserDirectoryError("failed to create user") from error

        record = _to_user_record(row)
        logger.info("user_created user_id=%s", record.user_id)
        return record

    async def get_by_id(self, *, user_id: int) -> UserRecord | None:
        """Return principal by id."""

        statement = sa.select(*_USER_COLUMNS).where(users.c.id == user_id).limit(1)
        return await self._fetch_one(statement, operation="get_by_id")

    async def get_by_email(self, *, email: str) -> UserRecord | None:
        """Return principal by normalized email."""

        statement = sa.select(*_USER_COLUMNS).where(users.c.email == email).limit(1)
        return await self._fetch_one(statement, operation="get_by_email")

    async def link_google_id(self, *, user_id: int, google_id: str) -> UserRecord | None:
        """Attach provider external id and bump ``updated_at``."""

        statement = (
            sa.update(users)
            .where(users.c.id == user_id)
            .values(google_id=google_id, updated_at=sa.func.current_timestamp())
            .returning(*_USER_COLUMNS)
        )

        try:
            async with self._session_factory() as session:
                result = await session.execute(statement)
                row = result.mappings().first()
                await session.commit()
        except SQLAlchemyError as error:
            raise UserDirectoryError("failed to link google id") from error

        if row is None:
            return None
        return _to_user_record(row)

    async def _fetch_one(self, statement: sa.Select, *, operation: str) -> UserRecord | None:
        try:
            async with self._session_factory() as session:
                result = await session.execute(statement)
                row = result.mappings().first()
        except SQLAlchemyError as error:
            raise UserDirectoryError(f"{operation} failed") from error

        if row is None:
            return None
        return _to_user_record(row)


def _to_user_record(row: sa.RowMapping) -> UserRecord:
    return UserRecord(
        user_id=int(row["id"]),
        display_name=cast(str, row["display_name"]),
        email=cast(str, row["email"]),
        password_hash=cast(str, row["password_hash"]),
        google_id=cast(str | None, row["google_id"]),
        created_at=cast(datetime, row["created_at"]),
        updated_at=cast(datetime, row["updated_at"]),
    )

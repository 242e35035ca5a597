"""Port for principal persistence operations used by the auth core."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


class UserDirectoryError(RuntimeError):
    """Raised when the user directory cannot complete an operation."""


@dataclass(frozen=True)
class UserCreateInput:
    """Input payload for creating one principal."""

    display_name: str
    email: str
    password_hash: str
    google_id: str | None = None


@dataclass(frozen=True)
class UserRecord:
    """Principal persistence model."""

    user_id: int
    display_name: str
    email: str
    password_hash: str
    google_id: str | None
    created_at: datetime
    updated_at: datetime

    @property
    def is_federated_only(self) -> bool:
        return not self.password_hash


class UserRepositoryPort(Protocol):
    """User directory contract."""

    async def create_user(self, payload: UserCreateInput) -> UserRecord:
        """Create principal; raise DuplicateEmailError when email is taken."""

    async def get_by_id(self, *, user_id: int) -> UserRecord | None:
        """Return principal by id or None."""

    async def get_by_email(self, *, email: str) -> UserRecord | None:
        """Return principal by normalized email or None."""

    async def link_google_id(self, *, user_id: int, google_id: str) -> UserRecord | None:
        """Attach provider external id to an existing principal."""

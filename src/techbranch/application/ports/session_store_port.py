"""Port for the principal -> token-identity session mapping."""

from __future__ import annotations

from typing import Protocol


class SessionNotFoundError(LookupError):
    """Raised when no live session record exists for a key."""

    def __init__(self, *, key: str) -> None:
        super().__init__(f"session not found: {key}")
        self.key = key


class SessionStoreError(RuntimeError):
    """Raised when the backing key/value service fails."""


class SessionStorePort(Protocol):
    """Typed key/value session contract with a per-store TTL."""

    async def set(self, *, key: str, token_id: str) -> None:
        """Write or overwrite the live token identity for one principal key."""

    async def get(self, *, key: str) -> str:
        """Return the live token identity or raise SessionNotFoundError."""

    async def delete(self, *, key: str) -> None:
        """Delete the record or raise SessionNotFoundError."""

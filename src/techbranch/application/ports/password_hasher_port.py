"""Port for password hashing and verification."""

from __future__ import annotations

from typing import Protocol


class HashingFailedError(RuntimeError):
    """Raised when the underlying hashing primitive fails."""


class PasswordHasherPort(Protocol):
    """Password hashing/verification contract."""

    def hash_password(self, password: str) -> str:
        """Hash plaintext password into a self-describing hash string."""

    def verify_password(self, *, password: str, password_hash: str) -> bool:
        """Verify plaintext password against stored hash; never raises on mismatch."""

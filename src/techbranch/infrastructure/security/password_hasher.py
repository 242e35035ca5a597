"""Bcrypt password hasher adapter."""

from __future__ import annotations

import bcrypt

from techbranch.application.ports.password_hasher_port import (
    HashingFailedError,
    PasswordHasherPort,
)

_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")
DEFAULT_BCRYPT_ROUNDS = 12


class BcryptPasswordHasher(PasswordHasherPort):
    """Password hashing adapter using bcrypt with a tunable work factor."""

    def __init__(self, *, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> None:
        self._rounds = rounds

    def hash_password(self, password: str) -> str:
        encoded = password.encode("utf-8")
        try:
            return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=self._rounds)).decode("utf-8")
        except ValueError as error:
            raise HashingFailedError(f"bcrypt hashing failed: {error}") from error

    def verify_password(self, *, password: str, password_hash: str) -> bool:
        # Empty hashes belong to federated-only accounts; foreign schemes are downgrades.
        if not password_hash.startswith(_BCRYPT_PREFIXES):
            return False
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            return False

from __future__ import annotations

import pytest

from techbranch.application.ports.password_hasher_port import HashingFailedError
from techbranch.infrastructure.security.password_hasher import BcryptPasswordHasher


def _hasher() -> BcryptPasswordHasher:
    return BcryptPasswordHasher(rounds=4)


def test_hash_password_never_stores_plaintext_and_verifies() -> None:
    hasher = _hasher()
    password = "super-secret-password"

    password_hash = hasher.hash_password(password)

    assert password_hash != password
    assert password not in password_hash
    assert password_hash.startswith("$2b$04$")
    assert hasher.verify_password(password=password, password_hash=password_hash) is True


def test_wrong_password_fails_verification() -> None:
    hasher = _hasher()
    password_hash = hasher.hash_password("correct")

    assert hasher.verify_password(password="wrong", password_hash=password_hash) is False


def test_hashing_twice_uses_fresh_salt() -> None:
    hasher = _hasher()

    first = hasher.hash_password("same-password")
    second = hasher.hash_password("same-password")

    assert first != second
    assert hasher.verify_password(password="same-password", password_hash=first) is True
    assert hasher.verify_password(password="same-password", password_hash=second) is True


@pytest.mark.parametrize("password_hash", ["", "plaintext", "$argon2id$v=19$m=65536$abc"])
def test_empty_or_foreign_hash_never_verifies(password_hash: str) -> None:
    hasher = _hasher()

    assert hasher.verify_password(password="", password_hash=password_hash) is False
    assert hasher.verify_password(password="plaintext", password_hash=password_hash) is False


def test_truncated_bcrypt_hash_is_rejected_without_raising() -> None:
    hasher = _hasher()

    assert hasher.verify_password(password="pw", password_hash="$2b$04$short") is False


def test_invalid_work_factor_surfaces_hashing_failure() -> None:
    hasher = BcryptPasswordHasher(rounds=2)

    with pytest.raises(HashingFailedError):
        hasher.hash_password("pw")

"""Shared normalization helpers for sign-up and sign-in inputs."""

from __future__ import annotations

from techbranch.domain.auth.errors import InvalidArgumentError

# bcrypt only reads the first 72 bytes of a secret.
MAX_PASSWORD_BYTES = 72


def normalize_user_email(*, email: str) -> str:
    """Normalize one user email and reject blank or malformed values."""

    normalized = email.strip().lower()
    if not normalized:
        raise InvalidArgumentError("email cannot be blank")

    local_part, separator, domain = normalized.rpartition("@")
    if not separator or not local_part or not domain or any(c.isspace() for c in normalized):
        raise InvalidArgumentError("email is malformed")
    return normalized


def normalize_display_name(*, display_name: str) -> str:
    """Trim one display name and reject blank values."""

    normalized = display_name.strip()
    if not normalized:
        raise InvalidArgumentError("display name cannot be blank")
    return normalized


def require_password(*, password: str) -> str:
    """Reject blank or over-long plaintext passwords; the value itself is kept verbatim."""

    if not password.strip():
        raise InvalidArgumentError("password cannot be blank")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise InvalidArgumentError(f"password cannot exceed {MAX_PASSWORD_BYTES} bytes")
    return password

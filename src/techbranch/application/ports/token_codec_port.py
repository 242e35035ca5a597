"""Port for signed bearer token issuance and validation."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Protocol

_SUBJECT_PATTERN = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class IssuedToken:
    """Encoded token plus the identity mirrored into the session store."""

    token: str
    token_id: str
    expires_in: int


@dataclass(frozen=True)
class TokenClaims:
    """Validated claim set of one bearer token."""

    issuer: str
    audience: str
    subject: str
    token_id: str
    issued_at: int
    not_before: int
    expires_at: int

    @property
    def principal_id(self) -> int:
        return int(self.subject)


def is_valid_subject(subject: object) -> bool:
    """Return whether a subject claim is a non-negative decimal integer."""

    return isinstance(subject, str) and _SUBJECT_PATTERN.fullmatch(subject) is not None


class TokenCodecPort(Protocol):
    """Token codec contract; one instance per token kind."""

    def generate(self, principal_id: int) -> IssuedToken:
        """Mint a signed token for one principal."""

    def validate(self, token: str) -> TokenClaims:
        """Return claims or raise InvalidTokenError."""

    def lifetime_seconds(self) -> int:
        """Return configured token lifetime in seconds."""

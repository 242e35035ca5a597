"""HMAC-SHA256 JWT codec used for access and refresh tokens."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

import jwt

from techbranch.application.ports.token_codec_port import (
    IssuedToken,
    TokenClaims,
    TokenCodecPort,
    is_valid_subject,
)
from techbranch.domain.auth.errors import InvalidTokenError

JWT_ALGORITHM = "HS256"
NOT_BEFORE_SKEW = timedelta(seconds=5)
_REQUIRED_CLAIMS = ["iss", "aud", "sub", "jti", "iat", "nbf", "exp"]


class JwtTokenCodec(TokenCodecPort):
    """Issue and validate signed bearer tokens for one token kind.

    Time-window checks run against the injected clock instead of PyJWT's
    wall clock so tests can pin issue and query times independently.
    """

    def __init__(
        self,
        *,
        issuer: str,
        secret: str,
        lifetime: timedelta,
        now: Callable[[], datetime] | None = None,
        token_id_factory: Callable[[], str] | None = None,
    ) -> None:
        if lifetime <= timedelta(0):
            raise ValueError("token lifetime must be positive")
        self._issuer = issuer
        self._secret = secret
        self._lifetime = lifetime
        self._now = now or (lambda: datetime.now(tz=UTC))
        self._token_id_factory = token_id_factory or (lambda: str(uuid4()))

    def generate(self, principal_id: int) -> IssuedToken:
        """Mint a token for ``principal_id`` and return it with its identity."""

        if principal_id < 0:
            raise ValueError("principal id must be non-negative")

        token_id = self._token_id_factory()
        issued_at = self._now()
        claims: dict[str, Any] = {
            "iss": self._issuer,
            "sub": str(principal_id),
            "aud": self._issuer,
            "iat": _epoch(issued_at),
            "nbf": _epoch(issued_at - NOT_BEFORE_SKEW),
            "exp": _epoch(issued_at + self._lifetime),
            "jti": token_id,
        }
        token = jwt.encode(claims, self._secret, algorithm=JWT_ALGORITHM)
        return IssuedToken(token=token, token_id=token_id, expires_in=self.lifetime_seconds())

    def validate(self, token: str) -> TokenClaims:
        """Return verified claims; every failure collapses into InvalidTokenError."""

        try:
            header = jwt.get_unverified_header(token)
            if header.get("alg") != JWT_ALGORITHM:
                raise InvalidTokenError()
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[JWT_ALGORITHM],
                audience=self._issuer,
                issuer=self._issuer,
                options={
                    "require": _REQUIRED_CLAIMS,
                    "verify_exp": False,
                    "verify_nbf": False,
                    "verify_iat": False,
                },
            )
            claims = TokenClaims(
                issuer=str(payload["iss"]),
                audience=_single_audience(payload["aud"]),
                subject=payload["sub"],
                token_id=str(payload["jti"]),
                issued_at=int(payload["iat"]),
                not_before=int(payload["nbf"]),
                expires_at=int(payload["exp"]),
            )
        except (jwt.PyJWTError, KeyError, TypeError, ValueError) as error:
            raise InvalidTokenError() from error

        if not is_valid_subject(claims.subject) or not claims.token_id:
            raise InvalidTokenError()

        now = _epoch(self._now())
        if now < claims.not_before or now >= claims.expires_at:
            raise InvalidTokenError()
        return claims

    def lifetime_seconds(self) -> int:
        return int(self._lifetime.total_seconds())


def _epoch(moment: datetime) -> int:
    return int(moment.timestamp())


def _single_audience(audience: object) -> str:
    if isinstance(audience, list):
        if len(audience) != 1:
            raise ValueError("unexpected audience list")
        audience = audience[0]
    if not isinstance(audience, str):
        raise ValueError("audience must be a string")
    return audience

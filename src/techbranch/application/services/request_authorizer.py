"""Transport-agnostic bearer-token authorization core."""

from __future__ import annotations

import logging

from techbranch.application.ports.session_store_port import SessionStoreError
from techbranch.application.services.session_token_verifier import SessionTokenVerifier
from techbranch.domain.auth.errors import InvalidTokenError, UnauthenticatedError

BEARER_SCHEME = "bearer"

logger = logging.getLogger(__name__)


class MissingAuthTokenError(UnauthenticatedError):
    """Raised when a bearer token is required but not provided."""


class InvalidAuthHeaderError(UnauthenticatedError):
    """Raised when the authorization value is not `Bearer <token>`."""


def extract_bearer_token(authorization_header: str | None) -> str:
    """Extract token from an `Authorization: Bearer <token>` value."""

    if authorization_header is None or not authorization_header.strip():
        raise MissingAuthTokenError("missing bearer token")

    parts = authorization_header.strip().split()
    if len(parts) != 2 or parts[0].lower() != BEARER_SCHEME or not parts[1].strip():
        raise InvalidAuthHeaderError("invalid bearer token header")

    return parts[1]


class RequestAuthorizer:
    """Resolve a bearer credential to the authenticated principal id.

    Every failure (missing header, bad token, superseded identity, store
    outage) surfaces as UnauthenticatedError("invalid token").
    """

    def __init__(self, *, verifier: SessionTokenVerifier) -> None:
        self._verifier = verifier

    async def authenticate(self, authorization_header: str | None) -> int:
        try:
            token = extract_bearer_token(authorization_header)
            claims = await self._verifier.verify(token)
        except UnauthenticatedError as error:
            logger.info("request_rejected reason=%s", error)
            raise UnauthenticatedError() from error
        except InvalidTokenError as error:
            logger.info("request_rejected reason=invalid_or_revoked_token")
            raise UnauthenticatedError() from error
        except SessionStoreError as error:
            logger.error("request_rejected reason=session_store_unavailable error=%s", error)
            raise UnauthenticatedError() from error

        return claims.principal_id

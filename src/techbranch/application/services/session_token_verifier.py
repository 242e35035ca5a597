"""Token validation bound to the server-side session record."""

from __future__ import annotations

import hmac

from techbranch.application.ports.session_store_port import (
    SessionNotFoundError,
    SessionStorePort,
)
from techbranch.application.ports.token_codec_port import TokenClaims, TokenCodecPort
from techbranch.domain.auth.errors import InvalidTokenError


class SessionTokenVerifier:
    """Accept a token only while its identity is the live one for its principal.

    Raises InvalidTokenError for bad, expired or superseded tokens and lets
    SessionStoreError propagate so callers can decide how an unavailable
    store is reported.
    """

    def __init__(self, *, codec: TokenCodecPort, sessions: SessionStorePort) -> None:
        self._codec = codec
        self._sessions = sessions

    async def verify(self, token: str) -> TokenClaims:
        claims = self._codec.validate(token)
        try:
            live_token_id = await self._sessions.get(key=claims.subject)
        except SessionNotFoundError as error:
            raise InvalidTokenError() from error

        if not hmac.compare_digest(live_token_id.encode("utf-8"), claims.token_id.encode("utf-8")):
            raise InvalidTokenError()
        return claims

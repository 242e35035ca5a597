"""Dependency wiring shared by the HTTP and RPC entrypoints."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from techbranch.application.ports.session_store_port import SessionStorePort
from techbranch.application.ports.token_codec_port import TokenCodecPort
from techbranch.application.services.auth_service import AuthService
from techbranch.application.services.request_authorizer import RequestAuthorizer
from techbranch.application.services.session_token_verifier import SessionTokenVerifier
from techbranch.config.settings import Settings
from techbranch.infrastructure.db.session import create_session_factory
from techbranch.infrastructure.db.user_repository import SqlAlchemyUserRepository
from techbranch.infrastructure.oauth.google_client import GoogleOAuthClient
from techbranch.infrastructure.security.jwt_codec import JwtTokenCodec
from techbranch.infrastructure.security.password_hasher import BcryptPasswordHasher
from techbranch.infrastructure.session.redis_session_store import (
    RedisSessionStore,
    create_redis_client,
)


@dataclass(frozen=True)
class AuthRuntime:
    """Fully wired authentication collaborators for one process."""

    auth_service: AuthService
    request_authorizer: RequestAuthorizer
    request_timeout_seconds: float


def build_request_authorizer(
    *,
    access_tokens: TokenCodecPort,
    access_sessions: SessionStorePort,
) -> RequestAuthorizer:
    """Build the bearer authorizer that checks tokens against the access store."""

    return RequestAuthorizer(
        verifier=SessionTokenVerifier(codec=access_tokens, sessions=access_sessions),
    )


def build_auth_runtime(settings: Settings) -> AuthRuntime:
    """Build auth service and request authorizer from runtime settings."""

    access_ttl = timedelta(seconds=settings.access_token_ttl_seconds)
    refresh_ttl = timedelta(seconds=settings.refresh_token_ttl_seconds)

    access_tokens = JwtTokenCodec(
        issuer=settings.token_issuer,
        secret=settings.token_secret,
        lifetime=access_ttl,
    )
    refresh_tokens = JwtTokenCodec(
        issuer=settings.token_issuer,
        secret=settings.token_secret,
        lifetime=refresh_ttl,
    )
    access_sessions = RedisSessionStore(
        create_redis_client(settings.redis_url, db=settings.access_session_db),
        ttl=access_ttl,
        name="access",
    )
    refresh_sessions = RedisSessionStore(
        create_redis_client(settings.redis_url, db=settings.refresh_session_db),
        ttl=refresh_ttl,
        name="refresh",
    )

    auth_service = AuthService(
        users=SqlAlchemyUserRepository(create_session_factory(settings.database_url)),
        password_hasher=BcryptPasswordHasher(),
        access_tokens=access_tokens,
        refresh_tokens=refresh_tokens,
        access_sessions=access_sessions,
        refresh_sessions=refresh_sessions,
        identity_provider=GoogleOAuthClient(
            client_id=settings.google_client_id,
            client_secret=settings.google_client_secret,
            redirect_url=str(settings.google_redirect_url),
            state=settings.google_oauth_state,
            timeout_seconds=settings.oauth_http_timeout_seconds,
        ),
    )
    return AuthRuntime(
        auth_service=auth_service,
        request_authorizer=build_request_authorizer(
            access_tokens=access_tokens,
            access_sessions=access_sessions,
        ),
        request_timeout_seconds=settings.request_timeout_seconds,
    )

"""Application authentication service: sign-up, sign-in, sessions, federation."""

from __future__ import annotations

import asyncio
import logging
import secrets
from dataclasses import dataclass
from enum import StrEnum

from techbranch.application.ports.identity_provider_port import IdentityProviderPort
from techbranch.application.ports.password_hasher_port import (
    HashingFailedError,
    PasswordHasherPort,
)
from techbranch.application.ports.session_store_port import (
    SessionNotFoundError,
    SessionStoreError,
    SessionStorePort,
)
from techbranch.application.ports.token_codec_port import TokenCodecPort
from techbranch.application.ports.user_repository_port import (
    UserCreateInput,
    UserDirectoryError,
    UserRecord,
    UserRepositoryPort,
)
from techbranch.application.services.session_token_verifier import SessionTokenVerifier
from techbranch.domain.auth.credentials import (
    normalize_display_name,
    normalize_user_email,
    require_password,
)
from techbranch.domain.auth.errors import (
    AuthenticationFailedError,
    DuplicateEmailError,
    InternalError,
    InvalidArgumentError,
    InvalidStateError,
    InvalidTokenError,
    PrincipalNotFoundError,
    ProfileFetchFailedError,
)

TOKEN_TYPE = "Bearer"

logger = logging.getLogger(__name__)


class FederatedUserOutcome(StrEnum):
    """How a federated sign-in resolved its principal."""

    EXISTING = "existing"
    LINKED = "linked"
    CREATED = "created"


@dataclass(frozen=True)
class TokenPair:
    """Tokens handed to a client after a successful sign-in."""

    access_token: str
    refresh_token: str
    expires_in: int
    refresh_expires_in: int
    token_type: str = TOKEN_TYPE


@dataclass(frozen=True)
class RefreshedAccessToken:
    """Access token minted from a refresh token."""

    access_token: str
    expires_in: int
    token_type: str = TOKEN_TYPE


@dataclass(frozen=True)
class SigninResult:
    """Sign-in outcome with the authenticated principal id."""

    user_id: int
    tokens: TokenPair


@dataclass(frozen=True)
class FederatedSigninResult:
    """Federated sign-in outcome tagged with how the principal was resolved."""

    user: UserRecord
    tokens: TokenPair
    outcome: FederatedUserOutcome


class AuthService:
    """Orchestrate hashing, user directory, token codecs and session stores.

    Access and refresh tokens each have their own codec (lifetime) and their
    own session store (TTL, logical database). Issuing a token overwrites the
    principal's previous identity of the same kind, which silently revokes
    the older token.
    """

    def __init__(
        self,
        *,
        users: UserRepositoryPort,
        password_hasher: PasswordHasherPort,
        access_tokens: TokenCodecPort,
        refresh_tokens: TokenCodecPort,
        access_sessions: SessionStorePort,
        refresh_sessions: SessionStorePort,
        identity_provider: IdentityProviderPort,
    ) -> None:
        self._users = users
        self._password_hasher = password_hasher
        self._access_tokens = access_tokens
        self._refresh_tokens = refresh_tokens
        self._access_sessions = access_sessions
        self._refresh_sessions = refresh_sessions
        self._identity_provider = identity_provider
        self._refresh_verifier = SessionTokenVerifier(
            codec=refresh_tokens,
            sessions=refresh_sessions,
        )
        self._decoy_password_hash: str | None = None

    async def signup(self, *, display_name: str, email: str, password: str) -> UserRecord:
        """Create a password principal; tokens are issued by a later signin."""

        normalized_name = normalize_display_name(display_name=display_name)
        normalized_email = normalize_user_email(email=email)
        plaintext = require_password(password=password)

        try:
            password_hash = await asyncio.to_thread(self._password_hasher.hash_password, plaintext)
        except HashingFailedError as error:
            logger.error("signup_failed reason=hashing_failed error=%s", error)
            raise InternalError() from error

        try:
            user = await self._users.create_user(
                UserCreateInput(
                    display_name=normalized_name,
                    email=normalized_email,
                    password_hash=password_hash,
                )
            )
        except DuplicateEmailError:
            logger.info("signup_rejected reason=duplicate_email")
            raise
        except UserDirectoryError as error:
            logger.error("signup_failed reason=user_directory error=%s", error)
            raise InternalError() from error

        logger.info("signup_succeeded user_id=%s", user.user_id)
        return user

    async def signin(self, *, email: str, password: str) -> SigninResult:
        """Verify credentials and start fresh access and refresh sessions."""

        if not email.strip() or not password.strip():
            raise InvalidArgumentError("email and password are required")

        try:
            normalized_email = normalize_user_email(email=email)
        except InvalidArgumentError as error:
            logger.info("signin_rejected reason=malformed_email")
            raise AuthenticationFailedError() from error

        try:
            user = await self._users.get_by_email(email=normalized_email)
        except UserDirectoryError as error:
            logger.error("signin_rejected reason=user_lookup_failed error=%s", error)
            raise AuthenticationFailedError() from error

        # Unknown emails and federated-only accounts still pay one bcrypt verify.
        candidate_hash = user.password_hash if user is not None else ""
        is_valid = await asyncio.to_thread(
            self._password_hasher.verify_password,
            password=password,
            password_hash=candidate_hash or await self._get_decoy_password_hash(),
        )
        if user is None:
            logger.info("signin_rejected reason=unknown_email")
            raise AuthenticationFailedError()
        if not candidate_hash or not is_valid:
            logger.info("signin_rejected reason=password_mismatch user_id=%s", user.user_id)
            raise AuthenticationFailedError()

        tokens = await self._start_sessions(user_id=user.user_id)
        logger.info("signin_succeeded user_id=%s", user.user_id)
        return SigninResult(user_id=user.user_id, tokens=tokens)

    async def signout(self, *, user_id: int) -> None:
        """Drop both session records; absent records are not an error."""

        key = str(user_id)
        for store_name, sessions in (
            ("access", self._access_sessions),
            ("refresh", self._refresh_sessions),
        ):
            try:
                await sessions.delete(key=key)
            except SessionNotFoundError:
                logger.debug("signout_no_session store=%s user_id=%s", store_name, user_id)
            except SessionStoreError as error:
                logger.error(
                    "signout_failed store=%s user_id=%s error=%s",
                    store_name,
                    user_id,
                    error,
                )
                raise InternalError() from error

        logger.info("signout_succeeded user_id=%s", user_id)

    async def refresh_token(self, *, refresh_token: str) -> RefreshedAccessToken:
        """Mint a new access token from a live refresh token.

        The refresh token must still be the principal's recorded refresh
        identity, so sign-out also revokes it. It is not rotated.
        """

        if not refresh_token.strip():
            raise InvalidTokenError()

        try:
            claims = await self._refresh_verifier.verify(refresh_token)
        except InvalidTokenError:
            logger.info("refresh_rejected reason=invalid_or_revoked_token")
            raise
        except SessionStoreError as error:
            logger.error("refresh_failed reason=session_store error=%s", error)
            raise InternalError() from error

        access = self._access_tokens.generate(claims.principal_id)
        await self._record_session(
            self._access_sessions,
            store_name="access",
            key=claims.subject,
            token_id=access.token_id,
        )
        logger.info("refresh_succeeded user_id=%s", claims.principal_id)
        return RefreshedAccessToken(access_token=access.token, expires_in=access.expires_in)

    async def get_signin_user(self, *, user_id: int) -> UserRecord:
        """Return the principal snapshot for an authenticated caller."""

        try:
            user = await self._users.get_by_id(user_id=user_id)
        except UserDirectoryError as error:
            logger.error("get_signin_user_failed user_id=%s error=%s", user_id, error)
            raise InternalError() from error
        if user is None:
            raise PrincipalNotFoundError(user_id=user_id)
        return user

    def get_google_login_url(self) -> str:
        return self._identity_provider.login_url()

    async def google_login_callback(self, *, state: str, code: str) -> FederatedSigninResult:
        """Complete the provider flow, resolve or create the principal, sign in."""

        if not self._identity_provider.check_state(state):
            logger.warning("google_callback_rejected reason=state_mismatch")
            raise InvalidStateError()
        if not code.strip():
            raise InvalidArgumentError("authorization code is required")

        provider_token = await self._identity_provider.exchange_code(code)
        profile = await self._identity_provider.fetch_profile(provider_token)

        try:
            email = normalize_user_email(email=profile.email)
            display_name = normalize_display_name(display_name=profile.display_name)
        except InvalidArgumentError as error:
            logger.warning("google_callback_failed reason=unusable_profile")
            raise ProfileFetchFailedError() from error

        user, outcome = await self._resolve_federated_user(
            email=email,
            display_name=display_name,
            google_id=profile.external_id,
        )
        tokens = await self._start_sessions(user_id=user.user_id)
        logger.info(
            "google_signin_succeeded user_id=%s outcome=%s",
            user.user_id,
            outcome.value,
        )
        return FederatedSigninResult(user=user, tokens=tokens, outcome=outcome)

    async def _resolve_federated_user(
        self,
        *,
        email: str,
        display_name: str,
        google_id: str,
    ) -> tuple[UserRecord, FederatedUserOutcome]:
        existing = await self._get_user_by_email(email)
        if existing is not None:
            if existing.google_id:
                return existing, FederatedUserOutcome.EXISTING
            try:
                linked = await self._users.link_google_id(
                    user_id=existing.user_id,
                    google_id=google_id,
                )
            except UserDirectoryError as error:
                logger.error("google_link_failed user_id=%s error=%s", existing.user_id, error)
                raise InternalError() from error
            return (linked or existing), FederatedUserOutcome.LINKED

        try:
            created = await self._users.create_user(
                UserCreateInput(
                    display_name=display_name,
                    email=email,
                    password_hash="",
                    google_id=google_id,
                )
            )
        except DuplicateEmailError:
            # Lost a race with a concurrent first sign-in for the same email.
            raced = await self._get_user_by_email(email)
            if raced is None:
                raise InternalError() from None
            return raced, FederatedUserOutcome.EXISTING
        except UserDirectoryError as error:
            logger.error("google_user_create_failed error=%s", error)
            raise InternalError() from error
        return created, FederatedUserOutcome.CREATED

    async def _get_user_by_email(self, email: str) -> UserRecord | None:
        try:
            return await self._users.get_by_email(email=email)
        except UserDirectoryError as error:
            logger.error("user_lookup_failed error=%s", error)
            raise InternalError() from error

    async def _get_decoy_password_hash(self) -> str:
        if self._decoy_password_hash is None:
            try:
                self._decoy_password_hash = await asyncio.to_thread(
                    self._password_hasher.hash_password,
                    secrets.token_urlsafe(32),
                )
            except HashingFailedError as error:
                logger.error("signin_failed reason=hashing_failed error=%s", error)
                raise InternalError() from error
        return self._decoy_password_hash

    async def _start_sessions(self, *, user_id: int) -> TokenPair:
        key = str(user_id)
        access = self._access_tokens.generate(user_id)
        refresh = self._refresh_tokens.generate(user_id)
        await self._record_session(
            self._access_sessions,
            store_name="access",
            key=key,
            token_id=access.token_id,
        )
        await self._record_session(
            self._refresh_sessions,
            store_name="refresh",
            key=key,
            token_id=refresh.token_id,
        )
        return TokenPair(
            access_token=access.token,
            refresh_token=refresh.token,
            expires_in=access.expires_in,
            refresh_expires_in=refresh.expires_in,
        )

    async def _record_session(
        self,
        sessions: SessionStorePort,
        *,
        store_name: str,
        key: str,
        token_id: str,
    ) -> None:
        try:
            await sessions.set(key=key, token_id=token_id)
        except SessionStoreError as error:
            logger.error("session_record_failed store=%s key=%s error=%s", store_name, key, error)
            raise InternalError() from error

"""Google OAuth2 authorization-code adapter for federated sign-in."""

from __future__ import annotations

import asyncio
import hmac
import json
import logging
from dataclasses import dataclass
from typing import Protocol
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from techbranch.application.ports.identity_provider_port import (
    IdentityProviderPort,
    ProviderProfile,
    ProviderToken,
)
from techbranch.domain.auth.errors import ExchangeFailedError, ProfileFetchFailedError

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"
GOOGLE_SCOPES = (
    "https://www.googleapis.com/auth/userinfo.profile",
    "https://www.googleapis.com/auth/userinfo.email",
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OAuthHttpResponse:
    """Normalized HTTP response data returned by transport implementations."""

    status_code: int
    body_bytes: bytes


class OAuthHttpTransportPort(Protocol):
    """Transport protocol used by the OAuth adapter."""

    async def request(
        self,
        *,
        method: str,
        url: str,
        headers: dict[str, str],
        body: bytes | None,
        timeout_seconds: float,
    ) -> OAuthHttpResponse:
        """Execute one HTTP request and return normalized response data."""


class OAuthAdapterError(RuntimeError):
    """Raised for normalized provider HTTP failures."""


class UrllibOAuthHttpTransport:
    """urllib-based async transport running blocking calls in a worker thread."""

    async def request(
        self,
        *,
        method: str,
        url: str,
        headers: dict[str, str],
        body: bytes | None,
        timeout_seconds: float,
    ) -> OAuthHttpResponse:
        return await asyncio.to_thread(
            self._request_sync,
            method=method,
            url=url,
            headers=headers,
            body=body,
            timeout_seconds=timeout_seconds,
        )

    def _request_sync(
        self,
        *,
        method: str,
        url: str,
        headers: dict[str, str],
        body: bytes | None,
        timeout_seconds: float,
    ) -> OAuthHttpResponse:
        request = Request(url=url, data=body, headers=headers, method=method)
        try:
            with urlopen(request, timeout=timeout_seconds) as response:
                return OAuthHttpResponse(
                    status_code=int(response.getcode()),
                    body_bytes=response.read(),
                )
        except HTTPError as error:
            return OAuthHttpResponse(status_code=int(error.code), body_bytes=error.read())
        except URLError as error:
            raise OAuthAdapterError(f"transport connection failure: {error}") from error


class GoogleOAuthClient(IdentityProviderPort):
    """Google identity provider: login URL, state check, code exchange, profile."""

    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        redirect_url: str,
        state: str,
        transport: OAuthHttpTransportPort | None = None,
        timeout_seconds: float = 10.0,
        auth_url: str = GOOGLE_AUTH_URL,
        token_url: str = GOOGLE_TOKEN_URL,
        userinfo_url: str = GOOGLE_USERINFO_URL,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._redirect_url = redirect_url
        self._state = state
        self._transport = transport or UrllibOAuthHttpTransport()
        self._timeout_seconds = timeout_seconds
        self._auth_url = auth_url
        self._token_url = token_url
        self._userinfo_url = userinfo_url

    def login_url(self) -> str:
        query = urlencode(
            {
                "access_type": "offline",
                "client_id": self._client_id,
                "redirect_uri": self._redirect_url,
                "response_type": "code",
                "scope": " ".join(GOOGLE_SCOPES),
                "state": self._state,
            }
        )
        return f"{self._auth_url}?{query}"

    def check_state(self, state: str) -> bool:
        return hmac.compare_digest(state.encode("utf-8"), self._state.encode("utf-8"))

    async def exchange_code(self, code: str) -> ProviderToken:
        """Exchange an authorization code at the provider token endpoint."""

        body = urlencode(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self._redirect_url,
                "client_id": self._client_id,
                "client_secret": self._client_secret,
            }
        ).encode("utf-8")
        try:
            payload = await self._request_json(
                operation="exchange_code",
                method="POST",
                url=self._token_url,
                headers={
                    "Accept": "application/json",
                    "Content-Type": "application/x-www-form-urlencoded",
                },
                body=body,
            )
            return _to_provider_token(payload)
        except OAuthAdapterError as error:
            logger.warning("oauth_exchange_failed provider=google error=%s", error)
            raise ExchangeFailedError() from error

    async def fetch_profile(self, token: ProviderToken) -> ProviderProfile:
        """Read the signed-in user's id, name and email."""

        try:
            payload = await self._request_json(
                operation="fetch_profile",
                method="GET",
                url=self._userinfo_url,
                headers={
                    "Accept": "application/json",
                    "Authorization": f"Bearer {token.access_token}",
                },
                body=None,
            )
            return _to_provider_profile(payload)
        except OAuthAdapterError as error:
            logger.warning("oauth_profile_fetch_failed provider=google error=%s", error)
            raise ProfileFetchFailedError() from error

    async def _request_json(
        self,
        *,
        operation: str,
        method: str,
        url: str,
        headers: dict[str, str],
        body: bytes | None,
    ) -> dict[str, object]:
        try:
            response = await self._transport.request(
                method=method,
                url=url,
                headers=headers,
                body=body,
                timeout_seconds=self._timeout_seconds,
            )
        except Exception as error:  # noqa: BLE001
            raise OAuthAdapterError(f"{operation} transport failure") from error

        if response.status_code < 200 or response.status_code >= 300:
            raise OAuthAdapterError(
                f"{operation} failed with status {response.status_code}: "
                f"{_decode_error_payload(response.body_bytes)}"
            )

        try:
            decoded = json.loads(response.body_bytes.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as error:
            raise OAuthAdapterError(f"{operation} returned invalid JSON payload") from error
        if not isinstance(decoded, dict):
            raise OAuthAdapterError(f"{operation} returned non-object JSON payload")
        return decoded


def _to_provider_token(payload: dict[str, object]) -> ProviderToken:
    access_token = payload.get("access_token")
    if not isinstance(access_token, str) or not access_token:
        raise OAuthAdapterError("exchange_code response missing access_token")

    token_type = payload.get("token_type")
    expires_in = payload.get("expires_in")
    refresh_token = payload.get("refresh_token")
    return ProviderToken(
        access_token=access_token,
        token_type=token_type if isinstance(token_type, str) and token_type else "Bearer",
        expires_in=expires_in if isinstance(expires_in, int) else None,
        refresh_token=refresh_token if isinstance(refresh_token, str) else None,
    )


def _to_provider_profile(payload: dict[str, object]) -> ProviderProfile:
    external_id = payload.get("id")
    email = payload.get("email")
    name = payload.get("name")
    if not isinstance(external_id, str) or not external_id:
        raise OAuthAdapterError("fetch_profile response missing id")
    if not isinstance(email, str) or not email.strip():
        raise OAuthAdapterError("fetch_profile response missing email")

    display_name = name.strip() if isinstance(name, str) else ""
    if not display_name:
        display_name = email.split("@", 1)[0]
    return ProviderProfile(external_id=external_id, display_name=display_name, email=email)


def _decode_error_payload(payload: bytes) -> str:
    if not payload:
        return "empty response body"
    try:
        decoded = payload.decode("utf-8")
    except UnicodeDecodeError:
        return "<binary>"
    return decoded[:200]

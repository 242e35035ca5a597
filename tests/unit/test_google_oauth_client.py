from __future__ import annotations

import json
from dataclasses import dataclass
from urllib.parse import parse_qs, urlsplit

import pytest

from techbranch.application.ports.identity_provider_port import ProviderToken
from techbranch.domain.auth.errors import ExchangeFailedError, ProfileFetchFailedError
from techbranch.infrastructure.oauth.google_client import (
    GOOGLE_AUTH_URL,
    GOOGLE_TOKEN_URL,
    GOOGLE_USERINFO_URL,
    GoogleOAuthClient,
    OAuthHttpResponse,
)

REDIRECT_URL = "http://localhost:8080/v1/oauth/google/callback"


@dataclass
class _QueuedTransport:
    responses: list[OAuthHttpResponse]
    error: Exception | None = None

    def __post_init__(self) -> None:
        self.calls: list[dict[str, object]] = []

    async def request(
        self,
        *,
        method: str,
        url: str,
        headers: dict[str, str],
        body: bytes | None,
        timeout_seconds: float,
    ) -> OAuthHttpResponse:
        self.calls.append(
            {
                "method": method,
                "url": url,
                "headers": headers,
                "body": body,
                "timeout_seconds": timeout_seconds,
            }
        )
        if self.error is not None:
            raise self.error
        return self.responses.pop(0)


def _client(transport: _QueuedTransport) -> GoogleOAuthClient:
    return GoogleOAuthClient(
        client_id="client-id",
        client_secret="client-secret",
        redirect_url=REDIRECT_URL,
        state="fixed-state",
        transport=transport,
        timeout_seconds=3.0,
    )


def _json_response(payload: object, *, status_code: int = 200) -> OAuthHttpResponse:
    body = json.dumps(payload).encode("utf-8")
    return OAuthHttpResponse(status_code=status_code, body_bytes=body)


def test_login_url_carries_client_redirect_scopes_and_state() -> None:
    url = _client(_QueuedTransport(responses=[])).login_url()

    parts = urlsplit(url)
    query = parse_qs(parts.query)
    assert f"{parts.scheme}://{parts.netloc}{parts.path}" == GOOGLE_AUTH_URL
    assert query == {
        "access_type": ["offline"],
        "client_id": ["client-id"],
        "redirect_uri": [REDIRECT_URL],
        "response_type": ["code"],
        "scope": [
            "https://www.googleapis.com/auth/userinfo.profile "
            "https://www.googleapis.com/auth/userinfo.email"
        ],
        "state": ["fixed-state"],
    }


def test_check_state_accepts_only_the_configured_value() -> None:
    client = _client(_QueuedTransport(responses=[]))

    assert client.check_state("fixed-state") is True
    assert client.check_state("fixed-state-2") is False
    assert client.check_state("") is False


@pytest.mark.asyncio
async def test_exchange_code_posts_form_and_parses_token() -> None:
    transport = _QueuedTransport(
        responses=[
            _json_response(
                {
                    "access_token": "provider-access",
                    "token_type": "Bearer",
                    "expires_in": 3599,
                    "refresh_token": "provider-refresh",
                }
            )
        ]
    )

    token = await _client(transport).exchange_code("auth-code")

    assert token == ProviderToken(
        access_token="provider-access",
        token_type="Bearer",
        expires_in=3599,
        refresh_token="provider-refresh",
    )
    call = transport.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == GOOGLE_TOKEN_URL
    assert call["timeout_seconds"] == 3.0
    assert isinstance(call["body"], bytes)
    assert parse_qs(call["body"].decode("utf-8")) == {
        "grant_type": ["authorization_code"],
        "code": ["auth-code"],
        "redirect_uri": [REDIRECT_URL],
        "client_id": ["client-id"],
        "client_secret": ["client-secret"],
    }


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        OAuthHttpResponse(status_code=400, body_bytes=b'{"error":"invalid_grant"}'),
        OAuthHttpResponse(status_code=200, body_bytes=b"not-json"),
        OAuthHttpResponse(status_code=200, body_bytes=b'["list"]'),
        OAuthHttpResponse(status_code=200, body_bytes=b'{"token_type":"Bearer"}'),
    ],
)
async def test_exchange_code_failures_raise_exchange_failed(response: OAuthHttpResponse) -> None:
    with pytest.raises(ExchangeFailedError):
        await _client(_QueuedTransport(responses=[response])).exchange_code("auth-code")


@pytest.mark.asyncio
async def test_exchange_code_transport_error_raises_exchange_failed() -> None:
    transport = _QueuedTransport(responses=[], error=OSError("network down"))

    with pytest.raises(ExchangeFailedError):
        await _client(transport).exchange_code("auth-code")


@pytest.mark.asyncio
async def test_fetch_profile_sends_bearer_and_parses_profile() -> None:
    transport = _QueuedTransport(
        responses=[_json_response({"id": "g-123", "email": "Ada@Example.com", "name": "Ada"})]
    )

    profile = await _client(transport).fetch_profile(ProviderToken(access_token="provider-access"))

    assert profile.external_id == "g-123"
    assert profile.email == "Ada@Example.com"
    assert profile.display_name == "Ada"
    call = transport.calls[0]
    assert call["method"] == "GET"
    assert call["url"] == GOOGLE_USERINFO_URL
    assert call["body"] is None
    assert call["headers"] == {
        "Accept": "application/json",
        "Authorization": "Bearer provider-access",
    }


@pytest.mark.asyncio
async def test_fetch_profile_without_name_falls_back_to_email_local_part() -> None:
    transport = _QueuedTransport(
        responses=[_json_response({"id": "g-1", "email": "grace@example.com"})]
    )

    profile = await _client(transport).fetch_profile(ProviderToken(access_token="provider-access"))

    assert profile.display_name == "grace"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        OAuthHttpResponse(status_code=401, body_bytes=b""),
        _json_response({"email": "ada@example.com"}),
        _json_response({"id": "g-1"}),
    ],
)
async def test_fetch_profile_failures_raise_profile_fetch_failed(
    response: OAuthHttpResponse,
) -> None:
    with pytest.raises(ProfileFetchFailedError):
        await _client(_QueuedTransport(responses=[response])).fetch_profile(
            ProviderToken(access_token="provider-access")
        )

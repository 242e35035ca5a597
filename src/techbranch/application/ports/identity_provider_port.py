"""Port for third-party OAuth2 authorization-code sign-in."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class ProviderToken:
    """Access token returned by the provider token endpoint."""

    access_token: str
    token_type: str = "Bearer"
    expires_in: int | None = None
    refresh_token: str | None = None


@dataclass(frozen=True)
class ProviderProfile:
    """Minimal user profile read from the provider user-info endpoint."""

    external_id: str
    display_name: str
    email: str


class IdentityProviderPort(Protocol):
    """Federated identity contract."""

    def login_url(self) -> str:
        """Return provider authorization URL carrying the configured state."""

    def check_state(self, state: str) -> bool:
        """Return whether callback state matches the configured value."""

    async def exchange_code(self, code: str) -> ProviderToken:
        """Exchange authorization code or raise ExchangeFailedError."""

    async def fetch_profile(self, token: ProviderToken) -> ProviderProfile:
        """Read provider profile or raise ProfileFetchFailedError."""

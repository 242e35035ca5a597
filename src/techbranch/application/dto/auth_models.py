"""Pydantic wire models for the authentication surface (REST and RPC)."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from techbranch.application.ports.user_repository_port import UserRecord
from techbranch.application.services.auth_service import RefreshedAccessToken, TokenPair


class StrictModel(BaseModel):
    """Base model with strict unknown-field rejection."""

    model_config = ConfigDict(extra="forbid")


class EmptyMessage(StrictModel):
    """Request/response without fields."""


class SignupRequest(StrictModel):
    display_name: str
    email: str
    password: str


class SigninRequest(StrictModel):
    email: str
    password: str


class RefreshTokenRequest(StrictModel):
    refresh_token: str


class GoogleLoginCallbackRequest(StrictModel):
    state: str
    code: str


class UserSnapshot(StrictModel):
    """Externally visible principal projection; never carries the hash."""

    id: int
    display_name: str
    email: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, record: UserRecord) -> UserSnapshot:
        return cls(
            id=record.user_id,
            display_name=record.display_name,
            email=record.email,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class SignupResponse(StrictModel):
    user: UserSnapshot


class SigninResponse(StrictModel):
    access_token: str
    refresh_token: str
    token_type: str
    expires_in: int
    refresh_expires_in: int

    @classmethod
    def from_tokens(cls, tokens: TokenPair) -> SigninResponse:
        return cls(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            token_type=tokens.token_type,
            expires_in=tokens.expires_in,
            refresh_expires_in=tokens.refresh_expires_in,
        )


class RefreshTokenResponse(StrictModel):
    access_token: str
    token_type: str
    expires_in: int

    @classmethod
    def from_token(cls, token: RefreshedAccessToken) -> RefreshTokenResponse:
        return cls(
            access_token=token.access_token,
            token_type=token.token_type,
            expires_in=token.expires_in,
        )


class SigninUserResponse(StrictModel):
    user: UserSnapshot


class GoogleLoginUrlResponse(StrictModel):
    url: str

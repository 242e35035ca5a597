"""FastAPI router exposing the authentication operations under /v1."""

from __future__ import annotations

from collections.abc import Awaitable
from typing import Annotated, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from techbranch.application.dto.auth_models import (
    EmptyMessage,
    GoogleLoginUrlResponse,
    RefreshTokenRequest,
    RefreshTokenResponse,
    SigninRequest,
    SigninResponse,
    SigninUserResponse,
    SignupRequest,
    SignupResponse,
    UserSnapshot,
)
from techbranch.application.services.auth_service import AuthService
from techbranch.application.services.deadline import run_with_deadline
from techbranch.domain.auth.errors import (
    AuthenticationFailedError,
    AuthError,
    DeadlineExceededError,
    DuplicateEmailError,
    ExchangeFailedError,
    InternalError,
    InvalidArgumentError,
    InvalidStateError,
    InvalidTokenError,
    PrincipalNotFoundError,
    ProfileFetchFailedError,
    UnauthenticatedError,
)
from techbranch.infrastructure.http.auth_guard import PRINCIPAL_STATE_KEY

T = TypeVar("T")

_HTTP_STATUS_BY_ERROR: tuple[tuple[type[AuthError], int], ...] = (
    (InvalidArgumentError, 400),
    (InvalidStateError, 400),
    (AuthenticationFailedError, 401),
    (UnauthenticatedError, 401),
    (InvalidTokenError, 401),
    (PrincipalNotFoundError, 404),
    (DuplicateEmailError, 409),
    (ExchangeFailedError, 502),
    (ProfileFetchFailedError, 502),
    (DeadlineExceededError, 504),
    (InternalError, 500),
)


def http_status_for(error: AuthError) -> int:
    """Map one taxonomy error to its HTTP status code."""

    for error_type, status_code in _HTTP_STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status_code
    return 500


def require_principal_id(request: Request) -> int:
    """Return principal id attached by HttpAuthMiddleware."""

    principal_id = getattr(request.state, PRINCIPAL_STATE_KEY, None)
    if not isinstance(principal_id, int):
        raise HTTPException(status_code=401, detail=UnauthenticatedError().message)
    return principal_id


def build_auth_router(
    *,
    auth_service: AuthService,
    request_timeout_seconds: float | None = None,
) -> APIRouter:
    """Build router exposing sign-up, sign-in, session and federation endpoints."""

    router = APIRouter(prefix="/v1", tags=["auth"])

    async def call(operation: Awaitable[T]) -> T:
        try:
            return await run_with_deadline(operation, timeout_seconds=request_timeout_seconds)
        except AuthError as exc:
            raise HTTPException(status_code=http_status_for(exc), detail=exc.message) from exc

    @router.post("/signup", response_model=SignupResponse)
    async def signup(payload: SignupRequest) -> SignupResponse:
        user = await call(
            auth_service.signup(
                display_name=payload.display_name,
                email=payload.email,
                password=payload.password,
            )
        )
        return SignupResponse(user=UserSnapshot.from_record(user))

    @router.post("/signin", response_model=SigninResponse)
    async def signin(payload: SigninRequest) -> SigninResponse:
        result = await call(auth_service.signin(email=payload.email, password=payload.password))
        return SigninResponse.from_tokens(result.tokens)

    @router.post("/signout", response_model=EmptyMessage)
    async def signout(
        principal_id: Annotated[int, Depends(require_principal_id)],
    ) -> EmptyMessage:
        await call(auth_service.signout(user_id=principal_id))
        return EmptyMessage()

    @router.post("/refresh-token", response_model=RefreshTokenResponse)
    async def refresh_token(payload: RefreshTokenRequest) -> RefreshTokenResponse:
        token = await call(auth_service.refresh_token(refresh_token=payload.refresh_token))
        return RefreshTokenResponse.from_token(token)

    @router.get("/signin/user", response_model=SigninUserResponse)
    async def get_signin_user(
        principal_id: Annotated[int, Depends(require_principal_id)],
    ) -> SigninUserResponse:
        user = await call(auth_service.get_signin_user(user_id=principal_id))
        return SigninUserResponse(user=UserSnapshot.from_record(user))

    @router.get("/oauth/google/login", response_model=GoogleLoginUrlResponse)
    async def google_login() -> GoogleLoginUrlResponse:
        return GoogleLoginUrlResponse(url=auth_service.get_google_login_url())

    @router.get("/oauth/google/callback", response_model=SigninResponse)
    async def google_callback(
        state: Annotated[str, Query()] = "",
        code: Annotated[str, Query()] = "",
    ) -> SigninResponse:
        result = await call(auth_service.google_login_callback(state=state, code=code))
        return SigninResponse.from_tokens(result.tokens)

    return router

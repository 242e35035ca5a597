"""grpc.aio servicer exposing AuthService under techbranch.v1.AuthService.

Requests and responses are the protobuf messages from ``auth_proto``.
Incoming messages are validated through the same pydantic request models
the REST gateway uses; proto3 fields left at their zero value count as
missing.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, NoReturn, TypeVar

import grpc
from google.protobuf.message import Message
from pydantic import BaseModel, ValidationError

from techbranch.application.dto.auth_models import (
    GoogleLoginCallbackRequest,
    RefreshTokenRequest,
    SigninRequest,
    SignupRequest,
)
from techbranch.application.ports.user_repository_port import UserRecord
from techbranch.application.services.auth_service import AuthService, TokenPair
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
from techbranch.infrastructure.rpc import auth_proto
from techbranch.infrastructure.rpc.principal_context import current_principal_id

ModelT = TypeVar("ModelT", bound=BaseModel)
T = TypeVar("T")

_GRPC_STATUS_BY_ERROR: tuple[tuple[type[AuthError], grpc.StatusCode], ...] = (
    (InvalidArgumentError, grpc.StatusCode.INVALID_ARGUMENT),
    (InvalidStateError, grpc.StatusCode.INVALID_ARGUMENT),
    (AuthenticationFailedError, grpc.StatusCode.UNAUTHENTICATED),
    (UnauthenticatedError, grpc.StatusCode.UNAUTHENTICATED),
    (InvalidTokenError, grpc.StatusCode.UNAUTHENTICATED),
    (PrincipalNotFoundError, grpc.StatusCode.NOT_FOUND),
    (DuplicateEmailError, grpc.StatusCode.ALREADY_EXISTS),
    (ExchangeFailedError, grpc.StatusCode.UNAVAILABLE),
    (ProfileFetchFailedError, grpc.StatusCode.UNAVAILABLE),
    (DeadlineExceededError, grpc.StatusCode.DEADLINE_EXCEEDED),
    (InternalError, grpc.StatusCode.INTERNAL),
)

RpcBehavior = Callable[[Any, grpc.aio.ServicerContext], Awaitable[Message]]


def grpc_status_for(error: AuthError) -> grpc.StatusCode:
    """Map one taxonomy error to its gRPC status code."""

    for error_type, status_code in _GRPC_STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status_code
    return grpc.StatusCode.INTERNAL


class AuthRpcServicer:
    """Translate RPC calls into AuthService operations."""

    def __init__(
        self,
        *,
        auth_service: AuthService,
        request_timeout_seconds: float | None = None,
    ) -> None:
        self._auth_service = auth_service
        self._request_timeout_seconds = request_timeout_seconds

    def generic_handler(self) -> grpc.GenericRpcHandler:
        """Return the generic handler to register on a grpc.aio server."""

        behaviors: dict[str, RpcBehavior] = {
            "Signup": self.signup,
            "Signin": self.signin,
            "Signout": self.signout,
            "RefreshToken": self.refresh_token,
            "GetSigninUser": self.get_signin_user,
            "GetGoogleLoginURL": self.get_google_login_url,
            "GoogleLoginCallback": self.google_login_callback,
        }
        service = auth_proto.AUTH_SERVICE_DESCRIPTOR
        return grpc.method_handlers_generic_handler(
            service.full_name,
            {
                method.name: grpc.unary_unary_rpc_method_handler(
                    behaviors[method.name],
                    request_deserializer=auth_proto.message_class(method.input_type).FromString,
                    response_serializer=auth_proto.message_class(
                        method.output_type
                    ).SerializeToString,
                )
                for method in service.methods
            },
        )

    async def signup(self, request: Message, context: grpc.aio.ServicerContext) -> Message:
        payload = await _parse(SignupRequest, request, context)
        user = await self._call(
            context,
            lambda: self._auth_service.signup(
                display_name=payload.display_name,
                email=payload.email,
                password=payload.password,
            ),
        )
        return auth_proto.SignupResponse(user=_user_message(user))

    async def signin(self, request: Message, context: grpc.aio.ServicerContext) -> Message:
        payload = await _parse(SigninRequest, request, context)
        result = await self._call(
            context,
            lambda: self._auth_service.signin(email=payload.email, password=payload.password),
        )
        return _signin_message(result.tokens)

    async def signout(self, request: Message, context: grpc.aio.ServicerContext) -> Message:
        principal_id = await _require_principal(context)
        await self._call(context, lambda: self._auth_service.signout(user_id=principal_id))
        return auth_proto.Empty()

    async def refresh_token(self, request: Message, context: grpc.aio.ServicerContext) -> Message:
        payload = await _parse(RefreshTokenRequest, request, context)
        token = await self._call(
            context,
            lambda: self._auth_service.refresh_token(refresh_token=payload.refresh_token),
        )
        return auth_proto.RefreshTokenResponse(
            access_token=token.access_token,
            token_type=token.token_type,
            expires_in=token.expires_in,
        )

    async def get_signin_user(
        self,
        request: Message,
        context: grpc.aio.ServicerContext,
    ) -> Message:
        principal_id = await _require_principal(context)
        user = await self._call(
            context,
            lambda: self._auth_service.get_signin_user(user_id=principal_id),
        )
        return auth_proto.GetSigninUserResponse(user=_user_message(user))

    async def get_google_login_url(
        self,
        request: Message,
        context: grpc.aio.ServicerContext,
    ) -> Message:
        return auth_proto.GetGoogleLoginURLResponse(url=self._auth_service.get_google_login_url())

    async def google_login_callback(
        self,
        request: Message,
        context: grpc.aio.ServicerContext,
    ) -> Message:
        payload = await _parse(GoogleLoginCallbackRequest, request, context)
        result = await self._call(
            context,
            lambda: self._auth_service.google_login_callback(
                state=payload.state,
                code=payload.code,
            ),
        )
        return _signin_message(result.tokens)

    async def _call(
        self,
        context: grpc.aio.ServicerContext,
        operation: Callable[[], Awaitable[T]],
    ) -> T:
        try:
            return await run_with_deadline(
                operation(),
                timeout_seconds=self._effective_timeout(context),
            )
        except AuthError as error:
            await _abort(context, error)

    def _effective_timeout(self, context: grpc.aio.ServicerContext) -> float | None:
        remaining = context.time_remaining()
        if remaining is None:
            return self._request_timeout_seconds
        if self._request_timeout_seconds is None:
            return remaining
        return min(remaining, self._request_timeout_seconds)


async def _parse(
    model: type[ModelT],
    request: Message,
    context: grpc.aio.ServicerContext,
) -> ModelT:
    # ListFields omits proto3 scalars at their zero value, so "" reads as missing.
    fields = {descriptor.name: value for descriptor, value in request.ListFields()}
    try:
        return model.model_validate(fields)
    except ValidationError:
        await _abort(context, InvalidArgumentError())


async def _require_principal(context: grpc.aio.ServicerContext) -> int:
    try:
        return current_principal_id()
    except UnauthenticatedError as error:
        await _abort(context, error)


async def _abort(context: grpc.aio.ServicerContext, error: AuthError) -> NoReturn:
    await context.abort(grpc_status_for(error), error.message)
    raise AssertionError("context.abort must raise")


def _user_message(record: UserRecord) -> Message:
    message = auth_proto.User(
        id=record.user_id,
        display_name=record.display_name,
        email=record.email,
    )
    message.created_at.FromDatetime(record.created_at)
    message.updated_at.FromDatetime(record.updated_at)
    return message


def _signin_message(tokens: TokenPair) -> Message:
    return auth_proto.SigninResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        token_type=tokens.token_type,
        expires_in=tokens.expires_in,
        refresh_expires_in=tokens.refresh_expires_in,
    )

from __future__ import annotations

from dataclasses import dataclass

import grpc
import pytest

from techbranch.domain.auth.errors import UnauthenticatedError
from techbranch.infrastructure.rpc.auth_interceptor import AUTH_SERVICE, RpcAuthInterceptor
from techbranch.infrastructure.rpc.principal_context import current_principal_id

SIGNIN = f"/{AUTH_SERVICE}/Signin"
GET_SIGNIN_USER = f"/{AUTH_SERVICE}/GetSigninUser"


@dataclass(frozen=True)
class _CallDetails:
    method: str
    invocation_metadata: tuple[tuple[str, str], ...] = ()


class _AbortCalled(Exception):
    def __init__(self, code: grpc.StatusCode, details: str) -> None:
        super().__init__(details)
        self.code = code
        self.details = details


class _FakeContext:
    async def abort(self, code: grpc.StatusCode, details: str) -> None:
        raise _AbortCalled(code, details)


class _FakeAuthorizer:
    def __init__(self) -> None:
        self.headers: list[str | None] = []

    async def authenticate(self, authorization_header: str | None) -> int:
        self.headers.append(authorization_header)
        if authorization_header != "Bearer good-token":
            raise UnauthenticatedError()
        return 42


class _Continuation:
    def __init__(self) -> None:
        self.calls: list[str] = []
        self.seen_principals: list[int] = []

    async def __call__(self, details: _CallDetails) -> grpc.RpcMethodHandler:
        self.calls.append(details.method)

        async def behavior(request: bytes, context: object) -> bytes:
            self.seen_principals.append(current_principal_id())
            return b"ok"

        return grpc.unary_unary_rpc_method_handler(behavior)


def _interceptor(authorizer: _FakeAuthorizer) -> RpcAuthInterceptor:
    return RpcAuthInterceptor(authorizer=authorizer)  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_unknown_method_is_rejected_with_invalid_method() -> None:
    continuation = _Continuation()
    handler = await _interceptor(_FakeAuthorizer()).intercept_service(
        continuation,
        _CallDetails(method="/techbranch.v1.Nope/Missing"),
    )

    assert handler is not None
    with pytest.raises(_AbortCalled) as aborted:
        await handler.unary_unary(b"", _FakeContext())
    assert aborted.value.code is grpc.StatusCode.UNAUTHENTICATED
    assert aborted.value.details == "invalid method"
    assert continuation.calls == []


@pytest.mark.asyncio
async def test_open_method_is_forwarded_without_authorization() -> None:
    authorizer = _FakeAuthorizer()
    continuation = _Continuation()

    handler = await _interceptor(authorizer).intercept_service(
        continuation,
        _CallDetails(method=SIGNIN),
    )

    assert handler is not None
    assert continuation.calls == [SIGNIN]
    assert authorizer.headers == []


@pytest.mark.asyncio
async def test_protected_method_without_valid_token_is_rejected() -> None:
    continuation = _Continuation()
    handler = await _interceptor(_FakeAuthorizer()).intercept_service(
        continuation,
        _CallDetails(
            method=GET_SIGNIN_USER,
            invocation_metadata=(("authorization", "Bearer bad"),),
        ),
    )

    assert handler is not None
    with pytest.raises(_AbortCalled) as aborted:
        await handler.unary_unary(b"", _FakeContext())
    assert aborted.value.code is grpc.StatusCode.UNAUTHENTICATED
    assert aborted.value.details == "invalid token"
    assert continuation.calls == []


@pytest.mark.asyncio
async def test_protected_method_binds_principal_for_handler_duration() -> None:
    authorizer = _FakeAuthorizer()
    continuation = _Continuation()

    handler = await _interceptor(authorizer).intercept_service(
        continuation,
        _CallDetails(
            method=GET_SIGNIN_USER,
            invocation_metadata=(("user-agent", "pytest"), ("Authorization", "Bearer good-token")),
        ),
    )

    assert handler is not None
    assert await handler.unary_unary(b"", _FakeContext()) == b"ok"
    assert continuation.seen_principals == [42]
    assert authorizer.headers == ["Bearer good-token"]
    with pytest.raises(UnauthenticatedError):
        current_principal_id()

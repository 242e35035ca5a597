"""Per-call principal id propagated from the RPC interceptor to handlers."""

from __future__ import annotations

from contextvars import ContextVar

from techbranch.domain.auth.errors import UnauthenticatedError

_current_principal_id: ContextVar[int | None] = ContextVar("current_principal_id", default=None)


def set_principal_id(principal_id: int) -> object:
    return _current_principal_id.set(principal_id)


def reset_principal_id(token: object) -> None:
    _current_principal_id.reset(token)  # type: ignore[arg-type]


def current_principal_id() -> int:
    """Return the authenticated principal of the running RPC or raise."""

    principal_id = _current_principal_id.get()
    if principal_id is None:
        raise UnauthenticatedError()
    return principal_id

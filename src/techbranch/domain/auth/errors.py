"""Externally observable error taxonomy for the authentication core."""

from __future__ import annotations


class AuthError(Exception):
    """Base class for errors that transports map to protocol status codes.

    The message of every subclass is client-safe; operator detail belongs in
    server-side logs and in the chained ``__cause__``.
    """

    default_message = "internal error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class InvalidArgumentError(AuthError, ValueError):
    """Input failed structural validation."""

    default_message = "invalid argument"


class AuthenticationFailedError(AuthError):
    """Credentials rejected; unified across unknown email and bad password."""

    default_message = "email or password is incorrect"

    def __init__(self) -> None:
        super().__init__()


class UnauthenticatedError(AuthError, PermissionError):
    """Request carried no valid bearer token for the requested operation."""

    default_message = "invalid token"


class InvalidTokenError(AuthError):
    """Presented token failed validation or was revoked."""

    default_message = "invalid token"

    def __init__(self) -> None:
        super().__init__()


class InvalidStateError(AuthError):
    """Federated callback arrived with an unexpected state value."""

    default_message = "invalid state"

    def __init__(self) -> None:
        super().__init__()


class DuplicateEmailError(AuthError):
    """Principal creation conflicted on the unique email invariant."""

    default_message = "email already registered"

    def __init__(self) -> None:
        super().__init__()


class PrincipalNotFoundError(AuthError, LookupError):
    """Principal lookup for a known id returned nothing."""

    default_message = "user not found"

    def __init__(self, *, user_id: int) -> None:
        super().__init__()
        self.user_id = user_id


class ExchangeFailedError(AuthError):
    """Authorization-code exchange with the identity provider failed."""

    default_message = "failed to exchange authorization code"

    def __init__(self) -> None:
        super().__init__()


class ProfileFetchFailedError(AuthError):
    """Identity provider user-info lookup failed."""

    default_message = "failed to fetch provider profile"

    def __init__(self) -> None:
        super().__init__()


class DeadlineExceededError(AuthError, TimeoutError):
    """Per-request deadline fired before the operation completed."""

    default_message = "deadline exceeded"

    def __init__(self) -> None:
        super().__init__()


class InternalError(AuthError):
    """Any other downstream failure (store, directory, hashing)."""

    default_message = "internal error"

    def __init__(self) -> None:
        super().__init__()

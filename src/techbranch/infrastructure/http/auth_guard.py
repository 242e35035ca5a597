"""HTTP request authorization: route table matching in front of bearer validation."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Receive, Scope, Send

from techbranch.application.services.request_authorizer import RequestAuthorizer
from techbranch.domain.auth.errors import UnauthenticatedError

PRINCIPAL_STATE_KEY = "principal_id"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessRule:
    """One (HTTP method, path regex) entry and whether it needs a principal."""

    method: str
    path: re.Pattern[str]
    requires_auth: bool

    def matches(self, *, method: str, path: str) -> bool:
        return self.method == method.upper() and self.path.fullmatch(path) is not None


def rule(method: str, pattern: str, *, requires_auth: bool) -> AccessRule:
    return AccessRule(method=method.upper(), path=re.compile(pattern), requires_auth=requires_auth)


DEFAULT_HTTP_ACCESS_RULES: tuple[AccessRule, ...] = (
    rule("GET", r"/docs.*", requires_auth=False),
    rule("GET", r"/openapi\.json", requires_auth=False),
    # auth
    rule("POST", r"/v1/signup", requires_auth=False),
    rule("POST", r"/v1/signin", requires_auth=False),
    rule("GET", r"/v1/signin/user", requires_auth=True),
    rule("POST", r"/v1/signout", requires_auth=True),
    rule("POST", r"/v1/refresh-token", requires_auth=False),
    rule("GET", r"/v1/oauth/google/login", requires_auth=False),
    rule("GET", r"/v1/oauth/google/callback", requires_auth=False),
    # articles
    rule("GET", r"/v1/articles", requires_auth=False),
    rule("POST", r"/v1/articles", requires_auth=True),
    rule("PUT", r"/v1/articles", requires_auth=True),
    rule("GET", r"/v1/articles/[0-9]+", requires_auth=False),
    rule("DELETE", r"/v1/articles/[0-9]+", requires_auth=True),
    # bookmarks
    rule("GET", r"/v1/articles/[0-9]+/bookmarks", requires_auth=False),
    rule("DELETE", r"/v1/articles/[0-9]+/bookmarks", requires_auth=True),
    rule("GET", r"/v1/articles/[0-9]+/bookmarks/count", requires_auth=False),
    rule("POST", r"/v1/bookmarks", requires_auth=True),
    rule("DELETE", r"/v1/users/[0-9]+/articles/[0-9]+/bookmarks", requires_auth=True),
    rule("GET", r"/v1/users/[0-9]+/bookmarks", requires_auth=True),
    rule("DELETE", r"/v1/users/[0-9]+/bookmarks", requires_auth=True),
    # comments
    rule("GET", r"/v1/articles/[0-9]+/comments", requires_auth=False),
    rule("DELETE", r"/v1/articles/[0-9]+/comments", requires_auth=True),
    rule("POST", r"/v1/comments", requires_auth=True),
    rule("DELETE", r"/v1/comments/[0-9]+", requires_auth=True),
    rule("DELETE", r"/v1/users/[0-9]+/articles/[0-9]+/comments", requires_auth=True),
    rule("GET", r"/v1/users/[0-9]+/comments", requires_auth=True),
    rule("DELETE", r"/v1/users/[0-9]+/comments", requires_auth=True),
    # users
    rule("GET", r"/v1/users", requires_auth=True),
    rule("POST", r"/v1/users", requires_auth=True),
    rule("PUT", r"/v1/users", requires_auth=True),
    rule("GET", r"/v1/users/[0-9]+", requires_auth=True),
    rule("DELETE", r"/v1/users/[0-9]+", requires_auth=True),
)


def match_access_rule(
    rules: Sequence[AccessRule],
    *,
    method: str,
    path: str,
) -> AccessRule | None:
    """Return the first rule matching method and path, in table order."""

    for candidate in rules:
        if candidate.matches(method=method, path=path):
            return candidate
    return None


class HttpAuthMiddleware:
    """ASGI middleware gating every HTTP request through the route table.

    Unknown routes are rejected with 401 "invalid url"; protected routes need
    a live bearer token, and the resolved principal id is stored on
    ``request.state.principal_id`` for downstream handlers.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        authorizer: RequestAuthorizer,
        rules: Sequence[AccessRule] = DEFAULT_HTTP_ACCESS_RULES,
    ) -> None:
        self.app = app
        self._authorizer = authorizer
        self._rules = tuple(rules)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        matched = match_access_rule(self._rules, method=request.method, path=request.url.path)
        if matched is None:
            logger.info("http_request_rejected reason=unknown_route method=%s", request.method)
            await _unauthorized("invalid url")(scope, receive, send)
            return

        if matched.requires_auth:
            try:
                principal_id = await self._authorizer.authenticate(
                    request.headers.get("authorization")
                )
            except UnauthenticatedError as error:
                await _unauthorized(error.message)(scope, receive, send)
                return
            scope.setdefault("state", {})[PRINCIPAL_STATE_KEY] = principal_id

        await self.app(scope, receive, send)


def _unauthorized(detail: str) -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content={"detail": detail},
        headers={"WWW-Authenticate": "Bearer"},
    )

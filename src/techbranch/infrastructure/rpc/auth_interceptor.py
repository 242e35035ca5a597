"""RPC request authorization: method table matching in front of bearer validation."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import grpc

from techbranch.application.services.request_authorizer import RequestAuthorizer
from techbranch.domain.auth.errors import UnauthenticatedError
from techbranch.infrastructure.rpc.principal_context import reset_principal_id, set_principal_id

AUTHORIZATION_METADATA_KEY = "authorization"
AUTH_SERVICE = "techbranch.v1.AuthService"
ARTICLE_SERVICE = "techbranch.v1.ArticleService"
BOOKMARK_SERVICE = "techbranch.v1.BookmarkService"
COMMENT_SERVICE = "techbranch.v1.CommentService"
USER_SERVICE = "techbranch.v1.UserService"

DEFAULT_RPC_AUTH_METHODS: Mapping[str, bool] = {
    f"/{AUTH_SERVICE}/Signup": False,
    f"/{AUTH_SERVICE}/Signin": False,
    f"/{AUTH_SERVICE}/Signout": True,
    f"/{AUTH_SERVICE}/RefreshToken": False,
    f"/{AUTH_SERVICE}/GetSigninUser": True,
    f"/{AUTH_SERVICE}/GetGoogleLoginURL": False,
    f"/{AUTH_SERVICE}/GoogleLoginCallback": False,
    f"/{ARTICLE_SERVICE}/CreateArticle": True,
    f"/{ARTICLE_SERVICE}/GetArticle": False,
    f"/{ARTICLE_SERVICE}/ListArticles": False,
    f"/{ARTICLE_SERVICE}/UpdateArticle": True,
    f"/{ARTICLE_SERVICE}/DeleteArticle": True,
    f"/{BOOKMARK_SERVICE}/CreateBookmark": True,
    f"/{BOOKMARK_SERVICE}/GetBookmarkCountByArticleID": False,
    f"/{BOOKMARK_SERVICE}/ListBookmarksByUserID": True,
    f"/{BOOKMARK_SERVICE}/ListBookmarksByArticleID": False,
    f"/{BOOKMARK_SERVICE}/DeleteBookmarkByUserIDAndArticleID": True,
    f"/{BOOKMARK_SERVICE}/DeleteBookmarkByUserID": True,
    f"/{BOOKMARK_SERVICE}/DeleteBookmarkByArticleID": True,
    f"/{COMMENT_SERVICE}/CreateComment": True,
    f"/{COMMENT_SERVICE}/ListCommentsByUserID": True,
    f"/{COMMENT_SERVICE}/ListCommentsByArticleID": False,
    f"/{COMMENT_SERVICE}/DeleteComment": True,
    f"/{COMMENT_SERVICE}/DeleteCommentByUserIDAndArticleID": True,
    f"/{COMMENT_SERVICE}/DeleteCommentByUserID": True,
    f"/{COMMENT_SERVICE}/DeleteCommentByArticleID": True,
    f"/{USER_SERVICE}/CreateUser": True,
    f"/{USER_SERVICE}/GetUser": True,
    f"/{USER_SERVICE}/ListUsers": True,
    f"/{USER_SERVICE}/UpdateUser": True,
    f"/{USER_SERVICE}/DeleteUser": True,
}

logger = logging.getLogger(__name__)


class RpcAuthInterceptor(grpc.aio.ServerInterceptor):
    """Server interceptor gating every RPC through the method table.

    Unknown methods are rejected with UNAUTHENTICATED "invalid method";
    protected methods need a live bearer token in the `authorization`
    metadata, and the principal id is bound for the handler's duration.
    """

    def __init__(
        self,
        *,
        authorizer: RequestAuthorizer,
        method_rules: Mapping[str, bool] = DEFAULT_RPC_AUTH_METHODS,
    ) -> None:
        self._authorizer = authorizer
        self._method_rules = dict(method_rules)

    async def intercept_service(
        self,
        continuation: Callable[[grpc.HandlerCallDetails], Awaitable[grpc.RpcMethodHandler]],
        handler_call_details: grpc.HandlerCallDetails,
    ) -> grpc.RpcMethodHandler | None:
        method = handler_call_details.method
        requires_auth = self._method_rules.get(method)
        if requires_auth is None:
            logger.info("rpc_request_rejected reason=unknown_method method=%s", method)
            return _abort_handler("invalid method")
        if not requires_auth:
            return await continuation(handler_call_details)

        authorization = _metadata_value(
            handler_call_details.invocation_metadata,
            AUTHORIZATION_METADATA_KEY,
        )
        try:
            principal_id = await self._authorizer.authenticate(authorization)
        except UnauthenticatedError as error:
            return _abort_handler(error.message)

        handler = await continuation(handler_call_details)
        if handler is None:
            return None
        return _bind_principal(handler, principal_id)


def _metadata_value(metadata: Any, key: str) -> str | None:
    for item_key, item_value in metadata or ():
        if item_key.lower() == key:
            return item_value if isinstance(item_value, str) else None
    return None


def _abort_handler(details: str) -> grpc.RpcMethodHandler:
    async def abort(request: object, context: grpc.aio.ServicerContext) -> None:
        await context.abort(grpc.StatusCode.UNAUTHENTICATED, details)

    return grpc.unary_unary_rpc_method_handler(abort)


def _bind_principal(handler: grpc.RpcMethodHandler, principal_id: int) -> grpc.RpcMethodHandler:
    if handler.unary_unary is not None:
        behavior = handler.unary_unary

        async def unary_unary(request: object, context: grpc.aio.ServicerContext) -> object:
            token = set_principal_id(principal_id)
            try:
                return await behavior(request, context)
            finally:
                reset_principal_id(token)

        return grpc.unary_unary_rpc_method_handler(
            unary_unary,
            request_deserializer=handler.request_deserializer,
            response_serializer=handler.response_serializer,
        )

    if handler.unary_stream is not None:
        stream_behavior = handler.unary_stream

        async def unary_stream(request: object, context: grpc.aio.ServicerContext) -> Any:
            token = set_principal_id(principal_id)
            try:
                async for response in stream_behavior(request, context):
                    yield response
            finally:
                reset_principal_id(token)

        return grpc.unary_stream_rpc_method_handler(
            unary_stream,
            request_deserializer=handler.request_deserializer,
            response_serializer=handler.response_serializer,
        )

    if handler.stream_unary is not None:
        client_stream_behavior = handler.stream_unary

        async def stream_unary(request_iterator: Any, context: grpc.aio.ServicerContext) -> object:
            token = set_principal_id(principal_id)
            try:
                return await client_stream_behavior(request_iterator, context)
            finally:
                reset_principal_id(token)

        return grpc.stream_unary_rpc_method_handler(
            stream_unary,
            request_deserializer=handler.request_deserializer,
            response_serializer=handler.response_serializer,
        )

    bidi_behavior = handler.stream_stream

    async def stream_stream(request_iterator: Any, context: grpc.aio.ServicerContext) -> Any:
        token = set_principal_id(principal_id)
        try:
            async for response in bidi_behavior(request_iterator, context):
                yield response
        finally:
            reset_principal_id(token)

    return grpc.stream_stream_rpc_method_handler(
        stream_stream,
        request_deserializer=handler.request_deserializer,
        response_serializer=handler.response_serializer,
    )

"""rpc entrypoint: grpc.aio server hosting AuthService behind the method table."""

from __future__ import annotations

import asyncio
import logging

import grpc

from techbranch.application.services.auth_service import AuthService
from techbranch.application.services.request_authorizer import RequestAuthorizer
from techbranch.config.settings import load_settings
from techbranch.infrastructure.auth_runtime import build_auth_runtime
from techbranch.infrastructure.logging import configure_logging
from techbranch.infrastructure.rpc.auth_interceptor import RpcAuthInterceptor
from techbranch.infrastructure.rpc.auth_servicer import AuthRpcServicer

_SHUTDOWN_GRACE_SECONDS = 5.0
logger = logging.getLogger(__name__)


def create_server(
    *,
    auth_service: AuthService,
    request_authorizer: RequestAuthorizer,
    request_timeout_seconds: float | None = None,
) -> grpc.aio.Server:
    """Create a grpc.aio server with the auth interceptor and services registered."""

    server = grpc.aio.server(interceptors=[RpcAuthInterceptor(authorizer=request_authorizer)])
    servicer = AuthRpcServicer(
        auth_service=auth_service,
        request_timeout_seconds=request_timeout_seconds,
    )
    server.add_generic_rpc_handlers((servicer.generic_handler(),))
    return server


async def serve() -> None:
    """Run the RPC server until cancelled."""

    settings = load_settings()
    configure_logging(level=settings.log_level)
    runtime = build_auth_runtime(settings)
    server = create_server(
        auth_service=runtime.auth_service,
        request_authorizer=runtime.request_authorizer,
        request_timeout_seconds=runtime.request_timeout_seconds,
    )
    server.add_insecure_port(settings.grpc_server_address)
    await server.start()
    logger.info("rpc_server_started address=%s", settings.grpc_server_address)
    try:
        await server.wait_for_termination()
    finally:
        logger.info("rpc_server_stopping")
        await server.stop(_SHUTDOWN_GRACE_SECONDS)


def main() -> None:
    """Run rpc runtime process."""

    asyncio.run(serve())


if __name__ == "__main__":
    main()

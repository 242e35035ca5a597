"""api entrypoint and HTTP route wiring."""

from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from techbranch.application.services.auth_service import AuthService
from techbranch.application.services.request_authorizer import RequestAuthorizer
from techbranch.config.settings import load_settings
from techbranch.domain.auth.errors import InvalidArgumentError
from techbranch.infrastructure.auth_runtime import build_auth_runtime
from techbranch.infrastructure.http.auth_guard import HttpAuthMiddleware
from techbranch.infrastructure.http.auth_router import build_auth_router
from techbranch.infrastructure.logging import configure_logging

API_HOST = "0.0.0.0"
API_PORT = 8080
logger = logging.getLogger(__name__)


def create_app(
    *,
    auth_service: AuthService | None = None,
    request_authorizer: RequestAuthorizer | None = None,
    request_timeout_seconds: float | None = None,
) -> FastAPI:
    """Create FastAPI app serving the authentication routes behind the route table."""

    if auth_service is None or request_authorizer is None:
        settings = load_settings()
        configure_logging(level=settings.log_level)
        runtime = build_auth_runtime(settings)
        auth_service = auth_service or runtime.auth_service
        request_authorizer = request_authorizer or runtime.request_authorizer
        if request_timeout_seconds is None:
            request_timeout_seconds = runtime.request_timeout_seconds

    app = FastAPI(title="techbranch")
    app.add_middleware(HttpAuthMiddleware, authorizer=request_authorizer)
    app.include_router(
        build_auth_router(
            auth_service=auth_service,
            request_timeout_seconds=request_timeout_seconds,
        )
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_request_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        logger.info(
            "http_request_invalid method=%s path=%s errors=%s",
            request.method,
            request.url.path,
            len(exc.errors()),
        )
        return JSONResponse(status_code=400, content={"detail": InvalidArgumentError().message})

    return app


def run_asgi_server(*, host: str = API_HOST, port: int = API_PORT) -> None:
    """Run api as a long-lived ASGI process using application factory mode."""

    uvicorn.run(
        "apps.api.main:create_app",
        host=host,
        port=port,
        factory=True,
    )


def main() -> None:
    """Run api runtime process."""

    run_asgi_server()


if __name__ == "__main__":
    main()

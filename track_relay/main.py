"""FastAPI application factory for the track relay.

This module constructs the FastAPI instance, wires global middleware,
opens the shared upstream HTTP client for the lifetime of the app and
registers the routes.  The process entry point lives in
:mod:`track_relay.cli`.
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from contextvars import ContextVar
from time import perf_counter
from typing import AsyncIterator, Awaitable, Callable

import httpx
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from track_relay import __version__
from track_relay.models import INTERNAL_ERROR, ErrorResponse, StatusResponse
from track_relay.settings import Settings, load_settings
from track_relay.utils.logger import configure_logging, logger
from track_relay.utils.upstream import MixpanelForwarder


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Attach request-level context vars for structured logging."""

    _request_id_ctx: ContextVar[str] = ContextVar("request_id", default="-")

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:  # type: ignore[override]
        start = perf_counter()
        request_id = request.headers.get("X-Request-Id") or os.urandom(4).hex()
        token = self._request_id_ctx.set(request_id)
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers["X-Request-Id"] = request_id
            return response
        finally:
            duration_ms = (perf_counter() - start) * 1000
            logger.info(
                "request.complete",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "status_code": status_code,
                    "duration_ms": round(duration_ms, 2),
                    "request_id": request_id,
                },
            )
            self._request_id_ctx.reset(token)


def create_app(
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the relay app.

    *settings* defaults to :func:`load_settings`, which raises
    ``ConfigurationError`` when the project token is missing.  *transport*
    replaces the network layer of the upstream client (tests pass an
    ``httpx.MockTransport``).
    """
    if settings is None:
        settings = load_settings()

    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        async with httpx.AsyncClient(transport=transport) as client:
            app.state.forwarder = MixpanelForwarder(client, settings.mixpanel_endpoint)
            logger.info(
                f"Proxy server is running on port {settings.port}",
                extra={"port": settings.port, "upstream": settings.mixpanel_endpoint},
            )
            try:
                yield
            finally:
                app.state.forwarder = None

    app = FastAPI(
        title="Track Relay",
        version=__version__,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None,
        openapi_url=None if settings.is_production else "/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(RequestContextMiddleware)

    # Anything a route did not handle still gets the relay's error body; details stay in the log
    @app.exception_handler(Exception)
    async def log_unhandled_exceptions(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled %s at %s %s",
            type(exc).__name__,
            request.method,
            request.url.path,
            exc_info=exc,
            extra={"path": request.url.path, "method": request.method},
        )
        return JSONResponse(status_code=500, content=ErrorResponse(error=INTERNAL_ERROR).model_dump())

    # Env-driven CORS allow-list; native clients need none
    if settings.allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.allowed_origins),
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Content-Type", "X-Request-Id"],
            max_age=600,
        )

    # Health check
    @app.get("/", response_model=StatusResponse)
    async def root() -> StatusResponse:  # pylint: disable=unused-variable
        return StatusResponse(status="ok")

    from track_relay.routers import track_routes  # noqa: WPS433

    app.include_router(track_routes.router)

    return app

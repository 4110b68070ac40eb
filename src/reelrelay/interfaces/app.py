"""FastAPI application factory (create_app)."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request
from fastapi.staticfiles import StaticFiles
from starlette.responses import Response

from reelrelay import __version__
from reelrelay.domain.exceptions import RelayError
from reelrelay.infrastructure.config import AppConfig
from reelrelay.interfaces.api.errors import error_response, internal_error_response
from reelrelay.interfaces.api.middleware import RateLimitMiddleware
from reelrelay.interfaces.app_state import AppState
from reelrelay.interfaces.composition import lifespan

log = structlog.get_logger(__name__)


async def _relay_error_handler(request: Request, exc: Exception) -> Response:
    assert isinstance(exc, RelayError)
    log.warning(
        "relay_error_unhandled",
        path=request.url.path,
        status=exc.status_code,
        error=exc.message,
    )
    return error_response(exc)


async def _unexpected_error_handler(request: Request, exc: Exception) -> Response:
    log.error(
        "unexpected_error",
        path=request.url.path,
        error_type=type(exc).__name__,
        exc_info=exc,
    )
    return internal_error_response()


def create_app(config: AppConfig) -> FastAPI:
    """Create FastAPI app: configuration only, no resource initialization.

    Resources (HTTP client, provider, use case) are created in lifespan().
    """
    app = FastAPI(
        title="reelrelay",
        description="Share-link resolver and download relay for short videos",
        version=__version__,
        lifespan=lifespan,
    )

    app.state = AppState()
    app.state.config = config

    app.add_exception_handler(RelayError, _relay_error_handler)
    app.add_exception_handler(Exception, _unexpected_error_handler)

    # Per-IP sliding window
    if config.rate_limit_max_requests > 0:
        app.add_middleware(
            RateLimitMiddleware,
            max_requests=config.rate_limit_max_requests,
            window_seconds=config.rate_limit_window_seconds,
        )

    from reelrelay.interfaces.api.media.router import router as media_router
    from reelrelay.interfaces.api.stream.router import router as stream_router

    app.include_router(media_router)
    app.include_router(stream_router)

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        """Liveness probe: 200 as long as the process is running."""
        return {"status": "ok"}

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000.0
            log.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                query=str(request.url.query),
                status_code=status_code,
                duration_ms=round(duration_ms, 2),
                client_host=(request.client.host if request.client else None),
            )

    # Mounted last so API routes win over same-named files.
    static_dir = config.static_dir
    if static_dir is not None:
        if static_dir.is_dir():
            app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
            log.info("static_files_mounted", directory=str(static_dir))
        else:
            log.warning("static_dir_missing", directory=str(static_dir))

    return app

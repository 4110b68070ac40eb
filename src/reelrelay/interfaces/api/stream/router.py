"""Download relay endpoint: proxies media bytes with attachment headers."""

from __future__ import annotations

from typing import cast

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import Response, StreamingResponse
from starlette.background import BackgroundTask

from reelrelay.domain.exceptions import ProxyError, RelayError
from reelrelay.infrastructure.relay import open_relay_stream
from reelrelay.interfaces.api.errors import error_response
from reelrelay.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["stream"])


@router.get("/stream")
async def stream_media(
    request: Request,
    url: str | None = Query(None, description="Absolute http(s) media URL"),
    source: str | None = Query(None, description="Alias for url"),
) -> Response:
    """Proxy a media file and force a download in the browser.

    The URL is validated here regardless of where it came from.  Upstream
    failures are reported as JSON before any body byte is sent.
    """
    state = cast(AppState, request.app.state)
    config = state.config
    raw_url = url or source

    try:
        relay = await open_relay_stream(
            state.http_client,
            raw_url,
            user_agent=config.http_user_agent,
            timeout=config.http_timeout_seconds,
            chunk_size=config.stream_chunk_size,
            fallback_filename=config.stream_fallback_filename,
            error_snippet_bytes=config.stream_error_snippet_bytes,
        )
    except RelayError as e:
        log.warning("stream_rejected", url=raw_url, status=e.status_code)
        return error_response(e)
    except Exception as e:
        log.exception("stream_proxy_failed", url=raw_url)
        return error_response(ProxyError(details=str(e)))

    # Closing twice is harmless; the background task covers clients that
    # disconnect before the body iterator starts.
    try:
        return StreamingResponse(
            relay.body,
            status_code=200,
            headers=relay.headers,
            background=BackgroundTask(relay.close),
        )
    except Exception as e:
        await relay.close()
        log.exception("stream_response_failed", url=raw_url, filename=relay.filename)
        return error_response(ProxyError(details=str(e)))

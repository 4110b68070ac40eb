"""Link resolution endpoints: share link in, normalized media URLs out."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, cast

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse, Response

from reelrelay.domain.exceptions import InputError, NormalizationMiss, RelayError
from reelrelay.interfaces.api.errors import error_response, internal_error_response
from reelrelay.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["media"])


def _first_link(*candidates: Any) -> str | None:
    """First candidate that is a non-blank string."""
    for value in candidates:
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


async def _read_json_body(request: Request) -> dict[str, Any]:
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise InputError("Request body must be valid JSON") from e
    return data if isinstance(data, dict) else {}


@router.get("/download")
async def download_lookup(
    request: Request,
    url: str | None = Query(None, description="Share link"),
    tiktok_url: str | None = Query(None, alias="tiktokUrl"),
) -> Response:
    """Resolve a share link for manual testing.

    Returns the normalized result even when no download URL was found
    (``downloadUrl: null``); only provider failures are errors here.
    """
    state = cast(AppState, request.app.state)
    link = _first_link(url, tiktok_url)
    if link is None:
        return error_response(InputError("Missing url query param"))

    try:
        result = await state.resolve_media_uc.execute(link)
    except RelayError as e:
        log.warning("download_lookup_failed", link=link, error=e.message)
        return error_response(e)
    except Exception:
        log.exception("download_lookup_crashed", link=link)
        return internal_error_response()

    return JSONResponse(content=result.to_payload())


@router.post("/api/download")
async def api_download(
    request: Request,
    url: str | None = Query(None, description="Share link (fallback to body)"),
) -> Response:
    """Resolve a share link posted as ``{"tiktokUrl": "..."}``.

    Accepts ``tiktokUrl`` or ``url`` in the JSON body, or ``?url=``.
    Responds 502 with the raw provider payload when no URL could be found.
    """
    state = cast(AppState, request.app.state)

    try:
        body = await _read_json_body(request)
        link = _first_link(body.get("tiktokUrl"), body.get("url"), url)
        if link is None:
            raise InputError("Missing tiktokUrl in request body or url query")

        result = await state.resolve_media_uc.execute(link)
        if not result.found:
            raise NormalizationMiss(raw=result.raw)
    except RelayError as e:
        log.warning("api_download_failed", status=e.status_code, error=e.message)
        return error_response(e)
    except Exception:
        log.exception("api_download_crashed")
        return internal_error_response()

    log.info(
        "api_download_resolved",
        download_url=result.download_url,
        has_thumbnail=result.thumbnail is not None,
    )
    return JSONResponse(content=result.to_payload())


@router.get("/tiktok/api.php")
async def legacy_lookup(
    request: Request,
    url: str | None = Query(None, description="Share link"),
) -> Response:
    """Backwards-compatible endpoint returning the provider's raw audio/video.

    Single provider attempt, no normalization.
    """
    state = cast(AppState, request.app.state)
    link = _first_link(url)
    if link is None:
        return error_response(InputError("Missing url query param"))

    try:
        raw = await state.media_provider.fetch(link)
    except Exception:
        log.exception("legacy_lookup_failed", link=link)
        return internal_error_response()

    if not isinstance(raw, Mapping):
        raw = {}
    return JSONResponse(content={"audio": raw.get("audio"), "video": raw.get("video")})

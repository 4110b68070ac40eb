"""JSON error envelope rendering for API routes."""

from __future__ import annotations

from fastapi.responses import JSONResponse

from reelrelay.domain.exceptions import RelayError


def error_response(exc: RelayError) -> JSONResponse:
    """Render *exc* as ``{ok: false, error, ...}`` with its mapped status."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


def internal_error_response(message: str = "Internal server error") -> JSONResponse:
    return JSONResponse(status_code=500, content={"ok": False, "error": message})

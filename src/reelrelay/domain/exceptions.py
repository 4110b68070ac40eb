"""Error taxonomy for the resolve and relay flows.

Every error carries the HTTP status it maps to at the request boundary and
knows how to render itself into the ``{ok: false, error, ...}`` envelope.
"""

from __future__ import annotations

from typing import Any


class RelayError(Exception):
    """Base class for all errors surfaced to API clients."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict[str, Any]:
        return {"ok": False, "error": self.message}


class InputError(RelayError):
    """Missing or malformed caller input."""

    status_code = 400


class ProviderError(RelayError):
    """The extraction provider failed on every attempt."""

    status_code = 502

    def __init__(self, message: str, *, attempts: int, details: str = "") -> None:
        super().__init__(message)
        self.attempts = attempts
        self.details = details

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["details"] = self.details
        payload["attempts"] = self.attempts
        return payload


class NormalizationMiss(RelayError):
    """The provider answered but no playable URL could be located."""

    status_code = 502

    def __init__(
        self, raw: Any, message: str = "No download URL found from provider"
    ) -> None:
        super().__init__(message)
        self.raw = raw

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["raw"] = self.raw
        return payload


class UpstreamError(RelayError):
    """The media host was unreachable or answered with a non-2xx status."""

    status_code = 502

    def __init__(
        self,
        message: str = "Upstream fetch failed",
        *,
        upstream_status: int | None = None,
        body: str = "",
    ) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status
        self.body = body

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        if self.upstream_status is not None:
            payload["status"] = self.upstream_status
        if self.body:
            payload["details"] = self.body
        return payload


class ProxyError(RelayError):
    """Unexpected failure while setting up or forwarding a relay stream."""

    status_code = 500

    def __init__(
        self, message: str = "Server error proxying video", *, details: str = ""
    ) -> None:
        super().__init__(message)
        self.details = details

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["details"] = self.details
        return payload

"""Provider adapter for hosted JSON extraction APIs.

Calls ``GET <endpoint>?<query_param>=<link>`` and hands back the decoded
JSON body untouched.  Used with self-hosted or third-party "tiktok
downloader" style services that answer with a free-form JSON document.
"""

from __future__ import annotations

import httpx
import structlog

from reelrelay.domain.entities.media import JsonValue

log = structlog.get_logger(__name__)


class ProviderResponseError(Exception):
    """The provider answered, but not with a usable JSON document."""


class HttpApiMediaProvider:
    """Implements ``MediaProviderPort`` on top of a shared httpx client."""

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        endpoint: str,
        query_param: str = "url",
        timeout: float = 20.0,
    ) -> None:
        self._http = http_client
        self._endpoint = endpoint
        self._query_param = query_param
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "http_api"

    async def fetch(self, link: str) -> JsonValue:
        resp = await self._http.get(
            self._endpoint,
            params={self._query_param: link},
            timeout=self._timeout,
        )
        if resp.status_code >= 400:
            log.warning(
                "provider_http_error",
                endpoint=self._endpoint,
                status=resp.status_code,
            )
            raise ProviderResponseError(
                f"provider returned HTTP {resp.status_code}: {resp.text[:300]}"
            )

        content_type = resp.headers.get("content-type", "")
        try:
            return resp.json()
        except ValueError as e:
            raise ProviderResponseError(
                f"provider returned non-JSON body (content-type={content_type!r})"
            ) from e

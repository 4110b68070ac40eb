"""Short share-link expansion (``vm.tiktok.com/…`` → canonical URL)."""

from __future__ import annotations

import httpx
import structlog

from reelrelay.infrastructure.normalizer.extract import is_http_url

log = structlog.get_logger(__name__)


class HttpxLinkExpander:
    """Follow redirects of an http(s) share link and return the final URL.

    Opaque tokens and failures fall through unchanged: expansion is an
    optimisation for providers that only understand canonical links.
    """

    def __init__(
        self, *, http_client: httpx.AsyncClient, timeout: float = 10.0
    ) -> None:
        self._http = http_client
        self._timeout = timeout

    async def expand(self, link: str) -> str:
        if not is_http_url(link):
            return link

        try:
            async with self._http.stream(
                "GET", link, follow_redirects=True, timeout=self._timeout
            ) as resp:
                final_url = str(resp.url)
        except httpx.HTTPError as e:
            log.warning("short_link_expand_failed", link=link, error=str(e))
            return link

        if final_url != link:
            log.info("short_link_expanded", link=link, expanded=final_url)
        return final_url

"""Provider adapter backed by yt-dlp's extractors.

``extract_info`` is blocking, so it runs in a worker thread.  The returned
info dict is passed through ``sanitize_info`` to make it JSON-safe; with a
single-file format selector yt-dlp puts the chosen media URL at the top
level under ``url``, which the normalizer picks up first.
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog
import yt_dlp

from reelrelay.domain.entities.media import JsonValue

log = structlog.get_logger(__name__)

DEFAULT_FORMAT = "best[ext=mp4]/best"


class YtDlpMediaProvider:
    """Implements ``MediaProviderPort`` using ``yt_dlp.YoutubeDL``."""

    def __init__(
        self,
        *,
        format_selector: str = DEFAULT_FORMAT,
        socket_timeout: float = 20.0,
        user_agent: str | None = None,
    ) -> None:
        self._format = format_selector
        self._socket_timeout = socket_timeout
        self._user_agent = user_agent

    @property
    def name(self) -> str:
        return "yt_dlp"

    def _options(self) -> dict[str, Any]:
        opts: dict[str, Any] = {
            "quiet": True,
            "no_warnings": True,
            "skip_download": True,
            "noplaylist": True,
            "format": self._format,
            "socket_timeout": self._socket_timeout,
        }
        if self._user_agent:
            opts["http_headers"] = {"User-Agent": self._user_agent}
        return opts

    def _extract(self, link: str) -> JsonValue:
        with yt_dlp.YoutubeDL(self._options()) as ydl:
            info = ydl.extract_info(link, download=False)
            return ydl.sanitize_info(info)

    async def fetch(self, link: str) -> JsonValue:
        log.debug("yt_dlp_extract", link=link, format=self._format)
        return await asyncio.to_thread(self._extract, link)

"""Pass-through download relay for direct media URLs.

The relay re-validates every URL it is handed: ``/stream`` accepts
caller-supplied input, so nothing upstream of it is trusted.  Bytes flow
through ``httpx`` streaming without buffering the full file in memory,
and the upstream response is always closed once the body iterator ends.
"""

from __future__ import annotations

import re
from collections.abc import AsyncIterator
from urllib.parse import quote, unquote, urlparse

import httpx
import structlog

from reelrelay.domain.entities.media import RelayStream
from reelrelay.domain.exceptions import InputError, UpstreamError

log = structlog.get_logger(__name__)

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)
DEFAULT_FILENAME = "tiktok_video.mp4"
DEFAULT_CHUNK_SIZE = 65536
DEFAULT_SNIPPET_BYTES = 2048

_ALLOWED_SCHEMES = frozenset({"http", "https"})

# RFC 5987 extended form: filename*=UTF-8''clip%20one.mp4
_FILENAME_EXT_RE = re.compile(
    r"filename\*\s*=\s*([\w!#$%&+^`{}~-]*)'[^']*'([^;]+)", re.IGNORECASE
)
_FILENAME_QUOTED_RE = re.compile(r'filename\s*=\s*"([^"]*)"', re.IGNORECASE)
_FILENAME_TOKEN_RE = re.compile(r"filename\s*=\s*([^;\s]+)", re.IGNORECASE)

_UNSAFE_FILENAME_CHARS = re.compile(r'["\r\n\x00]')
_NON_ASCII = re.compile(r"[^\x20-\x7e]")


def validate_relay_url(raw_url: str | None) -> str:
    """Return *raw_url* stripped, or raise ``InputError``.

    Accepts only absolute URLs with an ``http``/``https`` scheme and a host.
    """
    if raw_url is None or not raw_url.strip():
        raise InputError("Missing url query parameter")

    candidate = raw_url.strip()
    try:
        parsed = urlparse(candidate)
    except ValueError as e:
        raise InputError("Invalid URL") from e

    if not parsed.scheme or not parsed.netloc:
        raise InputError("Invalid URL")
    if parsed.scheme.lower() not in _ALLOWED_SCHEMES:
        raise InputError("Invalid URL protocol")
    if not parsed.hostname:
        raise InputError("Invalid URL")
    return candidate


def _clean_filename(name: str) -> str:
    # Drop any directory part and characters that would break the header.
    name = name.replace("\\", "/").rsplit("/", 1)[-1]
    return _UNSAFE_FILENAME_CHARS.sub("", name).strip()


def filename_from_disposition(value: str | None) -> str | None:
    """Extract a filename from a ``Content-Disposition`` header value.

    Prefers the extended ``filename*=charset''…`` form, then a quoted or
    bare ``filename=``.  Percent-escapes are decoded.
    """
    if not value:
        return None

    match = _FILENAME_EXT_RE.search(value)
    if match:
        charset = match.group(1) or "utf-8"
        raw = match.group(2).strip().strip('"')
        try:
            decoded = unquote(raw, encoding=charset, errors="replace")
        except LookupError:
            decoded = unquote(raw)
        name = _clean_filename(decoded)
        if name:
            return name

    match = _FILENAME_QUOTED_RE.search(value) or _FILENAME_TOKEN_RE.search(value)
    if match:
        name = _clean_filename(unquote(match.group(1).strip("'")))
        if name:
            return name
    return None


def filename_from_url(url: str) -> str | None:
    """Last path segment of *url* when it looks like a file name."""
    last = urlparse(url).path.rsplit("/", 1)[-1]
    name = _clean_filename(unquote(last))
    if name and "." in name:
        return name
    return None


def content_disposition(filename: str) -> str:
    """Attachment header value that survives latin-1 header encoding.

    Non-ASCII names get an underscored ``filename=`` fallback plus the
    RFC 5987 ``filename*=UTF-8''...`` form that browsers prefer.
    """
    fallback = _NON_ASCII.sub("_", filename)
    value = f'attachment; filename="{fallback}"'
    if fallback != filename:
        value += f"; filename*=UTF-8''{quote(filename, safe='')}"
    return value


def derive_filename(
    headers: httpx.Headers | dict[str, str],
    url: str,
    fallback: str = DEFAULT_FILENAME,
) -> str:
    """Choose the download filename: disposition, then URL path, then fallback."""
    return (
        filename_from_disposition(headers.get("content-disposition"))
        or filename_from_url(url)
        or fallback
    )


async def _read_snippet(resp: httpx.Response, limit: int) -> str:
    """Read at most *limit* bytes of an error body for diagnostics."""
    buf = bytearray()
    try:
        async for chunk in resp.aiter_bytes():
            buf.extend(chunk)
            if len(buf) >= limit:
                break
    except httpx.HTTPError:
        pass
    return bytes(buf[:limit]).decode("utf-8", errors="replace")


async def open_relay_stream(
    http_client: httpx.AsyncClient,
    raw_url: str | None,
    *,
    user_agent: str = BROWSER_USER_AGENT,
    timeout: float = 30.0,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    fallback_filename: str = DEFAULT_FILENAME,
    error_snippet_bytes: int = DEFAULT_SNIPPET_BYTES,
) -> RelayStream:
    """Open an upstream media response and prepare it for forwarding.

    Raises:
        InputError: *raw_url* is missing, relative, or not http(s).
            Raised before any outbound request is made.
        UpstreamError: the host was unreachable or answered non-2xx.
            No body bytes are handed out in that case.
    """
    url = validate_relay_url(raw_url)

    request = http_client.build_request(
        "GET",
        url,
        headers={
            "User-Agent": user_agent,
            "Accept": "*/*",
            # Identity keeps Content-Length meaningful for the pass-through.
            "Accept-Encoding": "identity",
        },
        timeout=timeout,
    )
    try:
        resp = await http_client.send(request, stream=True, follow_redirects=True)
    except httpx.HTTPError as e:
        log.warning("relay_upstream_unreachable", url=url, error=str(e))
        raise UpstreamError(body=f"{type(e).__name__}: {e}") from e

    if not resp.is_success:
        snippet = await _read_snippet(resp, error_snippet_bytes)
        await resp.aclose()
        log.warning("relay_upstream_error", url=url, status=resp.status_code)
        raise UpstreamError(upstream_status=resp.status_code, body=snippet)

    filename = derive_filename(resp.headers, url, fallback_filename)
    headers = {
        "Content-Type": resp.headers.get("content-type") or "application/octet-stream",
        "Content-Disposition": content_disposition(filename),
    }
    content_length = resp.headers.get("content-length")
    if content_length and "content-encoding" not in resp.headers:
        headers["Content-Length"] = content_length

    async def _iter() -> AsyncIterator[bytes]:
        try:
            async for chunk in resp.aiter_bytes(chunk_size=chunk_size):
                yield chunk
        except httpx.HTTPError as e:
            log.warning("relay_stream_interrupted", url=url, error=str(e))
            raise
        finally:
            await resp.aclose()

    log.info(
        "relay_stream_opened",
        url=url,
        filename=filename,
        content_type=headers["Content-Type"],
        content_length=content_length,
    )
    return RelayStream(
        filename=filename,
        headers=headers,
        body=_iter(),
        close=resp.aclose,
    )

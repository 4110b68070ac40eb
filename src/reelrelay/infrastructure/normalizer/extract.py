"""Locate a playable media URL inside an untyped provider result.

Providers return JSON trees with no stable schema: the URL may sit at the
top level, under ``video``/``data`` sub-objects, inside ``urls`` lists, or
behind any of a dozen key spellings.  The search below tries a prioritized
key list first and falls back to a generic positional scan, bounded by
nesting depth so that pathological payloads stay cheap.

Depth counts container hops from the root value (root = 0).  A URL string
sitting deeper than ``max_depth`` is never returned.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from reelrelay.domain.entities.media import JsonValue, NormalizedResult

DEFAULT_MAX_DEPTH = 3

# Tie-break order when several keys carry a URL.  Earlier wins.
CANDIDATE_KEYS: tuple[str, ...] = (
    "downloadUrl",
    "download",
    "url",
    "playAddr",
    "play_url",
    "videoUrl",
    "video",
    "video_url",
    "noWatermark",
    "no_watermark",
    "no_watermark_url",
    "watermarkless",
    "no_wm",
    "wmfree",
    "src",
    "source",
)

THUMBNAIL_KEYS: tuple[str, ...] = ("thumbnail", "cover", "thumb")
THUMBNAIL_CONTAINERS: tuple[str, ...] = ("video", "data")

_URL_RE = re.compile(r"^https?://[^\s/?#]+", re.IGNORECASE)


def is_http_url(value: Any) -> bool:
    """Return True for strings that look like absolute http(s) URLs."""
    return isinstance(value, str) and _URL_RE.match(value) is not None


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _first_in_list(items: Any, depth: int, max_depth: int) -> str | None:
    """Scan a candidate-key list: URL strings and mappings only, in order."""
    if depth > max_depth:
        return None
    for item in items:
        if isinstance(item, str):
            if depth + 1 <= max_depth and is_http_url(item):
                return item
        elif isinstance(item, Mapping):
            found = _extract(item, depth + 1, max_depth)
            if found is not None:
                return found
    return None


def _extract(value: Any, depth: int, max_depth: int) -> str | None:
    if depth > max_depth:
        return None

    if isinstance(value, str):
        return value if is_http_url(value) else None

    if isinstance(value, Mapping):
        for key in CANDIDATE_KEYS:
            if key not in value:
                continue
            candidate = value[key]
            if _is_sequence(candidate):
                found = _first_in_list(candidate, depth + 1, max_depth)
            else:
                found = _extract(candidate, depth + 1, max_depth)
            if found is not None:
                return found

        # No preferred key matched: generic scan in insertion order
        for child in value.values():
            found = _extract(child, depth + 1, max_depth)
            if found is not None:
                return found
        return None

    if _is_sequence(value):
        for item in value:
            found = _extract(item, depth + 1, max_depth)
            if found is not None:
                return found

    return None


def extract_download_url(
    value: JsonValue, max_depth: int = DEFAULT_MAX_DEPTH
) -> str | None:
    """Find the most plausible direct media URL in *value*.

    Never raises on malformed input; returns ``None`` when nothing within
    *max_depth* looks like an http(s) URL.

    >>> extract_download_url({"url": "http://a", "download": "http://b"})
    'http://b'
    """
    return _extract(value, 0, max_depth)


def extract_thumbnail(value: JsonValue) -> str | None:
    """Best-effort thumbnail lookup on the result and its video/data objects."""
    if not isinstance(value, Mapping):
        return None

    containers: list[Mapping[str, Any]] = [value]
    for name in THUMBNAIL_CONTAINERS:
        sub = value.get(name)
        if isinstance(sub, Mapping):
            containers.append(sub)

    for container in containers:
        for key in THUMBNAIL_KEYS:
            candidate = container.get(key)
            if is_http_url(candidate):
                return candidate
    return None


def normalize_result(
    raw: JsonValue, max_depth: int = DEFAULT_MAX_DEPTH
) -> NormalizedResult:
    """Build the stable ``NormalizedResult`` view of a provider payload."""
    return NormalizedResult(
        download_url=extract_download_url(raw, max_depth),
        thumbnail=extract_thumbnail(raw),
        raw=raw,
    )

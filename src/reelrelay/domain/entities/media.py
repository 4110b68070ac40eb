"""Domain entities for link resolution and media relaying.

Pure value objects with no framework dependencies and no I/O.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Union

# Untyped provider payload: any JSON-shaped tree.
JsonValue = Union[
    str, int, float, bool, None, list["JsonValue"], Mapping[str, "JsonValue"]
]


@dataclass(frozen=True)
class NormalizedResult:
    """Stable view of a provider result.

    ``download_url`` is either ``None`` or an absolute http(s) URL.
    ``raw`` always carries the untouched provider payload for diagnostics.
    """

    download_url: str | None
    thumbnail: str | None
    raw: Any = None

    @property
    def found(self) -> bool:
        return self.download_url is not None

    def to_payload(self) -> dict[str, Any]:
        """JSON body for a successful resolve response."""
        return {
            "ok": True,
            "downloadUrl": self.download_url,
            "thumbnail": self.thumbnail,
            "raw": self.raw,
        }


@dataclass
class RelayStream:
    """An open upstream media response ready to be forwarded."""

    filename: str
    headers: dict[str, str]
    body: AsyncIterator[bytes]
    close: Callable[[], Awaitable[None]] = field(repr=False)

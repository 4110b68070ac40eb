"""Port for the external link-to-media extraction capability."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from reelrelay.domain.entities.media import JsonValue


@runtime_checkable
class MediaProviderPort(Protocol):
    """Resolves a share link into the provider's raw result tree.

    The shape of the result is not part of the contract: keys, nesting and
    value types vary between providers and between calls.
    """

    @property
    def name(self) -> str:
        """Short provider identifier used in logs (e.g. 'yt_dlp')."""
        ...

    async def fetch(self, link: str) -> JsonValue:
        """Return the raw result for *link*.

        Raises any exception on failure; callers decide about retries.
        """
        ...

"""Port for expanding short share links to their canonical URL."""

from __future__ import annotations

from typing import Protocol


class LinkExpanderPort(Protocol):
    async def expand(self, link: str) -> str:
        """Return the canonical form of *link*, or *link* itself on failure."""
        ...

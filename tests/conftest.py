"""Shared test fixtures for the reelrelay test suite."""

from __future__ import annotations

from typing import Any

import pytest

from reelrelay.domain.entities.media import JsonValue
from reelrelay.infrastructure.config import AppConfig

# ---------------------------------------------------------------------------
# Provider payload fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def nested_payload() -> dict[str, Any]:
    """Typical hosted-API answer: URL and cover nested under ``video``."""
    return {
        "video": {
            "noWatermark": "https://cdn.example/x.mp4",
            "cover": "https://cdn.example/x.jpg",
        }
    }


@pytest.fixture()
def ytdlp_payload() -> dict[str, Any]:
    """Trimmed yt-dlp info dict for a single-file format."""
    return {
        "id": "7300000000000000000",
        "title": "clip",
        "url": "https://v16.cdn.example/video/7300.mp4",
        "ext": "mp4",
        "thumbnail": "https://p16.cdn.example/cover/7300.jpeg",
        "formats": [
            {"format_id": "h264_540p", "url": "https://v16.cdn.example/540.mp4"},
        ],
    }


# ---------------------------------------------------------------------------
# Fake ports
# ---------------------------------------------------------------------------


class StubProvider:
    """MediaProviderPort fake: replays queued outcomes, records calls.

    Each queued item is either a payload (returned) or an exception
    instance (raised).  The last item repeats once the queue is drained.
    """

    def __init__(self, *outcomes: Any, name: str = "stub") -> None:
        self._outcomes: list[Any] = list(outcomes) or [{}]
        self._name = name
        self.calls: list[str] = []

    @property
    def name(self) -> str:
        return self._name

    async def fetch(self, link: str) -> JsonValue:
        self.calls.append(link)
        index = min(len(self.calls) - 1, len(self._outcomes) - 1)
        outcome = self._outcomes[index]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class StubExpander:
    """LinkExpanderPort fake mapping short links to canonical ones."""

    def __init__(self, mapping: dict[str, str] | None = None) -> None:
        self._mapping = mapping or {}
        self.calls: list[str] = []

    async def expand(self, link: str) -> str:
        self.calls.append(link)
        return self._mapping.get(link, link)


@pytest.fixture()
def app_config() -> AppConfig:
    """Defaults with retry delays disabled so tests never sleep."""
    return AppConfig.model_validate(
        {
            "environment": "test",
            "provider": {"retry_base_delay_seconds": 0.0},
        }
    )


@pytest.fixture()
def make_provider() -> type[StubProvider]:
    """Factory for StubProvider: ``make_provider(payload_or_exc, ...)``."""
    return StubProvider


@pytest.fixture()
def make_expander() -> type[StubExpander]:
    return StubExpander

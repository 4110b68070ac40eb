"""Media provider wrapper with linear-backoff retry."""

from __future__ import annotations

import asyncio

import structlog

from reelrelay.domain.entities.media import JsonValue
from reelrelay.domain.exceptions import ProviderError
from reelrelay.domain.ports.media_provider import MediaProviderPort

log = structlog.get_logger(__name__)


class RetryingMediaProvider:
    """Wraps a ``MediaProviderPort`` and retries any failure.

    Attempt *n* (1-based) that fails is followed by a sleep of
    ``base_delay * n`` seconds before the next one.  Every exception counts
    as retryable; there is no jitter and no status classification.

    When all *max_attempts* fail, raises ``ProviderError`` chained to the
    last underlying exception.
    """

    def __init__(
        self,
        wrapped: MediaProviderPort,
        *,
        max_attempts: int = 2,
        base_delay: float = 0.3,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._wrapped = wrapped
        self._max_attempts = max_attempts
        self._base_delay = base_delay

    @property
    def name(self) -> str:
        return self._wrapped.name

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    async def fetch(self, link: str) -> JsonValue:
        last_error: Exception | None = None

        for attempt in range(1, self._max_attempts + 1):
            try:
                return await self._wrapped.fetch(link)
            except Exception as e:  # noqa: BLE001
                last_error = e
                log.warning(
                    "provider_attempt_failed",
                    provider=self.name,
                    attempt=attempt,
                    max_attempts=self._max_attempts,
                    error=str(e) or type(e).__name__,
                )

            if attempt < self._max_attempts:
                await asyncio.sleep(self._base_delay * attempt)

        assert last_error is not None
        raise ProviderError(
            "Provider call failed",
            attempts=self._max_attempts,
            details=f"{type(last_error).__name__}: {last_error}",
        ) from last_error

"""Resolve use case: share link -> provider result -> normalized URLs."""

from __future__ import annotations

from collections.abc import Callable, Mapping

import structlog

from reelrelay.domain.entities.media import JsonValue, NormalizedResult
from reelrelay.domain.exceptions import InputError
from reelrelay.domain.ports.link_expander import LinkExpanderPort
from reelrelay.domain.ports.media_provider import MediaProviderPort

log = structlog.get_logger(__name__)

NormalizeFn = Callable[[JsonValue], NormalizedResult]


def _describe(raw: JsonValue) -> list[str] | str:
    if isinstance(raw, Mapping):
        return sorted(str(k) for k in raw)
    return type(raw).__name__


class ResolveMediaUseCase:
    """Turns a share link into a ``NormalizedResult``.

    The provider is expected to carry its own retry policy (see
    ``RetryingMediaProvider``); errors it raises propagate unchanged.
    A result without a download URL is returned as-is; the caller
    decides whether that is a client-visible failure.
    """

    def __init__(
        self,
        *,
        provider: MediaProviderPort,
        normalize_fn: NormalizeFn,
        expander: LinkExpanderPort | None = None,
    ) -> None:
        self._provider = provider
        self._normalize = normalize_fn
        self._expander = expander

    async def execute(self, link: str | None) -> NormalizedResult:
        if link is None or not link.strip():
            raise InputError("Missing tiktokUrl in request body or url query")
        link = link.strip()

        if self._expander is not None:
            link = await self._expander.expand(link)

        raw = await self._provider.fetch(link)
        log.info(
            "provider_result_received",
            provider=self._provider.name,
            keys=_describe(raw),
        )

        result = self._normalize(raw)
        if not result.found:
            log.warning("provider_result_without_url", provider=self._provider.name)
        return result

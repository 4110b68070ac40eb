"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

import functools
from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from reelrelay.application.use_cases import ResolveMediaUseCase
from reelrelay.domain.ports import MediaProviderPort
from reelrelay.infrastructure.common import RetryingMediaProvider
from reelrelay.infrastructure.config.schema import AppConfig
from reelrelay.infrastructure.normalizer import normalize_result
from reelrelay.infrastructure.providers import (
    HttpApiMediaProvider,
    HttpxLinkExpander,
    YtDlpMediaProvider,
)
from reelrelay.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


def build_media_provider(
    config: AppConfig, http_client: httpx.AsyncClient
) -> MediaProviderPort:
    """Instantiate the configured extraction backend."""
    if config.provider_backend == "http_api":
        return HttpApiMediaProvider(
            http_client=http_client,
            endpoint=config.provider_endpoint,
            query_param=config.provider_query_param,
            timeout=config.provider_timeout_seconds,
        )
    return YtDlpMediaProvider(
        format_selector=config.provider_ytdlp_format,
        socket_timeout=config.provider_timeout_seconds,
        user_agent=config.http_user_agent,
    )


def wire_state(state: AppState, http_client: httpx.AsyncClient) -> None:
    """Attach provider, expander and use case to *state*.

    Split out of lifespan() so tests can wire a state around a mock client.
    """
    config = state.config
    state.http_client = http_client

    state.media_provider = build_media_provider(config, http_client)
    state.retrying_provider = RetryingMediaProvider(
        state.media_provider,
        max_attempts=config.provider_max_attempts,
        base_delay=config.provider_retry_base_delay_seconds,
    )
    log.info(
        "media_provider_initialized",
        backend=config.provider_backend,
        max_attempts=config.provider_max_attempts,
    )

    state.link_expander = (
        HttpxLinkExpander(
            http_client=http_client, timeout=config.http_timeout_seconds
        )
        if config.provider_expand_short_links
        else None
    )

    state.resolve_media_uc = ResolveMediaUseCase(
        provider=state.retrying_provider,
        normalize_fn=functools.partial(
            normalize_result, max_depth=config.normalizer_max_depth
        ),
        expander=state.link_expander,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan Hook: Initialize and cleanup all resources (DI Composition Root).

    Order matters:
        1. HTTP Client (required by provider, expander and relay)
        2. Media provider + retry wrapper
        3. Link expander
        4. Resolve use case
    """
    state = cast(AppState, app.state)
    config = state.config

    http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        headers={"User-Agent": config.http_user_agent},
        follow_redirects=config.http_follow_redirects,
    )
    log.info("http_client_initialized", timeout=config.http_timeout_seconds)

    wire_state(state, http_client)
    log.info("app_startup_complete")

    try:
        yield
    finally:
        await state.http_client.aclose()
        log.info("http_client_closed")
        log.info("app_shutdown_complete")

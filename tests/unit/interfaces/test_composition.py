"""Tests for the composition root (provider selection, state wiring)."""

from __future__ import annotations

import httpx
import pytest
from fastapi import FastAPI

from reelrelay.application.use_cases import ResolveMediaUseCase
from reelrelay.infrastructure.common import RetryingMediaProvider
from reelrelay.infrastructure.config import AppConfig
from reelrelay.infrastructure.providers import (
    HttpApiMediaProvider,
    HttpxLinkExpander,
    YtDlpMediaProvider,
)
from reelrelay.interfaces.app_state import AppState
from reelrelay.interfaces.composition import build_media_provider, lifespan, wire_state


def _state(**config: object) -> AppState:
    state = AppState()
    state.config = AppConfig.model_validate(config)
    return state


class TestBuildMediaProvider:
    def test_default_is_ytdlp(self) -> None:
        provider = build_media_provider(AppConfig(), httpx.AsyncClient())
        assert isinstance(provider, YtDlpMediaProvider)

    def test_http_api_backend(self) -> None:
        config = AppConfig.model_validate(
            {"provider": {"backend": "http_api", "endpoint": "https://api.example/dl"}}
        )
        provider = build_media_provider(config, httpx.AsyncClient())
        assert isinstance(provider, HttpApiMediaProvider)
        assert provider.name == "http_api"


class TestWireState:
    def test_wires_retry_and_use_case(self) -> None:
        state = _state(provider={"max_attempts": 3})
        client = httpx.AsyncClient()
        wire_state(state, client)

        assert state.http_client is client
        assert isinstance(state.retrying_provider, RetryingMediaProvider)
        assert state.retrying_provider.max_attempts == 3
        assert isinstance(state.link_expander, HttpxLinkExpander)
        assert isinstance(state.resolve_media_uc, ResolveMediaUseCase)

    def test_expander_can_be_disabled(self) -> None:
        state = _state(provider={"expand_short_links": False})
        wire_state(state, httpx.AsyncClient())
        assert state.link_expander is None


class TestLifespan:
    @pytest.mark.asyncio()
    async def test_creates_and_closes_http_client(self) -> None:
        app = FastAPI()
        app.state = _state()

        async with lifespan(app):
            client = app.state.http_client
            assert isinstance(client, httpx.AsyncClient)
            assert not client.is_closed

        assert client.is_closed

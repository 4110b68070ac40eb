"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from reelrelay.infrastructure.config import AppConfig

if TYPE_CHECKING:
    from reelrelay.application.use_cases import ResolveMediaUseCase
    from reelrelay.domain.ports import LinkExpanderPort, MediaProviderPort


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Infrastructure
    http_client: httpx.AsyncClient

    # Extraction provider (single attempt) and its retrying wrapper
    media_provider: MediaProviderPort
    retrying_provider: MediaProviderPort

    # Short-link expansion (None when disabled)
    link_expander: LinkExpanderPort | None

    # Application services
    resolve_media_uc: ResolveMediaUseCase

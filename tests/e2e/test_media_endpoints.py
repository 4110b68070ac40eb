"""End-to-end tests for the link resolution endpoints.

Tests the full request-response cycle through:
    HTTP Request -> FastAPI Router -> Use Case -> Retry -> Normalizer -> JSON

Mocks are applied at the **port** level (MediaProviderPort) so that the real
use case, retry wrapper, normalizer and router logic are exercised.
"""

from __future__ import annotations

import functools
from typing import Any

import httpx
from fastapi import FastAPI
from fastapi.testclient import TestClient

from reelrelay.application.use_cases import ResolveMediaUseCase
from reelrelay.infrastructure.common import RetryingMediaProvider
from reelrelay.infrastructure.config import AppConfig
from reelrelay.infrastructure.normalizer import normalize_result
from reelrelay.interfaces.api.media.router import router

_LINK = "https://www.tiktok.com/@user/video/7300"


def _make_app(provider: Any, *, config: AppConfig | None = None) -> FastAPI:
    """Build a minimal FastAPI app with the media router + stubbed state."""
    config = config or AppConfig.model_validate(
        {"provider": {"retry_base_delay_seconds": 0.0}}
    )
    app = FastAPI()
    app.include_router(router)

    retrying = RetryingMediaProvider(
        provider,
        max_attempts=config.provider_max_attempts,
        base_delay=config.provider_retry_base_delay_seconds,
    )
    app.state.config = config
    app.state.http_client = httpx.AsyncClient()
    app.state.media_provider = provider
    app.state.retrying_provider = retrying
    app.state.link_expander = None
    app.state.resolve_media_uc = ResolveMediaUseCase(
        provider=retrying,
        normalize_fn=functools.partial(
            normalize_result, max_depth=config.normalizer_max_depth
        ),
    )
    return app


# ---------------------------------------------------------------------------
# POST /api/download
# ---------------------------------------------------------------------------


class TestApiDownload:
    def test_resolves_nested_payload(
        self, make_provider: Any, nested_payload: dict[str, Any]
    ) -> None:
        provider = make_provider(nested_payload)
        client = TestClient(_make_app(provider))

        resp = client.post("/api/download", json={"tiktokUrl": _LINK})

        assert resp.status_code == 200
        assert resp.json() == {
            "ok": True,
            "downloadUrl": "https://cdn.example/x.mp4",
            "thumbnail": "https://cdn.example/x.jpg",
            "raw": nested_payload,
        }
        assert provider.calls == [_LINK]

    def test_accepts_url_body_key(self, make_provider: Any) -> None:
        provider = make_provider({"url": "https://cdn.example/a.mp4"})
        client = TestClient(_make_app(provider))

        resp = client.post("/api/download", json={"url": _LINK})

        assert resp.status_code == 200
        assert resp.json()["downloadUrl"] == "https://cdn.example/a.mp4"

    def test_falls_back_to_query_param(self, make_provider: Any) -> None:
        provider = make_provider({"url": "https://cdn.example/a.mp4"})
        client = TestClient(_make_app(provider))

        resp = client.post("/api/download", params={"url": _LINK})

        assert resp.status_code == 200
        assert provider.calls == [_LINK]

    def test_missing_link_is_400(self, make_provider: Any) -> None:
        provider = make_provider({})
        client = TestClient(_make_app(provider))

        resp = client.post("/api/download", json={})

        assert resp.status_code == 400
        assert resp.json() == {
            "ok": False,
            "error": "Missing tiktokUrl in request body or url query",
        }
        assert provider.calls == []

    def test_invalid_json_is_400(self, make_provider: Any) -> None:
        client = TestClient(_make_app(make_provider({})))
        resp = client.post(
            "/api/download",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )
        assert resp.status_code == 400
        assert resp.json()["ok"] is False

    def test_no_url_in_result_is_502_with_raw(self, make_provider: Any) -> None:
        raw = {"status": "private", "video": {"cover": "https://cdn.example/c.jpg"}}
        client = TestClient(_make_app(make_provider(raw)))

        resp = client.post("/api/download", json={"tiktokUrl": _LINK})

        assert resp.status_code == 502
        assert resp.json() == {
            "ok": False,
            "error": "No download URL found from provider",
            "raw": raw,
        }

    def test_provider_failure_is_502_after_retries(self, make_provider: Any) -> None:
        provider = make_provider(RuntimeError("upstream down"))
        client = TestClient(_make_app(provider))

        resp = client.post("/api/download", json={"tiktokUrl": _LINK})

        assert resp.status_code == 502
        body = resp.json()
        assert body["ok"] is False
        assert body["error"] == "Provider call failed"
        assert "upstream down" in body["details"]
        assert len(provider.calls) == 2

    def test_recovers_on_second_attempt(
        self, make_provider: Any, nested_payload: dict[str, Any]
    ) -> None:
        provider = make_provider(RuntimeError("flaky"), nested_payload)
        client = TestClient(_make_app(provider))

        resp = client.post("/api/download", json={"tiktokUrl": _LINK})

        assert resp.status_code == 200
        assert len(provider.calls) == 2


# ---------------------------------------------------------------------------
# GET /download
# ---------------------------------------------------------------------------


class TestDownloadLookup:
    def test_resolves(self, make_provider: Any, nested_payload: dict) -> None:
        client = TestClient(_make_app(make_provider(nested_payload)))
        resp = client.get("/download", params={"url": _LINK})
        assert resp.status_code == 200
        assert resp.json()["downloadUrl"] == "https://cdn.example/x.mp4"

    def test_tiktok_url_param(self, make_provider: Any) -> None:
        provider = make_provider({})
        client = TestClient(_make_app(provider))
        client.get("/download", params={"tiktokUrl": _LINK})
        assert provider.calls == [_LINK]

    def test_no_url_found_is_still_200(self, make_provider: Any) -> None:
        client = TestClient(_make_app(make_provider({"status": "x"})))
        resp = client.get("/download", params={"url": _LINK})
        assert resp.status_code == 200
        assert resp.json()["downloadUrl"] is None
        assert resp.json()["raw"] == {"status": "x"}

    def test_missing_param_is_400(self, make_provider: Any) -> None:
        client = TestClient(_make_app(make_provider({})))
        resp = client.get("/download")
        assert resp.status_code == 400
        assert resp.json() == {"ok": False, "error": "Missing url query param"}

    def test_provider_failure_is_502(self, make_provider: Any) -> None:
        client = TestClient(_make_app(make_provider(RuntimeError("x"))))
        resp = client.get("/download", params={"url": _LINK})
        assert resp.status_code == 502


# ---------------------------------------------------------------------------
# GET /tiktok/api.php
# ---------------------------------------------------------------------------


class TestLegacyLookup:
    def test_returns_audio_and_video(self, make_provider: Any) -> None:
        raw = {
            "audio": "https://cdn.example/a.mp3",
            "video": ["https://cdn.example/v.mp4"],
            "other": 1,
        }
        client = TestClient(_make_app(make_provider(raw)))

        resp = client.get("/tiktok/api.php", params={"url": _LINK})

        assert resp.status_code == 200
        assert resp.json() == {
            "audio": "https://cdn.example/a.mp3",
            "video": ["https://cdn.example/v.mp4"],
        }

    def test_absent_fields_are_null(self, make_provider: Any) -> None:
        client = TestClient(_make_app(make_provider(["not", "a", "mapping"])))
        resp = client.get("/tiktok/api.php", params={"url": _LINK})
        assert resp.json() == {"audio": None, "video": None}

    def test_missing_param_is_400(self, make_provider: Any) -> None:
        client = TestClient(_make_app(make_provider({})))
        resp = client.get("/tiktok/api.php")
        assert resp.status_code == 400
        assert resp.json() == {"ok": False, "error": "Missing url query param"}

    def test_provider_failure_is_500_single_attempt(
        self, make_provider: Any
    ) -> None:
        provider = make_provider(RuntimeError("boom"))
        client = TestClient(_make_app(provider))

        resp = client.get("/tiktok/api.php", params={"url": _LINK})

        assert resp.status_code == 500
        assert resp.json() == {"ok": False, "error": "Internal server error"}
        assert len(provider.calls) == 1

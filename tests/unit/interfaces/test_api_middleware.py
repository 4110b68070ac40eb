"""Tests for RateLimitMiddleware."""

from __future__ import annotations

import time

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from reelrelay.interfaces.api.middleware import RateLimitMiddleware


async def _hello(request: Request) -> JSONResponse:
    return JSONResponse({"msg": "ok"})


def _create_app(max_requests: int = 5, window_seconds: float = 55.0) -> Starlette:
    app = Starlette(routes=[Route("/", _hello)])
    app.add_middleware(
        RateLimitMiddleware,
        max_requests=max_requests,
        window_seconds=window_seconds,
    )
    return app


class TestRateLimitMiddleware:
    def test_allows_requests_under_limit(self) -> None:
        client = TestClient(_create_app(max_requests=10))
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.headers["Rate-Limit-Total"] == "10"
        assert resp.headers["Rate-Limit-Remaining"] == "9"

    def test_blocks_requests_over_limit(self) -> None:
        client = TestClient(_create_app(max_requests=3))
        for _ in range(3):
            assert client.get("/").status_code == 200

        resp = client.get("/")
        assert resp.status_code == 429
        assert int(resp.headers["Retry-After"]) >= 1
        assert resp.headers["Rate-Limit-Remaining"] == "0"
        assert resp.json() == {
            "ok": False,
            "error": {"code": 429, "message": 'Rate limit exceeded. See "Retry-After"'},
        }

    def test_unlimited_when_zero(self) -> None:
        client = TestClient(_create_app(max_requests=0))
        for _ in range(20):
            resp = client.get("/")
            assert resp.status_code == 200
        assert "Rate-Limit-Total" not in resp.headers

    def test_remaining_header_decreases(self) -> None:
        client = TestClient(_create_app(max_requests=5))
        remaining1 = int(client.get("/").headers["Rate-Limit-Remaining"])
        remaining2 = int(client.get("/").headers["Rate-Limit-Remaining"])
        assert remaining2 == remaining1 - 1

    def test_reset_is_in_the_future(self) -> None:
        client = TestClient(_create_app(max_requests=5, window_seconds=55.0))
        reset = int(client.get("/").headers["Rate-Limit-Reset"])
        assert time.time() < reset <= time.time() + 56

    def test_window_expiry_frees_slots(self) -> None:
        client = TestClient(_create_app(max_requests=1, window_seconds=0.05))
        assert client.get("/").status_code == 200
        time.sleep(0.1)
        assert client.get("/").status_code == 200

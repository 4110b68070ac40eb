"""FastAPI middleware for API rate limiting."""

from __future__ import annotations

import math
import time
from collections import deque

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

log = structlog.get_logger(__name__)

# How many dispatch cycles between full sweeps of stale client entries.
_GC_INTERVAL = 256


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Sliding-window rate limiter per client IP.

    Keeps one deque of request timestamps per IP and prunes it from the
    left on every request.  Idle IPs are evicted periodically so the map
    does not grow without bound.

    Every response carries ``Rate-Limit-Total``, ``Rate-Limit-Remaining``
    and ``Rate-Limit-Reset`` (unix seconds when the oldest counted request
    leaves the window).

    Args:
        app: ASGI application.
        max_requests: Max requests per IP per window. 0 = unlimited.
        window_seconds: Window length in seconds.
    """

    def __init__(
        self,
        app: object,
        max_requests: int = 100,
        window_seconds: float = 55.0,
    ) -> None:
        super().__init__(app)  # type: ignore[arg-type]
        self._max = max_requests
        self._window_seconds = window_seconds
        self._window: dict[str, deque[float]] = {}
        self._dispatch_count = 0

    def _reset_at(self, timestamps: deque[float], now: float) -> int:
        oldest = timestamps[0] if timestamps else now
        remaining_window = max(0.0, oldest + self._window_seconds - now)
        return math.ceil(time.time() + remaining_window)

    def _limit_headers(self, timestamps: deque[float], now: float) -> dict[str, str]:
        return {
            "Rate-Limit-Total": str(self._max),
            "Rate-Limit-Remaining": str(max(0, self._max - len(timestamps))),
            "Rate-Limit-Reset": str(self._reset_at(timestamps, now)),
        }

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if self._max <= 0:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.monotonic()
        cutoff = now - self._window_seconds

        timestamps = self._window.get(client_ip)
        if timestamps is None:
            timestamps = deque()
            self._window[client_ip] = timestamps

        while timestamps and timestamps[0] <= cutoff:
            timestamps.popleft()

        if len(timestamps) >= self._max:
            retry_after = math.ceil(timestamps[0] + self._window_seconds - now)
            log.warning(
                "rate_limit_exceeded",
                client_ip=client_ip,
                max_requests=self._max,
                current=len(timestamps),
            )
            headers = self._limit_headers(timestamps, now)
            headers["Retry-After"] = str(max(1, retry_after))
            return JSONResponse(
                status_code=429,
                content={
                    "ok": False,
                    "error": {
                        "code": 429,
                        "message": 'Rate limit exceeded. See "Retry-After"',
                    },
                },
                headers=headers,
            )

        timestamps.append(now)

        # Periodic GC: evict IPs with no request inside the window
        self._dispatch_count += 1
        if self._dispatch_count >= _GC_INTERVAL:
            self._dispatch_count = 0
            stale = [
                ip for ip, dq in self._window.items() if not dq or dq[-1] <= cutoff
            ]
            for ip in stale:
                del self._window[ip]

        response = await call_next(request)
        response.headers.update(self._limit_headers(timestamps, now))
        return response

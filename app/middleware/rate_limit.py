"""Per-client rate limiting for the ``/api/`` routes.

Sliding window: each client (by remote address) may make
``rate_limit_max_requests`` API calls per ``rate_limit_window_seconds``.
Over the limit the request is answered with ``429`` and never reaches the
route.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import defaultdict, deque
from typing import Callable, Deque, Dict

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import settings

logger = logging.getLogger("app.rate_limit")

API_PREFIX = "/api/"


def _drop_before(timestamps: Deque[float], cutoff: float) -> None:
    while timestamps and timestamps[0] <= cutoff:
        timestamps.popleft()


class RateLimiter:
    """Sliding-window rate limiter.

    Safe under concurrent requests via asyncio.Lock.  Each key gets its own
    request window.

    Attributes:
        max_requests: Cap per key per window.
        window_seconds: Sliding-window length in seconds.
    """

    def __init__(self, max_requests: int = 100, window_seconds: int = 60) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        # key -> timestamps of accepted requests, oldest first
        self._requests: Dict[str, Deque[float]] = defaultdict(deque)
        self._lock = asyncio.Lock()
        self._last_sweep = float("-inf")

    async def hit(self, key: str) -> tuple[bool, int, int]:
        """Record a request for *key* if it fits in the window.

        Returns:
            (allowed, remaining, retry_after_seconds).  *retry_after_seconds*
            is 0 when allowed.
        """
        async with self._lock:
            now = time.monotonic()
            cutoff = now - self.window_seconds
            if now - self._last_sweep >= self.window_seconds:
                self._sweep(cutoff)
                self._last_sweep = now

            timestamps = self._requests[key]
            _drop_before(timestamps, cutoff)

            if len(timestamps) >= self.max_requests:
                retry_after = int(timestamps[0] + self.window_seconds - now) + 1
                return False, 0, retry_after

            timestamps.append(now)
            return True, self.max_requests - len(timestamps), 0

    def _sweep(self, cutoff: float) -> None:
        """Forget clients with no request inside the window."""
        for key in list(self._requests):
            timestamps = self._requests[key]
            _drop_before(timestamps, cutoff)
            if not timestamps:
                del self._requests[key]

    async def reset(self, key: str | None = None) -> None:
        """Reset counters.  If *key* is ``None``, reset everything."""
        async with self._lock:
            if key:
                self._requests.pop(key, None)
            else:
                self._requests.clear()


# Process-wide limiter shared by every worker coroutine.
rate_limiter = RateLimiter(
    max_requests=settings.rate_limit_max_requests,
    window_seconds=settings.rate_limit_window_seconds,
)


def client_key(request: Request) -> str:
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Apply *limiter* to every request under ``/api/``."""

    def __init__(
        self,
        app: Callable,
        limiter: RateLimiter | None = None,
        enabled: bool | None = None,
    ):
        super().__init__(app)
        self.limiter = limiter or rate_limiter
        self.enabled = settings.rate_limit_enabled if enabled is None else enabled

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not self.enabled or not request.url.path.startswith(API_PREFIX):
            return await call_next(request)

        key = client_key(request)
        allowed, remaining, retry_after = await self.limiter.hit(key)
        if not allowed:
            logger.warning("rate limit exceeded client=%s path=%s", key, request.url.path)
            return JSONResponse(
                status_code=429,
                content={"msg": "Too many requests, please try again later."},
                headers={
                    "Retry-After": str(retry_after),
                    "X-RateLimit-Limit": str(self.limiter.max_requests),
                    "X-RateLimit-Remaining": "0",
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self.limiter.max_requests)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        return response

"""Rate limiting tests."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from app.middleware.rate_limit import RateLimiter, RateLimitMiddleware


@pytest.mark.asyncio
async def test_rate_limit_allows_within_window():
    """Requests within the limit should all be allowed."""
    limiter = RateLimiter(max_requests=10)
    for i in range(10):
        allowed, remaining, retry_after = await limiter.hit("1.2.3.4")
        assert allowed is True
        assert remaining == 9 - i
        assert retry_after == 0


@pytest.mark.asyncio
async def test_rate_limit_blocks_over_window():
    """The N+1-th request should be blocked when the limit is N."""
    limiter = RateLimiter(max_requests=100, window_seconds=60)

    for _ in range(100):
        allowed, _, _ = await limiter.hit("1.2.3.4")
        assert allowed is True

    allowed, remaining, retry_after = await limiter.hit("1.2.3.4")
    assert allowed is False
    assert remaining == 0
    assert 0 < retry_after <= 61


@pytest.mark.asyncio
async def test_rate_limit_per_client_isolation():
    """Rate limits should be independent per client."""
    limiter = RateLimiter(max_requests=5)

    for _ in range(5):
        await limiter.hit("client_a")

    allowed_a, _, _ = await limiter.hit("client_a")
    assert allowed_a is False

    allowed_b, _, _ = await limiter.hit("client_b")
    assert allowed_b is True


@pytest.mark.asyncio
async def test_rate_limit_reset():
    """Resetting counters should allow requests again."""
    limiter = RateLimiter(max_requests=5)

    for _ in range(5):
        await limiter.hit("client_c")
    allowed, _, _ = await limiter.hit("client_c")
    assert allowed is False

    await limiter.reset("client_c")

    allowed, _, _ = await limiter.hit("client_c")
    assert allowed is True


@pytest.mark.asyncio
async def test_rate_limit_window_expires(monkeypatch):
    """Old requests fall out of the sliding window."""
    now = [1000.0]
    monkeypatch.setattr("app.middleware.rate_limit.time.monotonic", lambda: now[0])
    limiter = RateLimiter(max_requests=2, window_seconds=60)

    await limiter.hit("k")
    await limiter.hit("k")
    assert (await limiter.hit("k"))[0] is False

    now[0] += 60
    assert (await limiter.hit("k"))[0] is True


def _limited_app(limit: int) -> FastAPI:
    app = FastAPI()
    app.add_middleware(
        RateLimitMiddleware, limiter=RateLimiter(max_requests=limit), enabled=True
    )

    @app.get("/api/ping")
    async def ping():
        return {"ok": True}

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


@pytest.mark.asyncio
async def test_middleware_returns_429_over_limit():
    transport = ASGITransport(app=_limited_app(2))
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        first = await client.get("/api/ping")
        assert first.status_code == 200
        assert first.headers["x-ratelimit-limit"] == "2"
        assert first.headers["x-ratelimit-remaining"] == "1"

        await client.get("/api/ping")
        blocked = await client.get("/api/ping")

    assert blocked.status_code == 429
    assert blocked.json() == {"msg": "Too many requests, please try again later."}
    assert int(blocked.headers["retry-after"]) > 0


@pytest.mark.asyncio
async def test_middleware_ignores_non_api_paths():
    transport = ASGITransport(app=_limited_app(1))
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        for _ in range(5):
            response = await client.get("/health")
            assert response.status_code == 200
            assert "x-ratelimit-limit" not in response.headers


@pytest.mark.asyncio
async def test_app_predict_route_is_rate_limited(client, monkeypatch):
    from app.middleware.rate_limit import rate_limiter

    monkeypatch.setattr(rate_limiter, "max_requests", 1)
    assert (await client.get("/api/sentiment/AAPL")).status_code == 200
    response = await client.post("/api/predict", json={"ticker": "AAPL"})
    assert response.status_code == 429
    # security headers still applied to throttled responses
    assert response.headers["x-content-type-options"] == "nosniff"


@pytest.mark.asyncio
async def test_idle_clients_are_forgotten(monkeypatch):
    """Keys with no request inside the window do not accumulate."""
    now = [1000.0]
    monkeypatch.setattr("app.middleware.rate_limit.time.monotonic", lambda: now[0])
    limiter = RateLimiter(max_requests=5, window_seconds=60)

    for i in range(1000):
        await limiter.hit(f"10.0.{i // 256}.{i % 256}")
    assert len(limiter._requests) == 1000

    now[0] += 61
    await limiter.hit("10.9.9.9")
    assert list(limiter._requests) == ["10.9.9.9"]


@pytest.mark.asyncio
async def test_zero_window_keeps_no_history():
    limiter = RateLimiter(max_requests=5, window_seconds=0)
    for i in range(100):
        await limiter.hit(f"client-{i}")
    assert len(limiter._requests) == 1

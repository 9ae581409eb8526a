"""Shared pytest fixtures – async SQLite for persistence, a fake price source."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Sequence

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.db import get_session
from app.dependencies import get_price_provider
from app.exceptions import DataUnavailable
from app.middleware.rate_limit import rate_limiter
from app.models import Base
from app.schemas.stock import PricePoint, PriceSeries
from app.server import app
from app.services.market_data import PriceSeriesProvider

TODAY = date(2024, 3, 29)


def make_series(symbol: str, closes: Sequence[float], end: date = TODAY) -> PriceSeries:
    """Consecutive daily closes ending on *end*."""
    start = end - timedelta(days=len(closes) - 1)
    return PriceSeries(
        symbol=symbol,
        points=[PricePoint(date=start + timedelta(days=i), close=c) for i, c in enumerate(closes)],
    )


class FakePriceProvider(PriceSeriesProvider):
    """In-memory price source.  Unknown symbols raise ``DataUnavailable``.

    Every call is recorded in ``calls`` as (symbol, start, end, interval).
    """

    def __init__(self, closes: dict[str, Sequence[float]] | None = None) -> None:
        self.closes = dict(closes or {})
        self.calls: list[tuple[str, date, date, str]] = []

    async def fetch_history(self, symbol, start, end, interval="1d"):
        self.calls.append((symbol, start, end, interval))
        closes = self.closes.get(symbol)
        if not closes:
            raise DataUnavailable(f"no data for {symbol}", stage="fetch")
        return make_series(symbol, closes, end)


LINEAR_CLOSES = [100.0 + i for i in range(30)]
INDEX_CLOSES = [5000.0, 5010.0, 5020.0, 5030.0, 5040.0, 5050.0, 5100.0]


@pytest.fixture
def provider():
    return FakePriceProvider({"AAPL": LINEAR_CLOSES, "^GSPC": INDEX_CLOSES})


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite shared across connections for one test."""
    eng = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as sess:
        yield sess


@pytest_asyncio.fixture
async def client(session_factory, provider):
    """HTTP client against the app with the database and price source swapped out."""

    async def _session():
        async with session_factory() as sess:
            yield sess

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_price_provider] = lambda: provider
    await rate_limiter.reset()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    await rate_limiter.reset()

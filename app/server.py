"""FastAPI application – forecast, market data, auth and user routes.

Run with:
    python -m app.server
    # → http://localhost:5000/health
    # → http://localhost:5000/docs  (Swagger UI)
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.db import get_session
from app.dependencies import get_current_user, get_forecast_service, get_price_provider
from app.exceptions import NotFoundError, public_errors, register_exception_handlers
from app.middleware.rate_limit import RateLimitMiddleware
from app.middleware.security import SecurityHeadersMiddleware, parse_cors_origins
from app.models.user import User
from app.schemas import (
    AlertCreate,
    AlertListResponse,
    Credentials,
    ForecastResult,
    Message,
    PredictRequest,
    SentimentData,
    StockHistoryData,
    TokenResponse,
    WatchlistAdd,
    WatchlistResponse,
)
from app.services import auth_service, sentiment_service, stock_service, user_service
from app.services.forecast_service import ForecastService
from app.services.market_data import PriceSeriesProvider

logger = logging.getLogger("app.server")

# relative static_dir values are taken from the repository root
PROJECT_ROOT = Path(__file__).resolve().parent.parent


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Server starting (env=%s, version=%s)", settings.app_env, settings.app_version)
    yield
    logger.info("Server shutting down")


app = FastAPI(
    title="Stock Forecast API",
    description="Trend forecasts, price history, watchlists and alerts.",
    version=settings.app_version,
    lifespan=lifespan,
)

register_exception_handlers(app)

# Innermost first: rate limiting, then CORS, then security headers outermost
# so throttled responses still carry CORS and security headers.
app.add_middleware(RateLimitMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=parse_cors_origins(settings.allowed_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SecurityHeadersMiddleware)


# ── Health ────────────────────────────────────────────────────────────────────


@app.get("/health")
async def health():
    return {"status": "ok", "version": settings.app_version}


# ── Auth ──────────────────────────────────────────────────────────────────────


@app.post("/api/auth/signup", response_model=TokenResponse)
async def signup(body: Credentials, session: AsyncSession = Depends(get_session)):
    with public_errors("Server error"):
        token = await auth_service.signup(session, body.email, body.password)
    return TokenResponse(token=token)


@app.post("/api/auth/login", response_model=TokenResponse)
async def login(body: Credentials, session: AsyncSession = Depends(get_session)):
    with public_errors("Server error"):
        token = await auth_service.login(session, body.email, body.password)
    return TokenResponse(token=token)


# ── Market data ───────────────────────────────────────────────────────────────


@app.get("/api/stock/{ticker}/history", response_model=StockHistoryData)
async def stock_history(
    ticker: str,
    days: int | None = Query(None, description="Calendar days of history (default 30)"),
    provider: PriceSeriesProvider = Depends(get_price_provider),
):
    with public_errors("Error fetching stock data"):
        return await stock_service.get_stock_history(provider, ticker, days)


@app.post("/api/predict", response_model=ForecastResult)
async def predict(
    body: PredictRequest,
    service: ForecastService = Depends(get_forecast_service),
):
    with public_errors("Error generating prediction"):
        return await service.generate_forecast(body.ticker, body.horizon)


@app.get("/api/sentiment/{ticker}", response_model=SentimentData)
async def sentiment(ticker: str):
    return sentiment_service.get_sentiment(ticker)


# ── Watchlist & alerts (auth required) ────────────────────────────────────────


@app.get("/api/user/watchlist", response_model=WatchlistResponse)
async def get_watchlist(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    with public_errors("Server error"):
        watchlist = await user_service.get_watchlist(session, user)
    return WatchlistResponse(watchlist=watchlist)


@app.post("/api/user/watchlist/add", response_model=WatchlistResponse)
async def add_to_watchlist(
    body: WatchlistAdd,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    with public_errors("Server error"):
        watchlist = await user_service.add_to_watchlist(session, user, body.ticker)
    return WatchlistResponse(watchlist=watchlist)


@app.post("/api/alerts/set", response_model=Message)
async def set_alert(
    body: AlertCreate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    with public_errors("Server error"):
        await user_service.set_alert(session, user, body.ticker, body.threshold, body.type)
    return Message(msg="Alert set successfully")


@app.get("/api/alerts", response_model=AlertListResponse)
async def list_alerts(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    with public_errors("Server error"):
        alerts = await user_service.list_alerts(session, user)
    return AlertListResponse(alerts=alerts)


# ── Frontend ──────────────────────────────────────────────────────────────────


@app.get("/{full_path:path}", include_in_schema=False)
async def frontend(full_path: str):
    """Serve the static bundle; unknown non-API paths get ``index.html``."""
    if full_path == "api" or full_path.startswith("api/"):
        raise NotFoundError(details={"path": full_path})

    root = (PROJECT_ROOT / settings.static_dir).resolve()
    if full_path:
        candidate = (root / full_path).resolve()
        if candidate.is_file() and root in candidate.parents:
            return FileResponse(candidate)

    index = root / "index.html"
    if not index.is_file():
        raise NotFoundError(details={"path": full_path, "static_dir": str(root)})
    return FileResponse(index)


# ── Run via uvicorn ───────────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    uvicorn.run(
        "app.server:app",
        host=settings.fastapi_host,
        port=settings.fastapi_port,
        reload=(settings.app_env == "development"),
    )

"""FastAPI dependencies: composition of the forecast pipeline and auth."""

from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.db import get_session
from app.exceptions import AuthenticationError
from app.models.user import User
from app.services import auth_service
from app.services.forecast_service import ForecastService
from app.services.indicators import IndicatorCalculator
from app.services.market_data import PriceSeriesProvider, YFinancePriceProvider

_price_provider = YFinancePriceProvider()


def get_price_provider() -> PriceSeriesProvider:
    return _price_provider


def get_forecast_service(
    provider: PriceSeriesProvider = Depends(get_price_provider),
) -> ForecastService:
    """A fresh service per request; nothing is shared between forecasts."""
    return ForecastService(
        provider,
        indicators=IndicatorCalculator(window=settings.moving_average_window),
        benchmark_symbol=settings.benchmark_symbol,
        lookback_days=settings.forecast_lookback_days,
        benchmark_days=settings.benchmark_lookback_days,
        default_horizon=settings.default_horizon,
        max_horizon=settings.max_horizon,
    )


async def get_current_user(
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> User:
    """Resolve the ``Authorization: Bearer <token>`` header to a user."""
    header = request.headers.get("Authorization", "")
    token = header.removeprefix("Bearer ").strip()
    if not token:
        raise AuthenticationError(
            "missing bearer token", public_message="No token, authorization denied"
        )
    return await auth_service.resolve_user(session, token)

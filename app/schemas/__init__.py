"""Pydantic request/response schemas."""

from app.schemas.common import Message, SentimentData
from app.schemas.forecast import Benchmark, ForecastResult, Indicators, PredictRequest
from app.schemas.stock import PricePoint, PriceSeries, StockHistoryData
from app.schemas.user import (
    AlertCreate,
    AlertListResponse,
    AlertRow,
    Credentials,
    TokenResponse,
    WatchlistAdd,
    WatchlistResponse,
)

__all__ = [
    "Message",
    "SentimentData",
    "Benchmark",
    "ForecastResult",
    "Indicators",
    "PredictRequest",
    "PricePoint",
    "PriceSeries",
    "StockHistoryData",
    "AlertCreate",
    "AlertListResponse",
    "AlertRow",
    "Credentials",
    "TokenResponse",
    "WatchlistAdd",
    "WatchlistResponse",
]

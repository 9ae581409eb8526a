"""Forecast request/response schemas.

Field names are snake_case in Python and camelCase on the wire
(``errorRange``, ``movingAverage`` ...).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, StrictInt
from pydantic.alias_generators import to_camel

from app.schemas.stock import PricePoint


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PredictRequest(BaseModel):
    """Body of ``POST /api/predict``.

    Values are range-checked by the forecast service, not here, so a bad
    horizon is rejected before any market data is fetched.
    """

    ticker: str | None = None
    horizon: StrictInt | None = None


class Indicators(_CamelModel):
    moving_average: float
    oscillator_value: int
    crossover_signal: str


class Benchmark(_CamelModel):
    outperformance: float


class ForecastResult(_CamelModel):
    """Projected closes plus the history and signals they were derived from."""

    forecast: list[float]
    historical: list[PricePoint]
    confidence: int
    error_range: str
    indicators: Indicators
    benchmark: Benchmark

"""Forecast pipeline: history → trend fit → projection, indicators, benchmark."""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import date, timedelta
from typing import Callable

from app.exceptions import AppException, InvalidRequest
from app.schemas.forecast import Benchmark, ForecastResult
from app.schemas.stock import PriceSeries
from app.services import benchmark, trend
from app.services.indicators import IndicatorCalculator
from app.services.market_data import PriceSeriesProvider
from app.services.plausibility import ConfidencePolicy, RandomConfidencePolicy

logger = logging.getLogger("app.forecast")

FORECAST_DECIMALS = 4


class ForecastService:
    """Builds a ``ForecastResult`` for one ticker.

    Stateless between calls: every request refetches and refits.  The two
    upstream fetches (ticker and reference index) run concurrently; fitting
    and indicators only wait for the ticker series.

    Attributes:
        lookback_days: Calendar days of ticker history used for the fit.
        benchmark_days: Calendar days of index history for the comparison.
    """

    def __init__(
        self,
        provider: PriceSeriesProvider,
        indicators: IndicatorCalculator | None = None,
        confidence_policy: ConfidencePolicy | None = None,
        benchmark_symbol: str = "^GSPC",
        lookback_days: int = 30,
        benchmark_days: int = 7,
        default_horizon: int = 7,
        max_horizon: int = 365,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.provider = provider
        self.indicators = indicators or IndicatorCalculator()
        self.confidence_policy = confidence_policy or RandomConfidencePolicy()
        self.benchmark_symbol = benchmark_symbol
        self.lookback_days = lookback_days
        self.benchmark_days = benchmark_days
        self.default_horizon = default_horizon
        self.max_horizon = max_horizon
        self._today = today

    def validate(self, ticker: object, horizon: object) -> tuple[str, int]:
        """Normalize the request or raise ``InvalidRequest``."""
        if not isinstance(ticker, str) or not ticker.strip():
            raise InvalidRequest("ticker must be a non-empty string", stage="validate")
        if horizon is None:
            horizon = self.default_horizon
        if isinstance(horizon, bool) or not isinstance(horizon, int) or horizon <= 0:
            raise InvalidRequest("horizon must be a positive integer", stage="validate")
        if horizon > self.max_horizon:
            raise InvalidRequest(
                f"horizon must be at most {self.max_horizon}", stage="validate"
            )
        return ticker.strip().upper(), horizon

    async def _fetch(self, symbol: str, days: int) -> PriceSeries:
        end = self._today()
        return await self.provider.fetch_history(symbol, end - timedelta(days=days), end)

    async def generate_forecast(self, ticker: object, horizon: object = None) -> ForecastResult:
        symbol, horizon = self.validate(ticker, horizon)
        t0 = time.perf_counter()

        index_task = asyncio.create_task(self._fetch(self.benchmark_symbol, self.benchmark_days))
        try:
            history = await self._fetch(symbol, self.lookback_days)
            closes = history.closes

            model = trend.fit(closes)
            forecast = [
                round(v, FORECAST_DECIMALS)
                for v in trend.project(model, trend.future_offsets(len(closes), horizon))
            ]
            indicators = self.indicators.compute(closes)

            index_history = await index_task
            outperformance = benchmark.compare(history, index_history)
        except AppException as exc:
            exc.details.setdefault("ticker", symbol)
            logger.warning(
                "forecast aborted ticker=%s stage=%s: %s", symbol, exc.stage, exc.message
            )
            raise
        finally:
            if not index_task.done():
                index_task.cancel()
            # retrieve any outcome so a failed index fetch is not reported as unhandled
            await asyncio.gather(index_task, return_exceptions=True)

        elapsed = round((time.perf_counter() - t0) * 1000, 2)
        logger.info(
            "forecast ticker=%s horizon=%d closes=%d slope=%.4f ms=%.1f",
            symbol,
            horizon,
            len(closes),
            model.slope,
            elapsed,
        )
        return ForecastResult(
            forecast=forecast,
            historical=history.points,
            confidence=self.confidence_policy.confidence(),
            error_range=self.confidence_policy.error_range(),
            indicators=indicators,
            benchmark=Benchmark(outperformance=outperformance),
        )

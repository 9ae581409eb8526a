"""Historical price lookup.

``PriceSeriesProvider`` is the port the forecast and history endpoints
depend on; ``YFinancePriceProvider`` is the Yahoo Finance adapter.  All
yfinance-specific details stay in this module.
"""

from __future__ import annotations

import asyncio
import logging
import math
from abc import ABC, abstractmethod
from datetime import date, timedelta
from typing import Iterable

import yfinance as yf

from app.exceptions import DataUnavailable
from app.schemas.stock import PricePoint, PriceSeries

logger = logging.getLogger("app.market_data")

DAILY = "1d"


class PriceSeriesProvider(ABC):
    @abstractmethod
    async def fetch_history(
        self,
        symbol: str,
        start: date,
        end: date,
        interval: str = DAILY,
    ) -> PriceSeries:
        """Daily closes for *symbol* between *start* and *end* (inclusive).

        Raises:
            DataUnavailable: no rows, unknown symbol, or upstream failure.
        """


def build_series(symbol: str, rows: Iterable[tuple[date, float | None]]) -> PriceSeries:
    """Normalize raw (date, close) rows into a strictly ascending series.

    Rows with a missing close are dropped; a repeated date keeps its last row.
    """
    by_date: dict[date, float] = {}
    for day, close in rows:
        if close is None or math.isnan(close):
            continue
        by_date[day] = float(close)
    points = [PricePoint(date=d, close=c) for d, c in sorted(by_date.items())]
    return PriceSeries(symbol=symbol, points=points)


class YFinancePriceProvider(PriceSeriesProvider):
    """Fetches daily closes from Yahoo Finance via the yfinance library."""

    async def fetch_history(
        self,
        symbol: str,
        start: date,
        end: date,
        interval: str = DAILY,
    ) -> PriceSeries:
        if not symbol:
            raise DataUnavailable("symbol must be non-empty", stage="fetch")
        if start >= end:
            raise DataUnavailable(
                f"empty window {start}..{end} for {symbol}", stage="fetch"
            )
        return await asyncio.to_thread(self._download, symbol, start, end, interval)

    def _download(self, symbol: str, start: date, end: date, interval: str) -> PriceSeries:
        try:
            # yfinance treats `end` as exclusive
            history = yf.Ticker(symbol).history(
                start=start.isoformat(),
                end=(end + timedelta(days=1)).isoformat(),
                interval=interval,
            )
        except Exception as exc:
            raise DataUnavailable(
                f"yfinance history failed for {symbol}: {exc}",
                stage="fetch",
                details={"symbol": symbol},
            ) from exc

        if history is None or history.empty or "Close" not in history:
            raise DataUnavailable(
                f"no historical data for {symbol} between {start} and {end}",
                stage="fetch",
                details={"symbol": symbol},
            )

        series = build_series(
            symbol,
            ((ts.date(), row) for ts, row in history["Close"].items()),
        )
        if not series.points:
            raise DataUnavailable(
                f"no usable closes for {symbol} between {start} and {end}",
                stage="fetch",
                details={"symbol": symbol},
            )

        logger.info(
            "fetched %s closes=%d range=%s..%s",
            symbol,
            len(series),
            series.first.date,
            series.last.date,
        )
        return series

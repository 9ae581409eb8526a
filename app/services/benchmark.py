"""Relative performance of a ticker against a reference index."""

from __future__ import annotations

from app.exceptions import InsufficientData
from app.schemas.stock import PriceSeries
from app.services.metrics import percent_change


def series_change(series: PriceSeries) -> float:
    """Percent change from the first to the last close of *series*."""
    if not series.points:
        raise InsufficientData(
            f"no closes for {series.symbol} to compute a change", stage="benchmark"
        )
    change = percent_change(series.first.close, series.last.close)
    if change is None:
        raise InsufficientData(
            f"first close of {series.symbol} is zero", stage="benchmark"
        )
    return change


def compare(ticker_series: PriceSeries, index_series: PriceSeries) -> float:
    """Ticker change minus index change, in percentage points (2 dp).

    The two windows need not cover the same number of days.
    """
    return round(series_change(ticker_series) - series_change(index_series), 2)

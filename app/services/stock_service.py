"""Stock-history query service."""

from __future__ import annotations

from datetime import date, timedelta

from app.schemas.stock import StockHistoryData
from app.services.market_data import PriceSeriesProvider
from app.services.metrics import max_drawdown, percent_change

DEFAULT_HISTORY_DAYS = 30


async def get_stock_history(
    provider: PriceSeriesProvider,
    ticker: str,
    days: int | None = DEFAULT_HISTORY_DAYS,
    today: date | None = None,
) -> StockHistoryData:
    """Return daily closes for the last *days* calendar days plus summary stats.

    Args:
        provider: Price source.
        ticker: Symbol, case-insensitive.
        days: Calendar-day window; missing or non-positive falls back to 30.
        today: Window end, defaults to the current date.
    """
    if not days or days <= 0:
        days = DEFAULT_HISTORY_DAYS
    end = today or date.today()
    series = await provider.fetch_history(ticker.strip().upper(), end - timedelta(days=days), end)

    closes = series.closes
    total_ret = None
    if len(closes) >= 2:
        change = percent_change(closes[0], closes[-1])
        total_ret = round(change, 4) if change is not None else None
    mdd = max_drawdown(closes)

    return StockHistoryData(
        historical=series.points,
        total_return_pct=total_ret,
        max_drawdown_pct=round(mdd * 100, 4) if mdd is not None else None,
    )

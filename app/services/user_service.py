"""Watchlist and price-alert persistence."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.alert import PriceAlert
from app.models.user import User
from app.models.watchlist import WatchlistItem
from app.schemas.user import AlertRow

logger = logging.getLogger("app.user")


async def _watchlist_tickers(session: AsyncSession, user_id: uuid.UUID) -> list[str]:
    stmt = (
        select(WatchlistItem.ticker)
        .where(WatchlistItem.user_id == user_id)
        .order_by(WatchlistItem.created_at, WatchlistItem.ticker)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_watchlist(session: AsyncSession, user: User) -> list[str]:
    """Tickers on *user*'s watchlist in the order they were added."""
    return await _watchlist_tickers(session, user.id)


async def add_to_watchlist(session: AsyncSession, user: User, ticker: str) -> list[str]:
    """Add *ticker* (upper-cased) unless already present; return the list."""
    ticker = ticker.strip().upper()
    # rollback expires *user*, so keep the id
    user_id = user.id
    current = await _watchlist_tickers(session, user_id)
    if ticker in current:
        return current

    session.add(WatchlistItem(user_id=user_id, ticker=ticker))
    try:
        await session.commit()
    except IntegrityError:
        # a concurrent request inserted the same ticker first
        await session.rollback()
        logger.info("watchlist add raced user_id=%s ticker=%s", user_id, ticker)
        return await _watchlist_tickers(session, user_id)
    current.append(ticker)
    return current


async def set_alert(
    session: AsyncSession,
    user: User,
    ticker: str,
    threshold: float,
    direction: str = "above",
) -> PriceAlert:
    alert = PriceAlert(
        user_id=user.id,
        ticker=ticker.strip().upper(),
        threshold=threshold,
        direction=direction,
    )
    session.add(alert)
    await session.commit()
    return alert


async def list_alerts(session: AsyncSession, user: User) -> list[AlertRow]:
    stmt = (
        select(PriceAlert)
        .where(PriceAlert.user_id == user.id)
        .order_by(PriceAlert.created_at)
    )
    result = await session.execute(stmt)
    return [
        AlertRow(ticker=a.ticker, threshold=a.threshold, type=a.direction)
        for a in result.scalars().all()
    ]

"""Canned sentiment summaries (no live news/social source yet)."""

from __future__ import annotations

from app.schemas.common import SentimentData

_MOCK_SENTIMENT: dict[str, SentimentData] = {
    "AAPL": SentimentData(
        overall="Positive",
        score=78,
        news=["Apple Q4 Earnings Strong (+ impact)"],
        social=["#AAPL trending bullish on Twitter"],
    ),
    "TSLA": SentimentData(
        overall="Positive",
        score=72,
        news=["Tesla Q3 Earnings Beat Expectations (+ impact)"],
        social=["#TSLA trending bullish on Twitter"],
    ),
}

NEUTRAL = SentimentData(overall="Neutral", score=50, news=[], social=[])


def get_sentiment(ticker: str) -> SentimentData:
    return _MOCK_SENTIMENT.get(ticker.strip().upper(), NEUTRAL)

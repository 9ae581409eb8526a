"""Shared message envelope."""

from __future__ import annotations

from pydantic import BaseModel, Field


class Message(BaseModel):
    """``{"msg": ...}`` body used for confirmations and every error."""

    msg: str = Field(..., description="Human-readable status or error text")


class SentimentData(BaseModel):
    """Sentiment summary for a ticker."""

    overall: str
    score: int
    news: list[str]
    social: list[str]

"""Auth, watchlist and alert schemas."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator


class Credentials(BaseModel):
    """Signup / login body."""

    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1)

    @field_validator("password")
    @classmethod
    def _fits_bcrypt(cls, value: str) -> str:
        # bcrypt rejects input longer than 72 bytes
        if len(value.encode("utf-8")) > 72:
            raise ValueError("password must be at most 72 bytes")
        return value


class TokenResponse(BaseModel):
    token: str


class WatchlistAdd(BaseModel):
    ticker: str = Field(..., min_length=1, max_length=16)


class WatchlistResponse(BaseModel):
    watchlist: list[str]


class AlertCreate(BaseModel):
    ticker: str = Field(..., min_length=1, max_length=16)
    threshold: float
    type: Literal["above", "below"] = "above"


class AlertRow(BaseModel):
    ticker: str
    threshold: float
    type: str


class AlertListResponse(BaseModel):
    alerts: list[AlertRow]

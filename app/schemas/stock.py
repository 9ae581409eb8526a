"""Price-series Pydantic schemas."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class PricePoint(BaseModel):
    """Single day close."""

    model_config = ConfigDict(frozen=True)

    date: date
    close: float = Field(..., ge=0)


class PriceSeries(BaseModel):
    """Ordered daily closes for one symbol over one window."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    points: list[PricePoint] = Field(default_factory=list)

    @model_validator(mode="after")
    def _dates_strictly_increasing(self) -> "PriceSeries":
        for prev, curr in zip(self.points, self.points[1:]):
            if curr.date <= prev.date:
                raise ValueError(
                    f"dates must be strictly increasing ({prev.date} then {curr.date})"
                )
        return self

    @property
    def closes(self) -> list[float]:
        return [p.close for p in self.points]

    @property
    def first(self) -> PricePoint:
        return self.points[0]

    @property
    def last(self) -> PricePoint:
        return self.points[-1]

    def __len__(self) -> int:
        return len(self.points)


class StockHistoryData(BaseModel):
    """Close history with summary stats for charting."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    historical: list[PricePoint]
    total_return_pct: float | None = None
    max_drawdown_pct: float | None = None

"""Linear trend model: ordinary least squares over (index, close).

The x axis is the position in the series (0..n-1), so trading days are
treated as evenly spaced and weekend/holiday gaps are not distinguished.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from app.exceptions import InsufficientData


@dataclass(frozen=True)
class TrendModel:
    slope: float
    intercept: float

    def predict(self, x: float) -> float:
        return self.slope * x + self.intercept


def fit(closes: Sequence[float]) -> TrendModel:
    """Fit ``close = slope * index + intercept`` by least squares.

    Raises:
        InsufficientData: fewer than 2 points (slope undefined).
    """
    n = len(closes)
    if n < 2:
        raise InsufficientData(
            f"need at least 2 closes to fit a trend, got {n}", stage="trend_fit"
        )

    x_mean = (n - 1) / 2
    y_mean = sum(closes) / n
    sxx = 0.0
    sxy = 0.0
    for x, y in enumerate(closes):
        dx = x - x_mean
        sxx += dx * dx
        sxy += dx * (y - y_mean)

    slope = sxy / sxx
    return TrendModel(slope=slope, intercept=y_mean - slope * x_mean)


def project(model: TrendModel, offsets: Iterable[float]) -> list[float]:
    """Evaluate the fitted line at each requested x."""
    return [model.predict(x) for x in offsets]


def future_offsets(observed: int, horizon: int) -> range:
    """Indices of the *horizon* points right after *observed* history points."""
    return range(observed, observed + horizon)

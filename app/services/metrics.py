"""Pure math / metric helpers (no I/O)."""

from __future__ import annotations

from typing import Sequence


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean.  Caller guarantees *values* is non-empty."""
    return sum(values) / len(values)


def percent_change(first: float, last: float) -> float | None:
    """Change from *first* to *last* in percent.

    Returns None when *first* is zero (ratio undefined).
    """
    if first == 0:
        return None
    return (last - first) / first * 100


def max_drawdown(closes: Sequence[float]) -> float | None:
    """Maximum drawdown from a series of close prices.

    Returns a negative fraction (e.g. -0.15 for -15%).
    Returns None if fewer than 2 prices or the running peak is zero.
    """
    if len(closes) < 2:
        return None
    peak = closes[0]
    mdd = 0.0
    for price in closes:
        if price > peak:
            peak = price
        if peak == 0:
            continue
        dd = (price - peak) / peak
        if dd < mdd:
            mdd = dd
    return mdd

"""Confidence / error-range policies attached to a forecast.

These values are presentation placeholders.  They are not derived from the
fitted model and carry no statistical meaning.
"""

from __future__ import annotations

import random
from abc import ABC, abstractmethod

CONFIDENCE_MIN = 85
CONFIDENCE_MAX = 95  # exclusive
ERROR_PCT_MIN = 3
ERROR_PCT_MAX = 8  # exclusive


def format_error_range(pct: int) -> str:
    return f"±{pct}%"


class ConfidencePolicy(ABC):
    @abstractmethod
    def confidence(self) -> int: ...

    @abstractmethod
    def error_range(self) -> str: ...


class RandomConfidencePolicy(ConfidencePolicy):
    """Bounded random confidence in [85, 95) and error range ±[3, 8)%."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def confidence(self) -> int:
        return self._rng.randrange(CONFIDENCE_MIN, CONFIDENCE_MAX)

    def error_range(self) -> str:
        return format_error_range(self._rng.randrange(ERROR_PCT_MIN, ERROR_PCT_MAX))


class FixedConfidencePolicy(ConfidencePolicy):
    def __init__(self, confidence: int = 90, error_pct: int = 5) -> None:
        self._confidence = confidence
        self._error_pct = error_pct

    def confidence(self) -> int:
        return self._confidence

    def error_range(self) -> str:
        return format_error_range(self._error_pct)

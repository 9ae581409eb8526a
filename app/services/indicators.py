"""Technical indicators derived from a close series.

The moving average is real.  The oscillator and crossover values are
placeholders produced by swappable strategies; a proper RSI / MACD
implementation can be dropped in without touching the forecast service.
"""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from typing import Sequence

from app.exceptions import InsufficientData
from app.schemas.forecast import Indicators
from app.services.metrics import mean

BULLISH_CROSSOVER = "Bullish Crossover"
BEARISH_DIVERGENCE = "Bearish Divergence"

OSCILLATOR_MIN = 50
OSCILLATOR_MAX = 90  # exclusive


def moving_average(closes: Sequence[float], window: int = 50) -> float:
    """Mean of the last *window* closes.

    When the series is shorter than *window* the most recent close is
    returned as-is (not a partial-window mean).
    """
    if not closes:
        raise InsufficientData("moving average needs at least one close", stage="indicators")
    if len(closes) >= window:
        return mean(closes[-window:])
    return closes[-1]


class OscillatorStrategy(ABC):
    @abstractmethod
    def value(self, closes: Sequence[float]) -> int: ...


class CrossoverStrategy(ABC):
    @abstractmethod
    def signal(self, closes: Sequence[float]) -> str: ...


class RandomOscillator(OscillatorStrategy):
    """Mock momentum reading, uniform integer in [50, 90)."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def value(self, closes: Sequence[float]) -> int:
        return self._rng.randrange(OSCILLATOR_MIN, OSCILLATOR_MAX)


class RandomCrossover(CrossoverStrategy):
    """Mock crossover signal, a coin flip between the two labels."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def signal(self, closes: Sequence[float]) -> str:
        return BULLISH_CROSSOVER if self._rng.random() > 0.5 else BEARISH_DIVERGENCE


class FixedOscillator(OscillatorStrategy):
    def __init__(self, reading: int) -> None:
        self.reading = reading

    def value(self, closes: Sequence[float]) -> int:
        return self.reading


class FixedCrossover(CrossoverStrategy):
    def __init__(self, label: str) -> None:
        self.label = label

    def signal(self, closes: Sequence[float]) -> str:
        return self.label


class IndicatorCalculator:
    """Bundles the moving average with the oscillator/crossover strategies."""

    def __init__(
        self,
        oscillator: OscillatorStrategy | None = None,
        crossover: CrossoverStrategy | None = None,
        window: int = 50,
    ) -> None:
        self.oscillator = oscillator or RandomOscillator()
        self.crossover = crossover or RandomCrossover()
        self.window = window

    def compute(self, closes: Sequence[float]) -> Indicators:
        return Indicators(
            moving_average=round(moving_average(closes, self.window), 2),
            oscillator_value=self.oscillator.value(closes),
            crossover_signal=self.crossover.signal(closes),
        )

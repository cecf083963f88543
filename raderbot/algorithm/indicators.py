"""Incremental technical indicators.

Every indicator consumes one value per call to `next` and keeps O(1) state, so an
algorithm never recomputes over its full candle history.
"""

from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass


def _check_period(period: int) -> None:
    if period < 1:
        raise ValueError(f"period must be >= 1, got {period}")


class SimpleMovingAverage:
    """Mean of the last `period` values (mean of all values until the window fills)."""

    def __init__(self, period: int) -> None:
        _check_period(period)
        self.period = period
        self._window: deque[float] = deque()
        self._sum = 0.0

    def next(self, value: float) -> float:
        self._window.append(value)
        self._sum += value
        if len(self._window) > self.period:
            self._sum -= self._window.popleft()
        return self.value

    @property
    def value(self) -> float:
        if not self._window:
            return 0.0
        return self._sum / len(self._window)

    @property
    def is_ready(self) -> bool:
        return len(self._window) >= self.period


class ExponentialMovingAverage:
    """EMA with k = 2 / (period + 1), seeded with the first value."""

    def __init__(self, period: int) -> None:
        _check_period(period)
        self.period = period
        self.k = 2.0 / (period + 1)
        self._current: float | None = None
        self._count = 0

    def next(self, value: float) -> float:
        if self._current is None:
            self._current = value
        else:
            self._current = self.k * value + (1.0 - self.k) * self._current
        self._count += 1
        return self._current

    @property
    def value(self) -> float:
        return self._current if self._current is not None else 0.0

    @property
    def is_ready(self) -> bool:
        return self._count >= self.period


class StandardDeviation:
    """Population standard deviation over the last `period` values."""

    def __init__(self, period: int) -> None:
        _check_period(period)
        self.period = period
        self._window: deque[float] = deque()
        self._sum = 0.0
        self._sum_sq = 0.0

    def next(self, value: float) -> float:
        self._window.append(value)
        self._sum += value
        self._sum_sq += value * value
        if len(self._window) > self.period:
            old = self._window.popleft()
            self._sum -= old
            self._sum_sq -= old * old
        return self.value

    @property
    def value(self) -> float:
        n = len(self._window)
        if n == 0:
            return 0.0
        mean = self._sum / n
        # Running sums can drift slightly negative on flat series.
        variance = max(self._sum_sq / n - mean * mean, 0.0)
        return math.sqrt(variance)


class RelativeStrengthIndex:
    """RSI from simple averages of the last `period` gains and losses.

    Returns 50 until `period + 1` values are seen and 100 when the average loss is zero.
    """

    def __init__(self, period: int) -> None:
        _check_period(period)
        self.period = period
        self._prev: float | None = None
        self._gains: deque[float] = deque()
        self._losses: deque[float] = deque()
        self._gain_sum = 0.0
        self._loss_sum = 0.0

    def next(self, value: float) -> float:
        if self._prev is not None:
            delta = value - self._prev
            gain = delta if delta > 0 else 0.0
            loss = -delta if delta < 0 else 0.0
            self._gains.append(gain)
            self._losses.append(loss)
            self._gain_sum += gain
            self._loss_sum += loss
            if len(self._gains) > self.period:
                self._gain_sum -= self._gains.popleft()
                self._loss_sum -= self._losses.popleft()
        self._prev = value
        return self.value

    @property
    def value(self) -> float:
        if len(self._gains) < self.period:
            return 50.0
        avg_gain = max(self._gain_sum, 0.0) / self.period
        avg_loss = max(self._loss_sum, 0.0) / self.period
        if avg_loss == 0.0:
            return 100.0
        rs = avg_gain / avg_loss
        return 100.0 - (100.0 / (1.0 + rs))

    @property
    def is_ready(self) -> bool:
        return len(self._gains) >= self.period


@dataclass(frozen=True)
class BollingerBandsOutput:
    average: float
    upper: float
    lower: float


class BollingerBands:
    """SMA middle band with bands `multiplier` standard deviations away."""

    def __init__(self, period: int, multiplier: float) -> None:
        if multiplier <= 0:
            raise ValueError(f"multiplier must be > 0, got {multiplier}")
        self.period = period
        self.multiplier = multiplier
        self._sma = SimpleMovingAverage(period)
        self._sd = StandardDeviation(period)

    def next(self, value: float) -> BollingerBandsOutput:
        average = self._sma.next(value)
        deviation = self._sd.next(value)
        return BollingerBandsOutput(
            average=average,
            upper=average + self.multiplier * deviation,
            lower=average - self.multiplier * deviation,
        )


@dataclass(frozen=True)
class MacdOutput:
    macd: float
    signal: float
    histogram: float


class MovingAverageConvergenceDivergence:
    """MACD line (fast EMA - slow EMA), its EMA signal line and the histogram."""

    def __init__(self, fast_period: int, slow_period: int, signal_period: int) -> None:
        self._fast = ExponentialMovingAverage(fast_period)
        self._slow = ExponentialMovingAverage(slow_period)
        self._signal = ExponentialMovingAverage(signal_period)

    def next(self, value: float) -> MacdOutput:
        macd = self._fast.next(value) - self._slow.next(value)
        signal = self._signal.next(macd)
        return MacdOutput(macd=macd, signal=signal, histogram=macd - signal)

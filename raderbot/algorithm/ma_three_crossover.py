"""Three simple moving averages stacked in order."""

from __future__ import annotations

from pydantic import Field, model_validator

from raderbot.algorithm.base import Algorithm, AlgorithmParams, SignalResult
from raderbot.algorithm.indicators import SimpleMovingAverage
from raderbot.market.kline import Kline


class ThreeMaCrossoverParams(AlgorithmParams):
    short_period: int = Field(ge=1)
    medium_period: int = Field(ge=1)
    long_period: int = Field(ge=1)

    @model_validator(mode="after")
    def check_ordering(self) -> "ThreeMaCrossoverParams":
        if not self.short_period < self.medium_period < self.long_period:
            raise ValueError(
                "periods must satisfy short_period < medium_period < long_period"
            )
        return self


class ThreeMaCrossover(Algorithm):
    """LONG when short > medium > long, SHORT when short < medium < long."""

    name = "ThreeMaCrossover"
    params_model = ThreeMaCrossoverParams

    @property
    def lookback(self) -> int:
        return self._params.long_period

    def _reset_indicators(self) -> None:
        p = self._params
        self._short = SimpleMovingAverage(p.short_period)
        self._medium = SimpleMovingAverage(p.medium_period)
        self._long = SimpleMovingAverage(p.long_period)

    def _next(self, kline: Kline) -> SignalResult:
        short = self._short.next(kline.close)
        medium = self._medium.next(kline.close)
        long = self._long.next(kline.close)
        if not self.warmed_up:
            return SignalResult.IGNORE
        if short > medium > long:
            return SignalResult.LONG
        if short < medium < long:
            return SignalResult.SHORT
        return SignalResult.IGNORE

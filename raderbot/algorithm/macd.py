"""MACD signal-line crossover."""

from __future__ import annotations

from pydantic import Field, model_validator

from raderbot.algorithm.base import Algorithm, AlgorithmParams, SignalResult
from raderbot.algorithm.indicators import MovingAverageConvergenceDivergence
from raderbot.market.kline import Kline


class MacdParams(AlgorithmParams):
    fast_period: int = Field(default=12, ge=1)
    slow_period: int = Field(default=26, ge=1)
    signal_period: int = Field(default=9, ge=1)

    @model_validator(mode="after")
    def check_periods(self) -> "MacdParams":
        if self.fast_period >= self.slow_period:
            raise ValueError("fast_period must be below slow_period")
        return self


class Macd(Algorithm):
    """LONG while the MACD line is above its signal line, SHORT while below."""

    name = "Macd"
    params_model = MacdParams

    @property
    def lookback(self) -> int:
        return self._params.slow_period + self._params.signal_period

    def _reset_indicators(self) -> None:
        p = self._params
        self._macd = MovingAverageConvergenceDivergence(
            p.fast_period, p.slow_period, p.signal_period
        )

    def _next(self, kline: Kline) -> SignalResult:
        out = self._macd.next(kline.close)
        if not self.warmed_up:
            return SignalResult.IGNORE
        if out.macd > out.signal:
            return SignalResult.LONG
        if out.macd < out.signal:
            return SignalResult.SHORT
        return SignalResult.IGNORE

"""Plain RSI overbought/oversold."""

from __future__ import annotations

from pydantic import Field, model_validator

from raderbot.algorithm.base import Algorithm, AlgorithmParams, SignalResult
from raderbot.algorithm.indicators import RelativeStrengthIndex
from raderbot.market.kline import Kline


class RsiParams(AlgorithmParams):
    rsi_period: int = Field(default=14, ge=1)
    oversold: float = Field(default=30.0, ge=0.0, le=100.0)
    overbought: float = Field(default=70.0, ge=0.0, le=100.0)

    @model_validator(mode="after")
    def check_thresholds(self) -> "RsiParams":
        if self.oversold >= self.overbought:
            raise ValueError("oversold must be below overbought")
        return self


class Rsi(Algorithm):
    name = "Rsi"
    params_model = RsiParams

    @property
    def lookback(self) -> int:
        return self._params.rsi_period + 1

    def _reset_indicators(self) -> None:
        self._rsi = RelativeStrengthIndex(self._params.rsi_period)

    def _next(self, kline: Kline) -> SignalResult:
        rsi = self._rsi.next(kline.close)
        if not self.warmed_up:
            return SignalResult.IGNORE
        if rsi < self._params.oversold:
            return SignalResult.LONG
        if rsi > self._params.overbought:
            return SignalResult.SHORT
        return SignalResult.IGNORE

"""Price against a single simple moving average."""

from __future__ import annotations

from pydantic import Field

from raderbot.algorithm import indicators
from raderbot.algorithm.base import Algorithm, AlgorithmParams, SignalResult
from raderbot.market.kline import Kline


class SimpleMovingAverageParams(AlgorithmParams):
    sma_period: int = Field(ge=1)


class SimpleMovingAverage(Algorithm):
    """LONG while the close is above its SMA, SHORT while below."""

    name = "SimpleMovingAverage"
    params_model = SimpleMovingAverageParams

    @property
    def lookback(self) -> int:
        return self._params.sma_period

    def _reset_indicators(self) -> None:
        self._sma = indicators.SimpleMovingAverage(self._params.sma_period)

    def _next(self, kline: Kline) -> SignalResult:
        sma = self._sma.next(kline.close)
        if not self.warmed_up:
            return SignalResult.IGNORE
        if kline.close > sma:
            return SignalResult.LONG
        if kline.close < sma:
            return SignalResult.SHORT
        return SignalResult.IGNORE

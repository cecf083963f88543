"""EMA/SMA crossover."""

from __future__ import annotations

from pydantic import Field

from raderbot.algorithm.base import Algorithm, AlgorithmParams, SignalResult
from raderbot.algorithm.indicators import ExponentialMovingAverage, SimpleMovingAverage
from raderbot.market.kline import Kline


class EmaSmaCrossoverParams(AlgorithmParams):
    ema_period: int = Field(ge=1)
    sma_period: int = Field(ge=1)


class EmaSmaCrossover(Algorithm):
    """Follow the fast EMA against the slow SMA.

    LONG while EMA > SMA, SHORT while EMA < SMA. When the two are equal the
    close is compared against the SMA instead.
    """

    name = "EmaSmaCrossover"
    params_model = EmaSmaCrossoverParams

    @property
    def lookback(self) -> int:
        return max(self._params.ema_period, self._params.sma_period)

    def _reset_indicators(self) -> None:
        self._ema = ExponentialMovingAverage(self._params.ema_period)
        self._sma = SimpleMovingAverage(self._params.sma_period)

    def _next(self, kline: Kline) -> SignalResult:
        ema = self._ema.next(kline.close)
        sma = self._sma.next(kline.close)
        if not self.warmed_up:
            return SignalResult.IGNORE

        if ema > sma:
            return SignalResult.LONG
        if ema < sma:
            return SignalResult.SHORT

        if kline.close > sma:
            return SignalResult.LONG
        if kline.close < sma:
            return SignalResult.SHORT
        return SignalResult.IGNORE

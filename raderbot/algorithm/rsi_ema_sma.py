"""RSI-gated SMA ribbon with EMA confirmation."""

from __future__ import annotations

from pydantic import Field

from raderbot.algorithm.base import Algorithm, AlgorithmParams, SignalResult
from raderbot.algorithm.indicators import (
    ExponentialMovingAverage,
    RelativeStrengthIndex,
    SimpleMovingAverage,
)
from raderbot.market.kline import Kline

OVERSOLD = 30.0
OVERBOUGHT = 70.0


class RsiEmaSmaParams(AlgorithmParams):
    rsi_period: int = Field(default=14, ge=1)
    short_sma_period: int = Field(default=5, ge=1)
    medium_sma_period: int = Field(default=12, ge=1)
    long_sma_period: int = Field(default=26, ge=1)
    ema_period: int = Field(default=9, ge=1)


class RsiEmaSma(Algorithm):
    """Go LONG on an oversold RSI inside a bullish SMA stack, SHORT on the mirror.

    LONG:  RSI < 30 and short SMA > medium SMA > long SMA and short SMA > EMA.
    SHORT: RSI > 70 and short SMA < medium SMA < long SMA and short SMA < EMA.
    """

    name = "RsiEmaSma"
    params_model = RsiEmaSmaParams

    @property
    def lookback(self) -> int:
        p = self._params
        return max(
            p.rsi_period + 1,
            p.short_sma_period,
            p.medium_sma_period,
            p.long_sma_period,
            p.ema_period,
        )

    def _reset_indicators(self) -> None:
        p = self._params
        self._rsi = RelativeStrengthIndex(p.rsi_period)
        self._short_sma = SimpleMovingAverage(p.short_sma_period)
        self._medium_sma = SimpleMovingAverage(p.medium_sma_period)
        self._long_sma = SimpleMovingAverage(p.long_sma_period)
        self._ema = ExponentialMovingAverage(p.ema_period)

    def _next(self, kline: Kline) -> SignalResult:
        close = kline.close
        rsi = self._rsi.next(close)
        short_sma = self._short_sma.next(close)
        medium_sma = self._medium_sma.next(close)
        long_sma = self._long_sma.next(close)
        ema = self._ema.next(close)
        if not self.warmed_up:
            return SignalResult.IGNORE

        if rsi < OVERSOLD and short_sma > medium_sma > long_sma and short_sma > ema:
            return SignalResult.LONG
        if rsi > OVERBOUGHT and short_sma < medium_sma < long_sma and short_sma < ema:
            return SignalResult.SHORT
        return SignalResult.IGNORE

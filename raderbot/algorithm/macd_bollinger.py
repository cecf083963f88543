"""MACD direction confirmed by the Bollinger middle band."""

from __future__ import annotations

from pydantic import Field, model_validator

from raderbot.algorithm import indicators
from raderbot.algorithm.base import Algorithm, AlgorithmParams, SignalResult
from raderbot.algorithm.indicators import MovingAverageConvergenceDivergence
from raderbot.market.kline import Kline


class MacdBollingerBandsParams(AlgorithmParams):
    fast_period: int = Field(default=12, ge=1)
    slow_period: int = Field(default=26, ge=1)
    signal_period: int = Field(default=9, ge=1)
    bb_period: int = Field(default=20, ge=2)
    bb_multiplier: float = Field(default=2.0, gt=0.0)

    @model_validator(mode="after")
    def check_periods(self) -> "MacdBollingerBandsParams":
        if self.fast_period >= self.slow_period:
            raise ValueError("fast_period must be below slow_period")
        return self


class MacdBollingerBands(Algorithm):
    """Composite of MACD momentum and Bollinger trend position.

    LONG:  MACD above its signal line and close above the middle band.
    SHORT: MACD below its signal line and close below the middle band.
    Anything else (including a close outside the direction of momentum) is ignored.
    """

    name = "MacdBollingerBands"
    params_model = MacdBollingerBandsParams

    @property
    def lookback(self) -> int:
        p = self._params
        return max(p.slow_period + p.signal_period, p.bb_period)

    def _reset_indicators(self) -> None:
        p = self._params
        self._macd = MovingAverageConvergenceDivergence(
            p.fast_period, p.slow_period, p.signal_period
        )
        self._bands = indicators.BollingerBands(p.bb_period, p.bb_multiplier)

    def _next(self, kline: Kline) -> SignalResult:
        momentum = self._macd.next(kline.close)
        bands = self._bands.next(kline.close)
        if not self.warmed_up:
            return SignalResult.IGNORE
        if momentum.macd > momentum.signal and kline.close > bands.average:
            return SignalResult.LONG
        if momentum.macd < momentum.signal and kline.close < bands.average:
            return SignalResult.SHORT
        return SignalResult.IGNORE

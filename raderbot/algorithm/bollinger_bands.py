"""Bollinger band mean reversion."""

from __future__ import annotations

from pydantic import Field

from raderbot.algorithm import indicators
from raderbot.algorithm.base import Algorithm, AlgorithmParams, SignalResult
from raderbot.market.kline import Kline


class BollingerBandsParams(AlgorithmParams):
    period: int = Field(default=20, ge=2)
    multiplier: float = Field(default=2.0, gt=0.0)


class BollingerBands(Algorithm):
    """LONG on a close below the lower band, SHORT on a close above the upper band."""

    name = "BollingerBands"
    params_model = BollingerBandsParams

    @property
    def lookback(self) -> int:
        return self._params.period

    def _reset_indicators(self) -> None:
        self._bands = indicators.BollingerBands(self._params.period, self._params.multiplier)

    def _next(self, kline: Kline) -> SignalResult:
        bands = self._bands.next(kline.close)
        if not self.warmed_up:
            return SignalResult.IGNORE
        if kline.close < bands.lower:
            return SignalResult.LONG
        if kline.close > bands.upper:
            return SignalResult.SHORT
        return SignalResult.IGNORE

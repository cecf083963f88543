"""Market data: candles and cached prices."""

from raderbot.market.kline import Kline, build_kline_key
from raderbot.market.market import Market

__all__ = ["Kline", "Market", "build_kline_key"]

"""Strategies, signal handling and backtesting."""

from raderbot.strategy.backtest import BackTest
from raderbot.strategy.signal import (
    MarketPriceSource,
    PriceSource,
    SignalAction,
    SignalManager,
    SignalOutcome,
    embedded_price,
)
from raderbot.strategy.strategy import Strategy, StrategyState
from raderbot.strategy.types import (
    SignalMessage,
    StrategyId,
    StrategyInfo,
    StrategyResult,
    StrategySettings,
    StrategySummary,
)

__all__ = [
    "BackTest",
    "MarketPriceSource",
    "PriceSource",
    "SignalAction",
    "SignalManager",
    "SignalMessage",
    "SignalOutcome",
    "Strategy",
    "StrategyId",
    "StrategyInfo",
    "StrategyResult",
    "StrategySettings",
    "StrategyState",
    "StrategySummary",
    "embedded_price",
]

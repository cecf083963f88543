"""Exchange execution contract."""

from raderbot.exchange.api import ExchangeApi
from raderbot.exchange.mock import MockExchangeApi

__all__ = ["ExchangeApi", "MockExchangeApi"]

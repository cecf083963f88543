"""Storage contract for candles and strategy summaries."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from raderbot.market.kline import Kline
from raderbot.strategy.types import StrategyId, StrategySummary


class StorageManager(ABC):
    """Persistence used by the market (candles) and the bot (summaries)."""

    @abstractmethod
    def save_klines(self, klines: Sequence[Kline], kline_key: str) -> None:
        """Append candles under a symbol+interval key.

        A candle whose open_time matches the last stored row for its bucket
        replaces that row.
        """

    @abstractmethod
    def load_klines(
        self,
        symbol: str,
        interval: str,
        from_ts: int,
        to_ts: int | None = None,
        limit: int | None = None,
    ) -> list[Kline]:
        """Candles with from_ts <= open_time <= to_ts, ordered, first `limit` rows."""

    @abstractmethod
    def save_strategy_summary(self, summary: StrategySummary) -> None:
        ...

    @abstractmethod
    def get_strategy_summary(self, strategy_id: StrategyId) -> StrategySummary:
        """Raises FileNotFoundError when no summary is stored for the id."""

    @abstractmethod
    def list_saved_strategy_summaries(self) -> list[StrategySummary]:
        ...

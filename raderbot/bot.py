"""Application context wiring strategies, the signal channel and the account."""

from __future__ import annotations

import asyncio
from typing import Any, Mapping

import structlog

from raderbot.account.account import Account
from raderbot.config.settings import Settings
from raderbot.market.market import Market
from raderbot.monitoring.metrics import Metrics
from raderbot.storage.manager import StorageManager
from raderbot.strategy.backtest import BackTest
from raderbot.strategy.signal import MarketPriceSource, SignalManager
from raderbot.strategy.strategy import Strategy
from raderbot.strategy.types import (
    SignalMessage,
    StrategyId,
    StrategyInfo,
    StrategyResult,
    StrategySettings,
    StrategySummary,
)

log = structlog.get_logger(__name__)


class RaderBot:
    """Owns the live strategies and the single signal consumer.

    Created once at process start and handed to the control surface; `shutdown`
    aborts every strategy task and the consumer.
    """

    def __init__(
        self,
        settings: Settings,
        market: Market,
        account: Account,
        storage_manager: StorageManager | None = None,
        metrics: Metrics | None = None,
    ) -> None:
        self.settings = settings
        self.market = market
        self.account = account
        self.storage_manager = storage_manager
        self.metrics = metrics

        self.signal_queue: asyncio.Queue[SignalMessage] = asyncio.Queue(
            maxsize=settings.engine.signal_channel_capacity
        )
        self.signal_manager = SignalManager(account, MarketPriceSource(market), metrics)
        self.strategies: dict[StrategyId, Strategy] = {}
        self._consumer: asyncio.Task[None] | None = None

    def start(self) -> None:
        if self._consumer is not None and not self._consumer.done():
            return
        self._consumer = asyncio.create_task(self._consume_signals(), name="signal-consumer")
        log.info("bot_started", signal_channel_capacity=self.signal_queue.maxsize)

    async def shutdown(self) -> None:
        for strategy_id in list(self.strategies):
            await self.stop_strategy(strategy_id, close_positions=False)
        if self._consumer is not None:
            self._consumer.cancel()
            try:
                await self._consumer
            except asyncio.CancelledError:
                pass
            self._consumer = None
        log.info("bot_shutdown")

    async def _consume_signals(self) -> None:
        while True:
            signal = await self.signal_queue.get()
            try:
                await self.signal_manager.handle_signal(signal)
            except Exception:
                log.exception(
                    "signal_handler_failed",
                    strategy_id=signal.strategy_id,
                    symbol=signal.symbol,
                )
            finally:
                self.signal_queue.task_done()
                if self.metrics is not None:
                    self.metrics.signal_queue_depth.set(self.signal_queue.qsize())

    def default_strategy_settings(self) -> StrategySettings:
        defaults = self.settings.strategy_defaults
        return StrategySettings(
            max_open_orders=defaults.max_open_orders,
            margin_usd=defaults.margin_usd,
            leverage=defaults.leverage,
        )

    def _build_strategy(
        self,
        algorithm_name: str,
        symbol: str,
        interval: str,
        algorithm_params: Mapping[str, Any] | None,
        settings: StrategySettings | None,
    ) -> Strategy:
        return Strategy(
            algorithm_name,
            symbol,
            interval,
            settings or self.default_strategy_settings(),
            algorithm_params,
            signal_tx=self.signal_queue,
            market=self.market,
            retention=self.settings.engine.data_point_retention,
            metrics=self.metrics,
        )

    def add_strategy(
        self,
        algorithm_name: str,
        symbol: str,
        interval: str,
        algorithm_params: Mapping[str, Any] | None = None,
        settings: StrategySettings | None = None,
    ) -> StrategyId:
        """Build, register and start a live strategy.

        Raises:
            AlgorithmError: If the algorithm cannot be built. Nothing is registered.
        """
        strategy = self._build_strategy(algorithm_name, symbol, interval, algorithm_params, settings)
        self.signal_manager.add_strategy_settings(strategy.id, strategy.settings)
        try:
            strategy.start()
        except Exception:
            self.signal_manager.remove_strategy_settings(strategy.id)
            raise
        self.strategies[strategy.id] = strategy
        if self.metrics is not None:
            self.metrics.active_strategies.set(len(self.strategies))
        return strategy.id

    def get_strategy(self, strategy_id: StrategyId) -> Strategy:
        try:
            return self.strategies[strategy_id]
        except KeyError:
            raise KeyError(f"Strategy {strategy_id} not found") from None

    def strategy_ids(self) -> list[StrategyId]:
        return list(self.strategies)

    def active_strategies(self) -> list[StrategyInfo]:
        return [strategy.info() for strategy in self.strategies.values()]

    async def stop_strategy(
        self, strategy_id: StrategyId, close_positions: bool = False
    ) -> StrategySummary:
        strategy = self.get_strategy(strategy_id)
        del self.strategies[strategy_id]
        # Signals still queued for this strategy are dropped from here on.
        self.signal_manager.remove_strategy_settings(strategy_id)

        summary = await strategy.stop(self.account, close_positions)
        if self.storage_manager is not None:
            self.storage_manager.save_strategy_summary(summary)
        if self.metrics is not None:
            self.metrics.active_strategies.set(len(self.strategies))
        return summary

    async def stop_all_strategies(self, close_positions: bool = False) -> list[StrategySummary]:
        summaries = []
        for strategy_id in list(self.strategies):
            summaries.append(await self.stop_strategy(strategy_id, close_positions))
        return summaries

    def set_strategy_params(
        self, strategy_id: StrategyId, params: Mapping[str, Any]
    ) -> dict[str, Any]:
        return self.get_strategy(strategy_id).set_algorithm_params(params)

    async def run_back_test(
        self,
        algorithm_name: str,
        symbol: str,
        interval: str,
        from_ts: int,
        to_ts: int | None = None,
        algorithm_params: Mapping[str, Any] | None = None,
        settings: StrategySettings | None = None,
        limit: int | None = None,
    ) -> StrategyResult:
        """Backtest an algorithm over stored candles. Never touches the live account."""
        strategy = Strategy(
            algorithm_name,
            symbol,
            interval,
            settings or self.default_strategy_settings(),
            algorithm_params,
            retention=self.settings.engine.data_point_retention,
        )
        if limit is None:
            limit = self.settings.backtest.candle_limit
        klines = self.market.candle_range(symbol, interval, from_ts, to_ts, limit)
        return await BackTest(strategy, self.metrics).run(klines)

    def strategy_summaries(self) -> list[StrategySummary]:
        if self.storage_manager is None:
            return []
        return self.storage_manager.list_saved_strategy_summaries()

    def strategy_summary(self, strategy_id: StrategyId) -> StrategySummary:
        if self.storage_manager is None:
            raise FileNotFoundError(f"No summary stored for strategy {strategy_id}")
        return self.storage_manager.get_strategy_summary(strategy_id)

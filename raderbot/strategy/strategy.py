"""Strategy: one algorithm bound to one symbol and interval."""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping
from uuid import uuid4

import structlog

from raderbot.algorithm.base import DEFAULT_RETENTION, Algorithm
from raderbot.algorithm.builder import build_algorithm
from raderbot.market.kline import Kline
from raderbot.strategy.metrics import build_strategy_result
from raderbot.strategy.types import (
    SignalMessage,
    StrategyId,
    StrategyInfo,
    StrategySettings,
    StrategySummary,
    order_side_for,
)
from raderbot.utils.time import generate_ts

if TYPE_CHECKING:
    from raderbot.account.account import Account
    from raderbot.market.market import Market
    from raderbot.monitoring.metrics import Metrics

log = structlog.get_logger(__name__)


class StrategyState(str, Enum):
    CREATED = "created"
    RUNNING = "running"
    STOPPED = "stopped"


class Strategy:
    """Evaluates closed candles with its own algorithm and publishes signals.

    The algorithm is built in the constructor, so a bad name, interval or
    parameter set raises before any strategy object exists.
    """

    def __init__(
        self,
        algorithm_name: str,
        symbol: str,
        interval: str,
        settings: StrategySettings,
        algorithm_params: Mapping[str, Any] | None = None,
        signal_tx: asyncio.Queue[SignalMessage] | None = None,
        market: Market | None = None,
        retention: int = DEFAULT_RETENTION,
        metrics: Metrics | None = None,
    ) -> None:
        self.algorithm: Algorithm = build_algorithm(
            algorithm_name, interval, algorithm_params, retention=retention
        )
        self.id: StrategyId = str(uuid4())
        self.algorithm_name = algorithm_name
        self.symbol = symbol
        self.interval = interval
        self._settings = settings
        self._retention = retention
        self._signal_tx = signal_tx
        self._market = market
        self._metrics = metrics

        self.state = StrategyState.CREATED
        self._task: asyncio.Task[None] | None = None
        self._subscription: asyncio.Queue[Kline] | None = None
        self._first_open: float | None = None
        self._last_close: float | None = None

    @property
    def settings(self) -> StrategySettings:
        return self._settings

    def info(self) -> StrategyInfo:
        return StrategyInfo(
            id=self.id,
            algorithm_name=self.algorithm_name,
            symbol=self.symbol,
            interval=self.interval,
            settings=self._settings,
            algorithm_params=self.algorithm.get_params(),
        )

    def get_algorithm_params(self) -> dict[str, Any]:
        return self.algorithm.get_params()

    def set_algorithm_params(self, params: Mapping[str, Any]) -> dict[str, Any]:
        self.algorithm.set_params(params)
        log.info("strategy_params_updated", strategy_id=self.id, params=self.algorithm.get_params())
        return self.algorithm.get_params()

    def replica(self) -> Strategy:
        """Detached copy for replaying candles: same id, settings and current params,
        no candle history, no market or signal channel."""
        replica = Strategy(
            self.algorithm_name,
            self.symbol,
            self.interval,
            self._settings,
            self.algorithm.get_params(),
            retention=self._retention,
        )
        replica.id = self.id
        return replica

    def evaluate(self, kline: Kline, is_replay: bool = False) -> SignalMessage | None:
        """Run one closed candle through the algorithm.

        Shared by the live task and the backtest; the signal carries the candle
        close as its embedded price.
        """
        if self._first_open is None:
            self._first_open = kline.open
        self._last_close = kline.close

        result = self.algorithm.evaluate(kline)
        if self._metrics is not None:
            self._metrics.candles_evaluated.labels(strategy_id=self.id).inc()

        order_side = order_side_for(result)
        if order_side is None:
            return None
        return SignalMessage(
            strategy_id=self.id,
            symbol=self.symbol,
            order_side=order_side,
            price=kline.close,
            timestamp=kline.close_time,
            is_replay=is_replay,
        )

    def start(self) -> asyncio.Task[None]:
        if self.state is not StrategyState.CREATED:
            raise RuntimeError(f"Strategy {self.id} cannot start from state {self.state.value}")
        if self._market is None or self._signal_tx is None:
            raise RuntimeError(f"Strategy {self.id} needs a market and a signal channel to start")

        self._subscription = self._market.subscribe(self.symbol, self.interval)
        self._task = asyncio.create_task(
            self._run(self._subscription), name=f"strategy-{self.id}"
        )
        self.state = StrategyState.RUNNING
        log.info(
            "strategy_started",
            strategy_id=self.id,
            algorithm=self.algorithm.describe(),
            symbol=self.symbol,
            interval=self.interval,
        )
        return self._task

    async def _run(self, queue: asyncio.Queue[Kline]) -> None:
        assert self._signal_tx is not None
        # The task runs in its own context copy; the binding stays with it.
        structlog.contextvars.bind_contextvars(strategy_id=self.id, symbol=self.symbol)
        try:
            while True:
                kline = await queue.get()
                signal = self.evaluate(kline)
                if signal is not None:
                    await self._signal_tx.put(signal)
        except Exception:
            log.exception("strategy_task_failed")
            raise

    async def stop(self, account: Account, close_positions: bool = False) -> StrategySummary:
        """Halt evaluation and build the final summary from this strategy's trades."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        if self._market is not None and self._subscription is not None:
            self._market.unsubscribe(self.symbol, self.interval, self._subscription)
            self._subscription = None
        self.state = StrategyState.STOPPED

        if close_positions:
            await self._close_positions(account)

        trades = account.strategy_trades(self.id)
        result = build_strategy_result(
            self.symbol,
            trades,
            period_start_price=self._first_open or 0.0,
            period_end_price=self._last_close or 0.0,
        )
        log.info(
            "strategy_stopped",
            strategy_id=self.id,
            trades=len(trades),
            profit=result.profit,
            closed_positions=close_positions,
        )
        return StrategySummary(
            info=self.info(),
            result=result,
            trades=tuple(trades),
            stopped_at=generate_ts(),
        )

    async def _close_positions(self, account: Account) -> None:
        positions = await account.strategy_open_positions(self.id)
        if not positions:
            return

        price = None
        if self._market is not None:
            price = await self._market.last_price(self.symbol)
        if price is None:
            price = self._last_close
        if price is None:
            log.warning("strategy_close_skipped_no_price", strategy_id=self.id, open=len(positions))
            return

        for position in positions:
            await account.close_position(position.id, price)

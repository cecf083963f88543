"""Replay historical candles through the live evaluation pipeline."""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING, Iterable

import structlog

from raderbot.account.account import Account
from raderbot.market.kline import Kline
from raderbot.strategy.metrics import build_strategy_result
from raderbot.strategy.signal import SignalManager, SignalOutcome, embedded_price
from raderbot.strategy.strategy import Strategy
from raderbot.strategy.types import SignalMessage, StrategyResult

if TYPE_CHECKING:
    from raderbot.monitoring.metrics import Metrics

log = structlog.get_logger(__name__)


class BackTest:
    """Isolated Strategy + SignalManager + Account over a closed candle range.

    Each run evaluates a fresh replica of the strategy against a fresh account,
    so repeated runs over the same candles give identical results and a live
    strategy handed in keeps its own algorithm state.
    """

    def __init__(self, strategy: Strategy, metrics: Metrics | None = None) -> None:
        self.strategy = strategy
        self._metrics = metrics
        # Populated by `run`.
        self.account: Account | None = None
        self.signal_manager: SignalManager | None = None
        self.signals: list[SignalMessage] = []
        self.outcomes: list[SignalOutcome] = []

    async def run(self, klines: Iterable[Kline]) -> StrategyResult:
        ordered = sorted(klines, key=lambda k: k.open_time)

        replay = self.strategy.replica()
        account = Account()
        signal_manager = SignalManager(account, embedded_price)
        signal_manager.add_strategy_settings(replay.id, replay.settings)
        self.account = account
        self.signal_manager = signal_manager
        self.signals = []
        self.outcomes = []

        if not ordered:
            log.info("backtest_empty_range", strategy_id=replay.id, symbol=replay.symbol)
            return build_strategy_result(replay.symbol, [], 0.0, 0.0)

        for kline in ordered:
            signal = replay.evaluate(kline, is_replay=True)
            if signal is None:
                continue
            self.signals.append(signal)
            self.outcomes.append(await signal_manager.handle_signal(signal))

        last = ordered[-1]
        for position in account.positions():
            await account.close_position(position.id, last.close, timestamp=last.close_time)

        result = build_strategy_result(
            replay.symbol,
            account.trades(),
            period_start_price=ordered[0].open,
            period_end_price=last.close,
        )
        if self._metrics is not None:
            self._metrics.backtests_run.inc()
        log.info(
            "backtest_completed",
            strategy_id=replay.id,
            algorithm=replay.algorithm.describe(),
            candles=len(ordered),
            signals=len(self.signals),
            actions=dict(Counter(outcome.action.value for outcome in self.outcomes)),
            trades=result.long_count + result.short_count,
            profit=result.profit,
            max_profit=result.max_profit,
            max_drawdown=result.max_drawdown,
        )
        return result

"""Serialized translation of strategy signals into position actions."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Awaitable, Callable

import structlog

from raderbot.account.account import Account
from raderbot.account.trade import Position, TradeTx
from raderbot.strategy.types import SignalMessage, StrategyId, StrategySettings

if TYPE_CHECKING:
    from raderbot.market.market import Market
    from raderbot.monitoring.metrics import Metrics

log = structlog.get_logger(__name__)

PriceSource = Callable[[SignalMessage], Awaitable[float | None]]


async def embedded_price(signal: SignalMessage) -> float | None:
    """Trigger price for replayed candles: the price carried by the signal."""
    return signal.price


class MarketPriceSource:
    """Trigger price for live signals: the market's cached last price.

    Replay signals still use their embedded price so a live strategy catching up
    on history does not trade old candles at today's price.
    """

    def __init__(self, market: Market) -> None:
        self._market = market

    async def __call__(self, signal: SignalMessage) -> float | None:
        if signal.is_replay:
            return signal.price
        return await self._market.last_price(signal.symbol)


class SignalAction(str, Enum):
    OPENED = "opened"
    PYRAMIDED = "pyramided"
    FLIPPED = "flipped"
    AT_CAPACITY = "at_capacity"
    DROPPED = "dropped"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class SignalOutcome:
    action: SignalAction
    opened: Position | None = None
    closed: tuple[TradeTx, ...] = field(default_factory=tuple)


class SignalManager:
    """Applies signals to the account one at a time.

    Callers must not run `handle_signal` concurrently for the same account; the
    live engine drains a single queue with a single task, the backtest calls it
    inline.
    """

    def __init__(
        self,
        account: Account,
        price_source: PriceSource = embedded_price,
        metrics: Metrics | None = None,
    ) -> None:
        self.account = account
        self._price_source = price_source
        self._metrics = metrics
        self._settings: dict[StrategyId, StrategySettings] = {}

    def add_strategy_settings(self, strategy_id: StrategyId, settings: StrategySettings) -> None:
        self._settings[strategy_id] = settings

    def remove_strategy_settings(self, strategy_id: StrategyId) -> StrategySettings | None:
        return self._settings.pop(strategy_id, None)

    def strategy_settings(self, strategy_id: StrategyId) -> StrategySettings | None:
        return self._settings.get(strategy_id)

    async def handle_signal(self, signal: SignalMessage) -> SignalOutcome:
        if self._metrics is not None:
            self._metrics.signals_received.labels(strategy_id=signal.strategy_id).inc()

        outcome = await self._apply(signal)

        if self._metrics is not None:
            self._metrics.signal_actions.labels(action=outcome.action.value).inc()
        log.debug(
            "signal_handled",
            strategy_id=signal.strategy_id,
            symbol=signal.symbol,
            side=signal.order_side.value,
            action=outcome.action.value,
            closed=len(outcome.closed),
            is_replay=signal.is_replay,
        )
        return outcome

    async def _apply(self, signal: SignalMessage) -> SignalOutcome:
        open_positions = await self.account.strategy_open_positions(signal.strategy_id)

        price = await self._price_source(signal)
        if price is None:
            log.warning(
                "signal_skipped_no_price",
                strategy_id=signal.strategy_id,
                symbol=signal.symbol,
            )
            return SignalOutcome(SignalAction.SKIPPED)

        settings = self.strategy_settings(signal.strategy_id)
        if settings is None:
            # Strategy was stopped while its signal sat in the queue.
            log.info("signal_dropped_unknown_strategy", strategy_id=signal.strategy_id)
            return SignalOutcome(SignalAction.DROPPED)

        opposite = [p for p in open_positions if p.side is signal.order_side.opposite]
        if opposite:
            closed = []
            for position in open_positions:
                trade = await self.account.close_position(
                    position.id, price, timestamp=signal.timestamp
                )
                if trade is not None:
                    closed.append(trade)
            opened = await self._open(signal, settings, price)
            return SignalOutcome(SignalAction.FLIPPED, opened=opened, closed=tuple(closed))

        if not open_positions:
            opened = await self._open(signal, settings, price)
            return SignalOutcome(SignalAction.OPENED, opened=opened)

        if len(open_positions) < settings.max_open_orders:
            opened = await self._open(signal, settings, price)
            return SignalOutcome(SignalAction.PYRAMIDED, opened=opened)

        return SignalOutcome(SignalAction.AT_CAPACITY)

    async def _open(
        self, signal: SignalMessage, settings: StrategySettings, price: float
    ) -> Position:
        return await self.account.open_position(
            signal.symbol,
            settings.margin_usd,
            settings.leverage,
            signal.order_side,
            None,
            price,
            strategy_id=signal.strategy_id,
            timestamp=signal.timestamp,
        )

"""In-memory ledger of open positions and closed trades."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog

from raderbot.account.trade import OrderSide, Position, PositionId, TradeTx, new_position_id
from raderbot.utils.time import generate_ts

if TYPE_CHECKING:
    from raderbot.exchange.api import ExchangeApi
    from raderbot.monitoring.metrics import Metrics

log = structlog.get_logger(__name__)


class Account:
    """Single source of truth for open positions and realized trades.

    Every mutation runs under one lock and the critical sections are purely
    in-memory. When an exchange is attached the venue is called before the lock
    is taken and the confirmed fill is what gets recorded.
    """

    def __init__(
        self,
        exchange_api: ExchangeApi | None = None,
        metrics: Metrics | None = None,
    ) -> None:
        self._exchange_api = exchange_api
        self._metrics = metrics
        self._lock = asyncio.Lock()
        self._positions: dict[PositionId, Position] = {}
        self._trades: list[TradeTx] = []

    @property
    def is_live(self) -> bool:
        return self._exchange_api is not None

    async def open_position(
        self,
        symbol: str,
        margin_usd: float,
        leverage: int,
        side: OrderSide,
        limit_price: float | None,
        current_price: float,
        *,
        strategy_id: str | None = None,
        timestamp: int | None = None,
    ) -> Position:
        if current_price <= 0:
            raise ValueError(f"current_price must be positive, got {current_price}")
        if margin_usd <= 0:
            raise ValueError(f"margin_usd must be positive, got {margin_usd}")
        if leverage < 1:
            raise ValueError(f"leverage must be >= 1, got {leverage}")
        open_time = timestamp if timestamp is not None else generate_ts()
        open_price = limit_price if limit_price is not None else current_price

        if self._exchange_api is not None:
            position = await self._exchange_api.open_position(
                symbol, margin_usd, leverage, side, open_price, strategy_id, open_time
            )
        else:
            position = Position(
                id=new_position_id(),
                strategy_id=strategy_id,
                symbol=symbol,
                side=side,
                open_price=open_price,
                margin_usd=margin_usd,
                leverage=leverage,
                quantity=margin_usd * leverage / current_price,
                open_time=open_time,
            )

        async with self._lock:
            self._positions[position.id] = position
            open_count = len(self._positions)

        log.info(
            "position_opened",
            position_id=position.id,
            strategy_id=strategy_id,
            symbol=symbol,
            side=side.value,
            open_price=position.open_price,
            quantity=position.quantity,
            live=self.is_live,
        )
        if self._metrics is not None:
            self._metrics.positions_opened.labels(symbol=symbol, side=side.value).inc()
            self._metrics.open_positions.set(open_count)
        return position

    async def close_position(
        self,
        position_id: PositionId,
        close_price: float,
        *,
        timestamp: int | None = None,
    ) -> TradeTx | None:
        """Close an open position. Returns None if the id is not open."""
        if close_price <= 0:
            raise ValueError(f"close_price must be positive, got {close_price}")
        close_time = timestamp if timestamp is not None else generate_ts()

        async with self._lock:
            position = self._positions.get(position_id)
        if position is None:
            log.warning("close_unknown_position", position_id=position_id)
            return None

        if self._exchange_api is not None:
            trade = await self._exchange_api.close_position(position, close_price, close_time)
        else:
            trade = TradeTx(
                id=str(uuid4()),
                position=position,
                close_price=close_price,
                close_time=close_time,
            )

        async with self._lock:
            if self._positions.pop(position_id, None) is None:
                # Closed concurrently while the venue call was in flight.
                return None
            self._trades.append(trade)
            open_count = len(self._positions)
            realized = self.realized_profit()

        log.info(
            "position_closed",
            position_id=position_id,
            strategy_id=position.strategy_id,
            symbol=position.symbol,
            side=position.side.value,
            close_price=trade.close_price,
            profit=trade.profit,
            live=self.is_live,
        )
        if self._metrics is not None:
            self._metrics.trades_closed.labels(
                symbol=position.symbol, side=position.side.value
            ).inc()
            self._metrics.open_positions.set(open_count)
            self._metrics.realized_profit.set(realized)
        return trade

    async def strategy_open_positions(self, strategy_id: str) -> list[Position]:
        async with self._lock:
            return [p for p in self._positions.values() if p.strategy_id == strategy_id]

    def positions(self) -> list[Position]:
        return list(self._positions.values())

    def trades(self) -> list[TradeTx]:
        return list(self._trades)

    def strategy_trades(self, strategy_id: str) -> list[TradeTx]:
        return [t for t in self._trades if t.position.strategy_id == strategy_id]

    def realized_profit(self) -> float:
        return sum(t.profit for t in self._trades)

"""In-process exchange that fills every request at the requested price."""

from __future__ import annotations

from uuid import uuid4

import structlog

from raderbot.account.trade import OrderSide, Position, TradeTx, new_position_id
from raderbot.exchange.api import ExchangeApi

log = structlog.get_logger(__name__)


class MockExchangeApi(ExchangeApi):
    def __init__(self) -> None:
        self.opened: list[Position] = []
        self.closed: list[TradeTx] = []

    async def open_position(
        self,
        symbol: str,
        margin_usd: float,
        leverage: int,
        side: OrderSide,
        open_price: float,
        strategy_id: str | None,
        timestamp: int,
    ) -> Position:
        position = Position(
            id=new_position_id(),
            strategy_id=strategy_id,
            symbol=symbol,
            side=side,
            open_price=open_price,
            margin_usd=margin_usd,
            leverage=leverage,
            quantity=margin_usd * leverage / open_price,
            open_time=timestamp,
        )
        self.opened.append(position)
        log.debug("mock_exchange_open", symbol=symbol, side=side.value, price=open_price)
        return position

    async def close_position(self, position: Position, close_price: float, timestamp: int) -> TradeTx:
        trade = TradeTx(
            id=str(uuid4()),
            position=position,
            close_price=close_price,
            close_time=timestamp,
        )
        self.closed.append(trade)
        log.debug("mock_exchange_close", position_id=position.id, price=close_price)
        return trade

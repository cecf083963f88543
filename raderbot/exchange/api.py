"""Exchange execution contract used by the account in live mode."""

from __future__ import annotations

from abc import ABC, abstractmethod

from raderbot.account.trade import OrderSide, Position, TradeTx


class ExchangeApi(ABC):
    """Places and closes positions on a venue and returns the confirmed fills."""

    @abstractmethod
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
        """Open a position and return it as filled by the venue."""

    @abstractmethod
    async def close_position(
        self,
        position: Position,
        close_price: float,
        timestamp: int,
    ) -> TradeTx:
        """Close a position and return the resulting trade as filled by the venue."""

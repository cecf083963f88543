"""Position and trade records."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any
from uuid import uuid4


class OrderSide(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"

    @property
    def opposite(self) -> "OrderSide":
        return OrderSide.SHORT if self is OrderSide.LONG else OrderSide.LONG


PositionId = str


def new_position_id() -> PositionId:
    return str(uuid4())


@dataclass(frozen=True)
class Position:
    """An open leveraged exposure owned by one strategy."""

    id: PositionId
    strategy_id: str | None
    symbol: str
    side: OrderSide
    open_price: float
    margin_usd: float
    leverage: int
    quantity: float
    open_time: int

    def unrealized_profit(self, price: float) -> float:
        delta = (price - self.open_price) * self.quantity
        return delta if self.side is OrderSide.LONG else -delta

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "strategy_id": self.strategy_id,
            "symbol": self.symbol,
            "side": self.side.value,
            "open_price": self.open_price,
            "margin_usd": self.margin_usd,
            "leverage": self.leverage,
            "quantity": self.quantity,
            "open_time": self.open_time,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Position":
        return cls(
            id=data["id"],
            strategy_id=data.get("strategy_id"),
            symbol=data["symbol"],
            side=OrderSide(data["side"]),
            open_price=float(data["open_price"]),
            margin_usd=float(data["margin_usd"]),
            leverage=int(data["leverage"]),
            quantity=float(data["quantity"]),
            open_time=int(data["open_time"]),
        )


@dataclass(frozen=True)
class TradeTx:
    """A closed position."""

    id: str
    position: Position
    close_price: float
    close_time: int

    @property
    def profit(self) -> float:
        return self.position.unrealized_profit(self.close_price)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "position": self.position.to_dict(),
            "close_price": self.close_price,
            "close_time": self.close_time,
            "profit": self.profit,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TradeTx":
        return cls(
            id=data["id"],
            position=Position.from_dict(data["position"]),
            close_price=float(data["close_price"]),
            close_time=int(data["close_time"]),
        )

"""Value types exchanged between strategies, the signal manager and storage."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from raderbot.account.trade import OrderSide, TradeTx
from raderbot.algorithm.base import SignalResult

StrategyId = str


def order_side_for(result: SignalResult) -> OrderSide | None:
    """Map an algorithm result to the side it asks for (None for IGNORE)."""
    if result is SignalResult.LONG:
        return OrderSide.LONG
    if result is SignalResult.SHORT:
        return OrderSide.SHORT
    return None


@dataclass(frozen=True)
class SignalMessage:
    strategy_id: StrategyId
    symbol: str
    order_side: OrderSide
    price: float
    timestamp: int
    is_replay: bool = False


@dataclass(frozen=True)
class StrategySettings:
    """Execution policy fixed for the life of a strategy."""

    max_open_orders: int
    margin_usd: float
    leverage: int

    def __post_init__(self) -> None:
        if self.max_open_orders < 1:
            raise ValueError(f"max_open_orders must be >= 1, got {self.max_open_orders}")
        if self.margin_usd <= 0:
            raise ValueError(f"margin_usd must be positive, got {self.margin_usd}")
        if self.leverage < 1:
            raise ValueError(f"leverage must be >= 1, got {self.leverage}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "max_open_orders": self.max_open_orders,
            "margin_usd": self.margin_usd,
            "leverage": self.leverage,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StrategySettings":
        return cls(
            max_open_orders=int(data["max_open_orders"]),
            margin_usd=float(data["margin_usd"]),
            leverage=int(data["leverage"]),
        )


@dataclass(frozen=True)
class StrategyInfo:
    id: StrategyId
    algorithm_name: str
    symbol: str
    interval: str
    settings: StrategySettings
    algorithm_params: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "algorithm_name": self.algorithm_name,
            "symbol": self.symbol,
            "interval": self.interval,
            "settings": self.settings.to_dict(),
            "algorithm_params": dict(self.algorithm_params),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StrategyInfo":
        return cls(
            id=data["id"],
            algorithm_name=data["algorithm_name"],
            symbol=data["symbol"],
            interval=data["interval"],
            settings=StrategySettings.from_dict(data["settings"]),
            algorithm_params=dict(data.get("algorithm_params", {})),
        )


@dataclass(frozen=True)
class StrategyResult:
    symbol: str
    profit: float
    long_count: int
    short_count: int
    period_start_price: float
    period_end_price: float
    max_profit: float
    max_drawdown: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "profit": self.profit,
            "long_count": self.long_count,
            "short_count": self.short_count,
            "period_start_price": self.period_start_price,
            "period_end_price": self.period_end_price,
            "max_profit": self.max_profit,
            "max_drawdown": self.max_drawdown,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StrategyResult":
        return cls(
            symbol=data["symbol"],
            profit=float(data["profit"]),
            long_count=int(data["long_count"]),
            short_count=int(data["short_count"]),
            period_start_price=float(data["period_start_price"]),
            period_end_price=float(data["period_end_price"]),
            max_profit=float(data["max_profit"]),
            max_drawdown=float(data["max_drawdown"]),
        )


@dataclass(frozen=True)
class StrategySummary:
    """Final statistics of a stopped strategy."""

    info: StrategyInfo
    result: StrategyResult
    trades: tuple[TradeTx, ...]
    stopped_at: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "info": self.info.to_dict(),
            "result": self.result.to_dict(),
            "trades": [t.to_dict() for t in self.trades],
            "stopped_at": self.stopped_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StrategySummary":
        return cls(
            info=StrategyInfo.from_dict(data["info"]),
            result=StrategyResult.from_dict(data["result"]),
            trades=tuple(TradeTx.from_dict(t) for t in data.get("trades", [])),
            stopped_at=int(data["stopped_at"]),
        )

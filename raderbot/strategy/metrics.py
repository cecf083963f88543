"""Aggregate statistics over realized trades."""

from __future__ import annotations

from typing import Iterable, Sequence

from raderbot.account.trade import OrderSide, TradeTx
from raderbot.strategy.types import StrategyResult


def profit_extremes(trades: Sequence[TradeTx]) -> tuple[float, float]:
    """Single forward scan of cumulative profit.

    Returns (max_profit, max_drawdown): the highest and lowest values reached by
    the running sum, both starting from a zero baseline.
    """
    balance = 0.0
    highest = 0.0
    lowest = 0.0
    for trade in trades:
        balance += trade.profit
        if balance > highest:
            highest = balance
        if balance < lowest:
            lowest = balance
    return highest, lowest


def sort_trades(trades: Iterable[TradeTx]) -> list[TradeTx]:
    # Stable: trades closed at the same instant keep ledger order.
    return sorted(trades, key=lambda t: t.close_time)


def build_strategy_result(
    symbol: str,
    trades: Sequence[TradeTx],
    period_start_price: float,
    period_end_price: float,
) -> StrategyResult:
    ordered = sort_trades(trades)
    max_profit, max_drawdown = profit_extremes(ordered)
    long_count = sum(1 for t in ordered if t.position.side is OrderSide.LONG)
    return StrategyResult(
        symbol=symbol,
        profit=sum(t.profit for t in ordered),
        long_count=long_count,
        short_count=len(ordered) - long_count,
        period_start_price=period_start_price,
        period_end_price=period_end_price,
        max_profit=max_profit,
        max_drawdown=max_drawdown,
    )

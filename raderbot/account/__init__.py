"""Account ledger."""

from raderbot.account.account import Account
from raderbot.account.trade import OrderSide, Position, PositionId, TradeTx

__all__ = ["Account", "OrderSide", "Position", "PositionId", "TradeTx"]

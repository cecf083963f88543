"""Candle (kline) value type."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Sequence

# Column order used by the CSV store.
KLINE_FIELDS = (
    "symbol",
    "interval",
    "open_time",
    "open",
    "high",
    "low",
    "close",
    "volume",
    "close_time",
)


@dataclass(frozen=True)
class Kline:
    """One OHLCV bar. Timestamps are epoch milliseconds."""

    symbol: str
    interval: str
    open: float
    high: float
    low: float
    close: float
    volume: float
    open_time: int
    close_time: int

    def to_row(self) -> list[str]:
        values = asdict(self)
        return [str(values[name]) for name in KLINE_FIELDS]

    @classmethod
    def from_row(cls, row: Sequence[str]) -> "Kline":
        """Parse a CSV row written by `to_row`.

        Raises:
            ValueError: If the row has the wrong arity or non-numeric fields.
        """
        if len(row) != len(KLINE_FIELDS):
            raise ValueError(f"Kline row must have {len(KLINE_FIELDS)} fields, got {len(row)}")
        data = dict(zip(KLINE_FIELDS, row))
        return cls(
            symbol=data["symbol"],
            interval=data["interval"],
            open=float(data["open"]),
            high=float(data["high"]),
            low=float(data["low"]),
            close=float(data["close"]),
            volume=float(data["volume"]),
            open_time=int(data["open_time"]),
            close_time=int(data["close_time"]),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def build_kline_key(symbol: str, interval: str) -> str:
    return f"{symbol.upper()}_{interval}"

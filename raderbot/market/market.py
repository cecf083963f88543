"""Live market state: cached last prices and closed-candle fan-out."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import TYPE_CHECKING

import structlog

from raderbot.market.kline import Kline, build_kline_key

if TYPE_CHECKING:
    from raderbot.storage.manager import StorageManager

log = structlog.get_logger(__name__)


class Market:
    """Holds the latest tick per symbol and distributes closed candles.

    Price lookups only ever read the cache; nothing in here talks to the network.
    Persistence through the storage manager happens outside the lock.
    """

    def __init__(self, storage_manager: StorageManager | None = None) -> None:
        self._storage = storage_manager
        self._lock = asyncio.Lock()
        self._last_prices: dict[str, float] = {}
        self._last_klines: dict[str, Kline] = {}
        self._subscribers: dict[str, list[asyncio.Queue[Kline]]] = defaultdict(list)

    async def last_price(self, symbol: str) -> float | None:
        async with self._lock:
            return self._last_prices.get(symbol)

    async def update_price(self, symbol: str, price: float) -> None:
        async with self._lock:
            self._last_prices[symbol] = price

    async def last_kline(self, symbol: str, interval: str) -> Kline | None:
        async with self._lock:
            return self._last_klines.get(build_kline_key(symbol, interval))

    async def ingest_kline(self, kline: Kline, closed: bool = False) -> None:
        """Record a candle update from the feed.

        In-progress updates refresh the last price and the stored bar; only closed
        candles are delivered to subscribed strategies.
        """
        key = build_kline_key(kline.symbol, kline.interval)
        async with self._lock:
            self._last_prices[kline.symbol] = kline.close
            self._last_klines[key] = kline
            queues = list(self._subscribers.get(key, ()))

        if self._storage is not None:
            self._storage.save_klines([kline], key)

        if closed:
            for queue in queues:
                queue.put_nowait(kline)

    def subscribe(self, symbol: str, interval: str) -> asyncio.Queue[Kline]:
        queue: asyncio.Queue[Kline] = asyncio.Queue()
        self._subscribers[build_kline_key(symbol, interval)].append(queue)
        log.debug("market_subscribed", symbol=symbol, interval=interval)
        return queue

    def unsubscribe(self, symbol: str, interval: str, queue: asyncio.Queue[Kline]) -> None:
        key = build_kline_key(symbol, interval)
        queues = self._subscribers.get(key)
        if not queues:
            return
        try:
            queues.remove(queue)
        except ValueError:
            return
        if not queues:
            del self._subscribers[key]

    def subscriber_count(self, symbol: str, interval: str) -> int:
        return len(self._subscribers.get(build_kline_key(symbol, interval), ()))

    def candle_range(
        self,
        symbol: str,
        interval: str,
        from_ts: int,
        to_ts: int | None = None,
        limit: int | None = None,
    ) -> list[Kline]:
        """Historical candles from storage, ordered by open_time."""
        if self._storage is None:
            return []
        return self._storage.load_klines(symbol, interval, from_ts, to_ts, limit)

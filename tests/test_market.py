import asyncio

import pytest

from raderbot.market import Market, build_kline_key
from raderbot.storage import FsStorageManager

from conftest import BASE_TS, build_klines


def test_kline_key_uppercases_symbol() -> None:
    assert build_kline_key("btcusdt", "1m") == "BTCUSDT_1m"


def test_kline_row_round_trip() -> None:
    kline = build_klines([101.5])[0]
    assert type(kline).from_row(kline.to_row()) == kline


def test_kline_row_wrong_arity() -> None:
    kline = build_klines([101.5])[0]
    with pytest.raises(ValueError):
        type(kline).from_row(kline.to_row()[:-1])


@pytest.mark.asyncio
async def test_last_price_cache() -> None:
    market = Market()
    assert await market.last_price("BTCUSDT") is None
    await market.update_price("BTCUSDT", 42.0)
    assert await market.last_price("BTCUSDT") == 42.0


@pytest.mark.asyncio
async def test_ingest_updates_price_and_last_kline() -> None:
    market = Market()
    kline = build_klines([100.0, 101.0])[1]
    await market.ingest_kline(kline)
    assert await market.last_price("BTCUSDT") == 101.0
    assert await market.last_kline("BTCUSDT", "1m") == kline


@pytest.mark.asyncio
async def test_only_closed_candles_reach_subscribers() -> None:
    market = Market()
    queue = market.subscribe("BTCUSDT", "1m")
    other = market.subscribe("ETHUSDT", "1m")
    klines = build_klines([100.0, 101.0])

    await market.ingest_kline(klines[0], closed=False)
    assert queue.empty()

    await market.ingest_kline(klines[0], closed=True)
    assert await asyncio.wait_for(queue.get(), timeout=1.0) == klines[0]
    assert other.empty()

    market.unsubscribe("BTCUSDT", "1m", queue)
    await market.ingest_kline(klines[1], closed=True)
    assert queue.empty()
    assert market.subscriber_count("BTCUSDT", "1m") == 0


def test_unsubscribe_unknown_queue_is_noop() -> None:
    market = Market()
    market.unsubscribe("BTCUSDT", "1m", asyncio.Queue())
    assert market.subscriber_count("BTCUSDT", "1m") == 0


def test_candle_range_without_storage_is_empty() -> None:
    assert Market().candle_range("BTCUSDT", "1m", 0) == []


@pytest.mark.asyncio
async def test_ingested_candles_are_persisted(workspace_tmp_path) -> None:
    market = Market(FsStorageManager(workspace_tmp_path))
    klines = build_klines([100.0, 101.0, 102.0])
    for kline in klines:
        await market.ingest_kline(kline, closed=True)

    loaded = market.candle_range("BTCUSDT", "1m", BASE_TS, klines[-1].open_time)
    assert loaded == klines

"""Tests for strategy evaluation and its live lifecycle."""

from __future__ import annotations

import asyncio

import pytest

from raderbot.account import Account, OrderSide
from raderbot.algorithm import InvalidParamsError, UnknownNameError
from raderbot.market import Market
from raderbot.strategy import SignalMessage, Strategy, StrategySettings, StrategyState

from conftest import build_klines

SETTINGS = StrategySettings(max_open_orders=2, margin_usd=1000.0, leverage=10)


def _strategy(**kwargs) -> Strategy:
    return Strategy("SimpleMovingAverage", "BTCUSDT", "1m", SETTINGS, {"sma_period": 2}, **kwargs)


def test_bad_algorithm_prevents_construction() -> None:
    with pytest.raises(UnknownNameError):
        Strategy("Nope", "BTCUSDT", "1m", SETTINGS, {})
    with pytest.raises(InvalidParamsError):
        Strategy("SimpleMovingAverage", "BTCUSDT", "1m", SETTINGS, {})


def test_settings_validation() -> None:
    with pytest.raises(ValueError):
        StrategySettings(max_open_orders=0, margin_usd=1000.0, leverage=10)
    with pytest.raises(ValueError):
        StrategySettings(max_open_orders=1, margin_usd=0.0, leverage=10)


def test_evaluate_builds_signal_from_close() -> None:
    strategy = _strategy()
    klines = build_klines([10.0, 11.0])
    assert strategy.evaluate(klines[0]) is None

    signal = strategy.evaluate(klines[1], is_replay=True)
    assert signal == SignalMessage(
        strategy_id=strategy.id,
        symbol="BTCUSDT",
        order_side=OrderSide.LONG,
        price=11.0,
        timestamp=klines[1].close_time,
        is_replay=True,
    )


def test_info_snapshot() -> None:
    strategy = _strategy()
    info = strategy.info()
    assert info.id == strategy.id
    assert info.algorithm_name == "SimpleMovingAverage"
    assert info.settings == SETTINGS
    assert info.algorithm_params == {"sma_period": 2}

    strategy.set_algorithm_params({"sma_period": 4})
    assert info.algorithm_params == {"sma_period": 2}
    assert strategy.get_algorithm_params() == {"sma_period": 4}


def test_strategies_own_separate_algorithms() -> None:
    a = _strategy()
    b = _strategy()
    assert a.id != b.id
    assert a.algorithm is not b.algorithm


def test_start_needs_market_and_channel() -> None:
    with pytest.raises(RuntimeError):
        _strategy().start()


@pytest.mark.asyncio
async def test_running_strategy_publishes_signals() -> None:
    market = Market()
    signals: asyncio.Queue[SignalMessage] = asyncio.Queue()
    strategy = _strategy(signal_tx=signals, market=market)
    task = strategy.start()
    assert strategy.state is StrategyState.RUNNING

    klines = build_klines([10.0, 11.0, 12.0])
    # In-progress updates are not evaluated.
    await market.ingest_kline(klines[0], closed=False)
    for kline in klines:
        await market.ingest_kline(kline, closed=True)

    first = await asyncio.wait_for(signals.get(), timeout=1.0)
    second = await asyncio.wait_for(signals.get(), timeout=1.0)
    assert [first.price, second.price] == [11.0, 12.0]
    assert not first.is_replay
    assert signals.empty()

    summary = await strategy.stop(Account())
    assert strategy.state is StrategyState.STOPPED
    assert task.done()
    assert summary.info.id == strategy.id
    assert summary.trades == ()

    with pytest.raises(RuntimeError):
        strategy.start()


@pytest.mark.asyncio
async def test_stop_unsubscribes_from_market() -> None:
    market = Market()
    signals: asyncio.Queue[SignalMessage] = asyncio.Queue()
    strategy = _strategy(signal_tx=signals, market=market)
    strategy.start()
    assert market.subscriber_count("BTCUSDT", "1m") == 1
    await strategy.stop(Account())
    assert market.subscriber_count("BTCUSDT", "1m") == 0

    for kline in build_klines([10.0, 11.0, 12.0]):
        await market.ingest_kline(kline, closed=True)
    await asyncio.sleep(0)
    assert signals.empty()


@pytest.mark.asyncio
async def test_stop_closes_positions_at_market_price() -> None:
    market = Market()
    await market.update_price("BTCUSDT", 120.0)
    account = Account()
    strategy = _strategy(signal_tx=asyncio.Queue(), market=market)
    await account.open_position(
        "BTCUSDT", 1000.0, 10, OrderSide.LONG, None, 100.0, strategy_id=strategy.id
    )
    await account.open_position(
        "BTCUSDT", 1000.0, 10, OrderSide.LONG, None, 100.0, strategy_id="someone-else"
    )

    summary = await strategy.stop(account, close_positions=True)

    assert len(summary.trades) == 1
    assert summary.trades[0].close_price == 120.0
    assert summary.result.profit == pytest.approx(2000.0)
    assert summary.result.long_count == 1
    assert len(account.positions()) == 1


@pytest.mark.asyncio
async def test_stop_falls_back_to_last_close() -> None:
    account = Account()
    strategy = _strategy()
    for kline in build_klines([100.0, 105.0]):
        strategy.evaluate(kline)
    await account.open_position(
        "BTCUSDT", 1000.0, 10, OrderSide.SHORT, None, 100.0, strategy_id=strategy.id
    )

    summary = await strategy.stop(account, close_positions=True)
    assert summary.trades[0].close_price == 105.0
    assert summary.result.profit == pytest.approx(-500.0)
    assert summary.result.period_start_price == 100.0
    assert summary.result.period_end_price == 105.0


@pytest.mark.asyncio
async def test_stop_without_price_leaves_positions_open() -> None:
    account = Account()
    strategy = _strategy()
    await account.open_position(
        "BTCUSDT", 1000.0, 10, OrderSide.LONG, None, 100.0, strategy_id=strategy.id
    )
    summary = await strategy.stop(account, close_positions=True)
    assert summary.trades == ()
    assert len(account.positions()) == 1

"""CLI tool to backtest an algorithm over a CSV of candles.

Usage:
    python -m raderbot.tools.run_backtest --csv data/BTCUSDT_1h.csv --symbol BTCUSDT \
        --interval 1h --algorithm EmaSmaCrossover --params '{"ema_period": 9, "sma_period": 21}'

The CSV needs a header with open_time, open, high, low, close and volume
columns. open_time may be epoch milliseconds or a date string; close_time is
derived from the interval when absent. The StrategyResult is printed as JSON.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

import orjson
import pandas as pd

from raderbot.algorithm import AlgorithmError
from raderbot.config.settings import load_settings
from raderbot.market.kline import Kline, build_kline_key
from raderbot.monitoring import configure_logging
from raderbot.storage import FsStorageManager
from raderbot.strategy import BackTest, Strategy, StrategySettings
from raderbot.utils.time import interval_to_ms

REQUIRED_COLUMNS = ("open_time", "open", "high", "low", "close", "volume")


def _to_ms(series: pd.Series) -> pd.Series:
    if pd.api.types.is_numeric_dtype(series):
        return series.astype("int64")
    parsed = pd.to_datetime(series, utc=True)
    return parsed.map(lambda ts: int(ts.timestamp() * 1000))


def load_klines_csv(path: Path, symbol: str, interval: str) -> list[Kline]:
    """Read OHLCV rows into klines ordered by open_time.

    Raises:
        ValueError: If required columns are missing or the interval is unknown.
    """
    df = pd.read_csv(path)
    df.columns = [str(c).strip().lower() for c in df.columns]
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"{path.name}: missing columns {', '.join(missing)}")

    df["open_time"] = _to_ms(df["open_time"])
    if "close_time" in df.columns:
        df["close_time"] = _to_ms(df["close_time"])
    else:
        df["close_time"] = df["open_time"] + interval_to_ms(interval) - 1
    df = df.sort_values("open_time", kind="stable")

    return [
        Kline(
            symbol=symbol,
            interval=interval,
            open=float(row.open),
            high=float(row.high),
            low=float(row.low),
            close=float(row.close),
            volume=float(row.volume),
            open_time=int(row.open_time),
            close_time=int(row.close_time),
        )
        for row in df.itertuples(index=False)
    ]


async def run(args: argparse.Namespace) -> int:
    settings = load_settings(args.config)
    configure_logging(args.log_level, log_format="console")

    try:
        params = orjson.loads(args.params) if args.params else {}
    except orjson.JSONDecodeError as exc:
        print(f"Invalid --params JSON: {exc}", file=sys.stderr)
        return 2

    defaults = settings.strategy_defaults
    strategy_settings = StrategySettings(
        max_open_orders=args.max_open_orders or defaults.max_open_orders,
        margin_usd=args.margin or defaults.margin_usd,
        leverage=args.leverage or defaults.leverage,
    )
    try:
        strategy = Strategy(
            args.algorithm,
            args.symbol,
            args.interval,
            strategy_settings,
            params,
            retention=settings.engine.data_point_retention,
        )
    except AlgorithmError as exc:
        print(f"Unable to build algorithm: {exc}", file=sys.stderr)
        return 2

    klines = load_klines_csv(Path(args.csv), args.symbol, args.interval)
    if args.save_klines:
        storage = FsStorageManager(settings.storage.data_path)
        storage.save_klines(klines, build_kline_key(args.symbol, args.interval))

    result = await BackTest(strategy).run(klines)
    print(orjson.dumps(result.to_dict(), option=orjson.OPT_INDENT_2).decode())
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Backtest an algorithm over a candle CSV.")
    parser.add_argument("--csv", required=True, help="Path to OHLCV CSV")
    parser.add_argument("--symbol", required=True, help="Symbol, e.g. BTCUSDT")
    parser.add_argument("--interval", required=True, help="Candle interval, e.g. 1m, 4h")
    parser.add_argument("--algorithm", required=True, help="Algorithm name, e.g. EmaSmaCrossover")
    parser.add_argument("--params", default=None, help="Algorithm params as JSON")
    parser.add_argument("--margin", type=float, default=None, help="Margin per position (USD)")
    parser.add_argument("--leverage", type=int, default=None, help="Leverage per position")
    parser.add_argument("--max-open-orders", type=int, default=None, help="Pyramiding cap")
    parser.add_argument("--save-klines", action="store_true", help="Also write candles to storage")
    parser.add_argument("--config", default=None, help="Path to config.yaml")
    parser.add_argument("--log-level", default="WARNING", help="Log level")
    args = parser.parse_args()

    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()

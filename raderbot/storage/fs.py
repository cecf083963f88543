"""Filesystem storage: day-bucketed CSV candles and JSON strategy summaries."""

from __future__ import annotations

import csv
from collections import defaultdict
from pathlib import Path
from typing import Sequence

import orjson
import structlog

from raderbot.market.kline import Kline, build_kline_key
from raderbot.storage.manager import StorageManager
from raderbot.strategy.types import StrategyId, StrategySummary
from raderbot.utils.time import DAY_AS_MILI, floor_mili_ts, generate_ts, ms_to_datetime

log = structlog.get_logger(__name__)


def build_kline_filename(kline_key: str, ts: int) -> str:
    """`{SYMBOL}_{interval}_{YYYY-MM-DD}.csv` for the UTC day containing ts."""
    return f"{kline_key}_{ms_to_datetime(ts).strftime('%Y-%m-%d')}.csv"


def kline_filenames_in_range(kline_key: str, from_ts: int, to_ts: int) -> list[str]:
    filenames = []
    day = floor_mili_ts(from_ts, DAY_AS_MILI)
    while day <= to_ts:
        filenames.append(build_kline_filename(kline_key, day))
        day += DAY_AS_MILI
    return filenames


class FsStorageManager(StorageManager):
    """Layout under `data_directory`:

        market/klines/BTCUSDT_1m_2024-01-01.csv   header-less rows, one per candle
        strategies/<strategy_id>.json              one summary per stopped strategy
    """

    def __init__(self, data_directory: str | Path) -> None:
        self.data_directory = Path(data_directory)
        self.klines_dir = self.data_directory / "market" / "klines"
        self.strategies_dir = self.data_directory / "strategies"
        self.klines_dir.mkdir(parents=True, exist_ok=True)
        self.strategies_dir.mkdir(parents=True, exist_ok=True)

    def _read_rows(self, file_path: Path) -> list[list[str]]:
        with open(file_path, newline="") as handle:
            return [row for row in csv.reader(handle) if row]

    def _read_klines(self, filename: str) -> list[Kline]:
        file_path = self.klines_dir / filename
        if not file_path.exists():
            return []
        return [Kline.from_row(row) for row in self._read_rows(file_path)]

    def save_klines(self, klines: Sequence[Kline], kline_key: str) -> None:
        """Store candles in their day files; a candle whose open_time is already
        stored replaces that row."""
        buckets: dict[str, dict[int, Kline]] = defaultdict(dict)
        for kline in klines:
            buckets[build_kline_filename(kline_key, kline.open_time)][kline.open_time] = kline

        for filename, incoming in buckets.items():
            file_path = self.klines_dir / filename
            stored = {k.open_time: k for k in self._read_klines(filename)}
            last_stored = max(stored, default=None)

            if last_stored is None or min(incoming) > last_stored:
                with open(file_path, "a", newline="") as handle:
                    csv.writer(handle).writerows(
                        incoming[ts].to_row() for ts in sorted(incoming)
                    )
                continue

            stored.update(incoming)
            with open(file_path, "w", newline="") as handle:
                csv.writer(handle).writerows(stored[ts].to_row() for ts in sorted(stored))

    def load_klines(
        self,
        symbol: str,
        interval: str,
        from_ts: int,
        to_ts: int | None = None,
        limit: int | None = None,
    ) -> list[Kline]:
        if to_ts is None:
            to_ts = generate_ts()
        if to_ts < from_ts:
            return []

        kline_key = build_kline_key(symbol, interval)
        klines: list[Kline] = []
        for filename in kline_filenames_in_range(kline_key, from_ts, to_ts):
            klines.extend(
                k for k in self._read_klines(filename) if from_ts <= k.open_time <= to_ts
            )
        klines.sort(key=lambda k: k.open_time)

        if limit is not None:
            klines = klines[:limit]
        return klines

    def _summary_path(self, strategy_id: StrategyId) -> Path:
        # Ids arrive from the HTTP surface; keep them inside strategies_dir.
        if not strategy_id or Path(strategy_id).name != strategy_id or strategy_id.startswith("."):
            raise FileNotFoundError(f"Invalid strategy id {strategy_id!r}")
        return self.strategies_dir / f"{strategy_id}.json"

    def save_strategy_summary(self, summary: StrategySummary) -> None:
        payload = orjson.dumps(summary.to_dict(), option=orjson.OPT_INDENT_2)
        self._summary_path(summary.info.id).write_bytes(payload)
        log.info("strategy_summary_saved", strategy_id=summary.info.id)

    def get_strategy_summary(self, strategy_id: StrategyId) -> StrategySummary:
        path = self._summary_path(strategy_id)
        if not path.exists():
            raise FileNotFoundError(f"No summary stored for strategy {strategy_id}")
        return StrategySummary.from_dict(orjson.loads(path.read_bytes()))

    def list_saved_strategy_summaries(self) -> list[StrategySummary]:
        summaries = [
            StrategySummary.from_dict(orjson.loads(path.read_bytes()))
            for path in self.strategies_dir.glob("*.json")
        ]
        summaries.sort(key=lambda s: s.stopped_at)
        return summaries

from __future__ import annotations

import logging
import re
import shutil
from pathlib import Path
from typing import Callable, Sequence
from uuid import uuid4

import pytest
import structlog

from raderbot.config.settings import Settings
from raderbot.market.kline import Kline
from raderbot.strategy.types import StrategySettings

# 2024-01-01T00:00:00Z
BASE_TS = 1_704_067_200_000
MINUTE_MS = 60_000


def _safe_node_name(name: str) -> str:
    # Windows-safe-ish: keep alnum, dash, underscore, dot.
    name = re.sub(r"[^A-Za-z0-9._-]+", "_", name).strip("._")
    return name or "test"


@pytest.fixture
def workspace_tmp_path(request: pytest.FixtureRequest) -> Path:
    """Temp dir rooted in the workspace (not system temp).

    This repo's environment can deny access to dirs created under the system temp
    directory; using a workspace-local temp dir avoids that.
    """
    root = Path.cwd() / ".pytest_tmp_workspace" / _safe_node_name(request.node.name) / uuid4().hex
    root.mkdir(parents=True, exist_ok=True)
    try:
        yield root
    finally:
        shutil.rmtree(root, ignore_errors=True)


def build_klines(
    closes: Sequence[float],
    symbol: str = "BTCUSDT",
    interval: str = "1m",
    start: int = BASE_TS,
    step: int = MINUTE_MS,
) -> list[Kline]:
    klines = []
    prev = closes[0] if closes else 0.0
    for i, close in enumerate(closes):
        open_time = start + i * step
        klines.append(
            Kline(
                symbol=symbol,
                interval=interval,
                open=prev,
                high=max(prev, close) + 1.0,
                low=min(prev, close) - 1.0,
                close=close,
                volume=10.0 + i,
                open_time=open_time,
                close_time=open_time + step - 1,
            )
        )
        prev = close
    return klines


@pytest.fixture
def make_klines() -> Callable[..., list[Kline]]:
    """Factory: closes -> one-minute klines starting at BASE_TS, open = previous close."""
    return build_klines


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def strategy_settings() -> StrategySettings:
    return StrategySettings(max_open_orders=2, margin_usd=1000.0, leverage=10)


@pytest.fixture
def restore_logging():
    """Undo `configure_logging` so later tests see the default setup."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()

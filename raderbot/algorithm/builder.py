"""Name-keyed algorithm factory."""

from __future__ import annotations

from typing import Any, Mapping

from raderbot.algorithm.base import (
    DEFAULT_RETENTION,
    Algorithm,
    UnknownIntervalError,
    UnknownNameError,
)
from raderbot.algorithm.bollinger_bands import BollingerBands
from raderbot.algorithm.ma_crossover import EmaSmaCrossover
from raderbot.algorithm.ma_simple import SimpleMovingAverage
from raderbot.algorithm.ma_three_crossover import ThreeMaCrossover
from raderbot.algorithm.macd import Macd
from raderbot.algorithm.macd_bollinger import MacdBollingerBands
from raderbot.algorithm.rsi import Rsi
from raderbot.algorithm.rsi_ema_sma import RsiEmaSma
from raderbot.utils.time import build_interval

ALGORITHMS: dict[str, type[Algorithm]] = {
    algorithm.name: algorithm
    for algorithm in (
        EmaSmaCrossover,
        RsiEmaSma,
        SimpleMovingAverage,
        ThreeMaCrossover,
        Rsi,
        BollingerBands,
        Macd,
        MacdBollingerBands,
    )
}


def available_algorithms() -> list[str]:
    return sorted(ALGORITHMS)


def build_algorithm(
    algorithm_name: str,
    interval: str,
    algorithm_params: Mapping[str, Any] | None = None,
    retention: int = DEFAULT_RETENTION,
) -> Algorithm:
    """Construct a fully configured algorithm.

    Args:
        algorithm_name: Registered algorithm name, e.g. 'EmaSmaCrossover'
        interval: Candle interval the algorithm runs on, e.g. '1m', '4h'
        algorithm_params: Algorithm-specific parameters
        retention: Minimum number of candles kept in `data_points()`

    Raises:
        UnknownIntervalError: If the interval cannot be parsed.
        UnknownNameError: If no algorithm is registered under the name.
        InvalidParamsError: If the params do not validate.
    """
    try:
        parsed_interval = build_interval(interval)
    except ValueError as exc:
        raise UnknownIntervalError(str(exc)) from exc

    algorithm_cls = ALGORITHMS.get(algorithm_name)
    if algorithm_cls is None:
        raise UnknownNameError(f"Strategy name {algorithm_name} is incorrect")

    return algorithm_cls(parsed_interval, algorithm_params or {}, retention=retention)

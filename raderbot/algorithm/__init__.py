"""Indicator algorithms and their factory."""

from raderbot.algorithm.base import (
    Algorithm,
    AlgorithmError,
    InvalidParamsError,
    SignalResult,
    UnknownIntervalError,
    UnknownNameError,
)
from raderbot.algorithm.builder import ALGORITHMS, available_algorithms, build_algorithm

__all__ = [
    "ALGORITHMS",
    "Algorithm",
    "AlgorithmError",
    "InvalidParamsError",
    "SignalResult",
    "UnknownIntervalError",
    "UnknownNameError",
    "available_algorithms",
    "build_algorithm",
]

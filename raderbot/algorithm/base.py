"""Algorithm abstraction shared by every indicator strategy."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import timedelta
from enum import Enum
from typing import Any, ClassVar, Mapping

from pydantic import BaseModel, ConfigDict, ValidationError

from raderbot.market.kline import Kline

# One week of 1m candles.
DEFAULT_RETENTION = 10_080


class AlgorithmError(Exception):
    """Base class for algorithm construction and configuration failures."""

    pass


class InvalidParamsError(AlgorithmError):
    """Raised when algorithm parameters are missing, mistyped or out of range."""

    pass


class UnknownIntervalError(AlgorithmError):
    """Raised when an interval string cannot be parsed."""

    pass


class UnknownNameError(AlgorithmError):
    """Raised when no algorithm is registered under the requested name."""

    pass


class SignalResult(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"
    IGNORE = "IGNORE"


class AlgorithmParams(BaseModel):
    """Base for per-algorithm parameter models.

    Integers are strict (no bools, floats or numeric strings); unknown keys are ignored.
    """

    model_config = ConfigDict(strict=True, extra="ignore", frozen=True)


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ())) or "params"
        parts.append(f"{location}: {error.get('msg')}")
    return "; ".join(parts)


class Algorithm(ABC):
    """Stateful, incremental indicator evaluator.

    Subclasses declare `name` and `params_model`, build their indicators in
    `_reset_indicators` and turn one candle into a `SignalResult` in `_next`.
    The base class owns the retained candle history, the warm-up counter and the
    all-or-nothing parameter update.
    """

    name: ClassVar[str]
    params_model: ClassVar[type[AlgorithmParams]]

    def __init__(
        self,
        interval: timedelta,
        params: Mapping[str, Any] | None = None,
        retention: int = DEFAULT_RETENTION,
    ) -> None:
        self._interval = interval
        self._params = self._validate(params or {})
        self._retention = retention
        self._data_points: list[Kline] = []
        self._count = 0
        self._reset_indicators()

    @classmethod
    def _validate(cls, params: Mapping[str, Any]) -> AlgorithmParams:
        if not isinstance(params, Mapping):
            raise InvalidParamsError(f"{cls.name} params must be an object")
        try:
            return cls.params_model.model_validate(dict(params))
        except ValidationError as exc:
            raise InvalidParamsError(f"{cls.name}: {_format_validation_error(exc)}") from exc

    @property
    def params(self) -> AlgorithmParams:
        return self._params

    @property
    @abstractmethod
    def lookback(self) -> int:
        """Candles required before a directional result is possible."""

    @abstractmethod
    def _reset_indicators(self) -> None:
        """Create fresh indicator state from the current params."""

    @abstractmethod
    def _next(self, kline: Kline) -> SignalResult:
        """Feed one candle into the indicators and classify it."""

    @property
    def warmed_up(self) -> bool:
        return self._count >= self.lookback

    def evaluate(self, kline: Kline) -> SignalResult:
        self._data_points.append(kline)
        self._count += 1
        result = self._next(kline)
        self.clean_data_points()
        return result

    def interval(self) -> timedelta:
        return self._interval

    def get_params(self) -> dict[str, Any]:
        return self._params.model_dump()

    def set_params(self, params: Mapping[str, Any]) -> None:
        """Apply a partial update; keys not present keep their configured value.

        Raises:
            InvalidParamsError: If the merged params do not validate. Nothing changes.
        """
        if not isinstance(params, Mapping):
            raise InvalidParamsError(f"{self.name} params must be an object")
        merged = {**self._params.model_dump(), **params}
        validated = self._validate(merged)
        self._params = validated
        self._replay()

    def _replay(self) -> None:
        self._reset_indicators()
        self._count = 0
        for kline in self._data_points:
            self._count += 1
            self._next(kline)

    def data_points(self) -> list[Kline]:
        return list(self._data_points)

    @property
    def retention_window(self) -> int:
        return max(self.lookback, self._retention)

    def clean_data_points(self) -> None:
        window = self.retention_window
        if len(self._data_points) > window * 2:
            del self._data_points[: len(self._data_points) - window]

    def describe(self) -> str:
        args = ", ".join(f"{key}={value}" for key, value in self.get_params().items())
        return f"{self.name}({args})"

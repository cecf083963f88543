import math

import pytest

from raderbot.algorithm.indicators import (
    BollingerBands,
    ExponentialMovingAverage,
    MovingAverageConvergenceDivergence,
    RelativeStrengthIndex,
    SimpleMovingAverage,
    StandardDeviation,
)


def test_sma_averages_available_values_until_full() -> None:
    sma = SimpleMovingAverage(3)
    assert sma.next(1.0) == 1.0
    assert sma.next(2.0) == 1.5
    assert not sma.is_ready
    assert sma.next(3.0) == 2.0
    assert sma.is_ready
    assert sma.next(4.0) == 3.0


def test_ema_is_seeded_with_first_value() -> None:
    ema = ExponentialMovingAverage(3)
    assert ema.next(10.0) == 10.0
    assert ema.next(20.0) == 15.0
    assert ema.next(30.0) == 22.5


def test_standard_deviation_is_population_form() -> None:
    sd = StandardDeviation(8)
    for value in (2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0):
        result = sd.next(value)
    assert result == pytest.approx(2.0)


def test_standard_deviation_flat_series_is_zero() -> None:
    sd = StandardDeviation(5)
    for _ in range(10):
        result = sd.next(101.3)
    assert result == pytest.approx(0.0, abs=1e-9)


def test_rsi_neutral_until_period_plus_one_values() -> None:
    rsi = RelativeStrengthIndex(3)
    assert rsi.next(1.0) == 50.0
    assert rsi.next(2.0) == 50.0
    assert rsi.next(3.0) == 50.0
    assert not rsi.is_ready
    assert rsi.next(4.0) == 100.0
    assert rsi.is_ready


def test_rsi_mixed_moves() -> None:
    rsi = RelativeStrengthIndex(3)
    for value in (10.0, 11.0, 10.0, 11.0):
        result = rsi.next(value)
    # gains 2/3, losses 1/3 -> RS 2
    assert result == pytest.approx(100.0 - 100.0 / 3.0)


def test_rsi_all_losses_is_zero() -> None:
    rsi = RelativeStrengthIndex(2)
    for value in (10.0, 9.0, 8.0):
        result = rsi.next(value)
    assert result == 0.0


def test_bollinger_bands() -> None:
    bands = BollingerBands(2, 2.0)
    bands.next(1.0)
    out = bands.next(3.0)
    assert out.average == pytest.approx(2.0)
    assert out.upper == pytest.approx(4.0)
    assert out.lower == pytest.approx(0.0)


def test_macd_flat_series_has_no_momentum() -> None:
    macd = MovingAverageConvergenceDivergence(3, 6, 4)
    for _ in range(20):
        out = macd.next(50.0)
    assert out.macd == pytest.approx(0.0, abs=1e-9)
    assert out.signal == pytest.approx(0.0, abs=1e-9)
    assert out.histogram == pytest.approx(0.0, abs=1e-9)


def test_macd_rising_series_line_above_signal() -> None:
    macd = MovingAverageConvergenceDivergence(3, 6, 4)
    for i in range(30):
        out = macd.next(100.0 + i)
    assert out.macd > 0
    assert out.macd > out.signal
    assert out.histogram == pytest.approx(out.macd - out.signal)


@pytest.mark.parametrize(
    "factory",
    [
        lambda: SimpleMovingAverage(0),
        lambda: ExponentialMovingAverage(0),
        lambda: StandardDeviation(-1),
        lambda: RelativeStrengthIndex(0),
        lambda: BollingerBands(20, 0.0),
    ],
)
def test_invalid_indicator_config_rejected(factory) -> None:
    with pytest.raises(ValueError):
        factory()


def test_sma_window_drops_old_values() -> None:
    sma = SimpleMovingAverage(2)
    for value in (1000.0, 1.0, 3.0):
        result = sma.next(value)
    assert math.isclose(result, 2.0)

from datetime import timedelta

import pytest

from raderbot.config import Settings, create_default_config, load_settings
from raderbot.utils.time import (
    build_interval,
    floor_mili_ts,
    interval_to_ms,
    ms_to_datetime,
    string_to_timestamp,
)

from conftest import BASE_TS


def test_defaults() -> None:
    settings = Settings(_env_file=None)
    assert settings.strategy_defaults.max_open_orders == 2
    assert settings.strategy_defaults.margin_usd == 1000.0
    assert settings.strategy_defaults.leverage == 10
    assert settings.engine.signal_channel_capacity == 1024
    assert settings.engine.data_point_retention == 10_080
    assert settings.backtest.candle_limit is None


def test_load_from_yaml(workspace_tmp_path) -> None:
    config_path = workspace_tmp_path / "config.yaml"
    config_path.write_text(
        "strategy_defaults:\n"
        "  max_open_orders: 3\n"
        "  margin_usd: 250.0\n"
        "  leverage: 5\n"
        "monitoring:\n"
        "  log_level: DEBUG\n"
    )
    settings = load_settings(config_path)
    assert settings.strategy_defaults.max_open_orders == 3
    assert settings.strategy_defaults.margin_usd == 250.0
    assert settings.monitoring.log_level == "DEBUG"
    assert settings.engine.signal_channel_capacity == 1024


def test_environment_beats_config_file(workspace_tmp_path, monkeypatch) -> None:
    config_path = workspace_tmp_path / "config.yaml"
    config_path.write_text("engine:\n  signal_channel_capacity: 64\n  data_point_retention: 500\n")
    monkeypatch.setenv("ENGINE__SIGNAL_CHANNEL_CAPACITY", "16")

    settings = load_settings(config_path)
    assert settings.engine.signal_channel_capacity == 16
    assert settings.engine.data_point_retention == 500


def test_dotenv_beside_config_file(workspace_tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("STRATEGY_DEFAULTS__LEVERAGE", raising=False)
    config_path = workspace_tmp_path / "config.yaml"
    config_path.write_text("strategy_defaults:\n  leverage: 5\n")
    (workspace_tmp_path / ".env").write_text("STRATEGY_DEFAULTS__LEVERAGE=20\n")

    assert load_settings(config_path).strategy_defaults.leverage == 20


def test_missing_config_file_uses_defaults(workspace_tmp_path) -> None:
    assert load_settings(workspace_tmp_path / "missing.yaml") == Settings(_env_file=None)


def test_invalid_values_rejected(workspace_tmp_path) -> None:
    config_path = workspace_tmp_path / "config.yaml"
    config_path.write_text("strategy_defaults:\n  leverage: 0\n")
    with pytest.raises(ValueError):
        load_settings(config_path)


def test_default_config_file_loads(workspace_tmp_path) -> None:
    config_path = workspace_tmp_path / "config.yaml"
    create_default_config(config_path)
    assert load_settings(config_path) == Settings(_env_file=None)


@pytest.mark.parametrize(
    "interval,expected",
    [("1s", 1_000), ("1m", 60_000), ("15m", 900_000), ("4h", 14_400_000), ("1d", 86_400_000), ("1w", 604_800_000)],
)
def test_interval_to_ms(interval: str, expected: int) -> None:
    assert interval_to_ms(interval) == expected


def test_build_interval() -> None:
    assert build_interval("4h") == timedelta(hours=4)
    with pytest.raises(ValueError):
        build_interval("4x")


def test_timestamp_helpers() -> None:
    assert string_to_timestamp("2024-01-01") == BASE_TS
    assert string_to_timestamp("2024-01-01T00:00:00Z") == BASE_TS
    assert string_to_timestamp("2024-01-01T01:00:00+01:00") == BASE_TS
    assert ms_to_datetime(BASE_TS).year == 2024
    assert floor_mili_ts(BASE_TS + 59_999, 60_000) == BASE_TS
    with pytest.raises(ValueError):
        string_to_timestamp("not a date")

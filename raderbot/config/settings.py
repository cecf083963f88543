"""
Configuration management with Pydantic validation.

Loads settings from YAML config file and environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal, Mapping

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, DotEnvSettingsSource, EnvSettingsSource


class StrategyDefaultsConfig(BaseModel):
    """Execution policy applied to strategies created without explicit values."""

    max_open_orders: int = Field(default=2, ge=1, le=50)
    margin_usd: float = Field(default=1000.0, gt=0)
    leverage: int = Field(default=10, ge=1, le=125)


class EngineConfig(BaseModel):
    """Live signal pipeline configuration."""

    signal_channel_capacity: int = Field(default=1024, ge=1, le=1_000_000)
    # One week of 1m candles; algorithms keep at least their own lookback.
    data_point_retention: int = Field(default=10_080, ge=1)


class BacktestConfig(BaseModel):
    """Backtest defaults."""

    candle_limit: int | None = Field(default=None, ge=1)


class StorageConfig(BaseModel):
    """Storage paths configuration."""

    data_path: str = "./data"
    logs_path: str = "./logs"


class MonitoringConfig(BaseModel):
    """Monitoring and alerting configuration."""

    metrics_port: int = Field(default=9090, ge=1024, le=65535)
    metrics_enabled: bool = True
    api_host: str = "127.0.0.1"
    api_port: int = Field(default=8000, ge=1024, le=65535)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "console"] = "json"
    error_log_max_bytes: int = Field(default=5_000_000, ge=100_000, le=50_000_000)
    error_log_backup_count: int = Field(default=3, ge=1, le=20)


class Settings(BaseSettings):
    """Main application settings."""

    strategy_defaults: StrategyDefaultsConfig = Field(default_factory=StrategyDefaultsConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    backtest: BacktestConfig = Field(default_factory=BacktestConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "env_nested_delimiter": "__",
        "populate_by_name": True,
    }


def _merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _read_config_file(config_file: Path) -> dict[str, Any]:
    if not config_file.exists():
        return {}
    with open(config_file) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{config_file}: expected a mapping at the top level")
    return data


def load_settings(config_path: str | Path | None = None) -> Settings:
    """
    Load settings from a YAML file, a `.env` next to it and the environment.

    Priority (highest to lowest):
    1. Environment variables (nested with `__`, e.g. ENGINE__SIGNAL_CHANNEL_CAPACITY)
    2. `.env` beside the config file
    3. Config file values
    4. Default values

    Raises:
        ValueError: If the merged values do not validate.
    """
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", "config.yaml")
    config_file = Path(config_path)

    values = _read_config_file(config_file)
    dotenv_values = DotEnvSettingsSource(Settings, env_file=config_file.parent / ".env")()
    values = _merge(values, dotenv_values)
    values = _merge(values, EnvSettingsSource(Settings)())
    return Settings(**values, _env_file=None)


def create_default_config(path: str | Path = "config.yaml") -> None:
    """Write a starter config holding every default value."""
    default_config = Settings.model_construct().model_dump(mode="json")
    with open(path, "w") as f:
        yaml.dump(default_config, f, default_flow_style=False, sort_keys=False)

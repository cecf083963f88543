"""Configuration management module."""

from raderbot.config.settings import Settings, create_default_config, load_settings

__all__ = ["Settings", "create_default_config", "load_settings"]

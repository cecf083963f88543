"""Monitoring utilities."""

from raderbot.monitoring.logging import configure_logging
from raderbot.monitoring.metrics import Metrics

__all__ = [
    "configure_logging",
    "Metrics",
]

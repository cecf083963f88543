"""Structured logging configuration.

Every event is a snake_case name plus keyword context. Context bound with
`structlog.contextvars` (strategy tasks bind their `strategy_id`) is merged
into each event emitted from that task.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
import sys

import structlog

from raderbot.config.settings import MonitoringConfig

ERROR_LOG_NAME = "errors.log"


def _error_file_handler(logs_path: str, monitoring: MonitoringConfig | None) -> RotatingFileHandler:
    log_dir = Path(logs_path)
    log_dir.mkdir(parents=True, exist_ok=True)
    monitoring = monitoring or MonitoringConfig()
    handler = RotatingFileHandler(
        log_dir / ERROR_LOG_NAME,
        maxBytes=monitoring.error_log_max_bytes,
        backupCount=monitoring.error_log_backup_count,
        encoding="utf-8",
    )
    handler.setLevel(logging.ERROR)
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def configure_logging(
    log_level: str = "INFO",
    logs_path: str | None = None,
    monitoring: MonitoringConfig | None = None,
    log_format: str | None = None,
) -> None:
    """Route structlog through stdlib logging at the given level.

    Args:
        log_level: Minimum level name, e.g. 'INFO'
        logs_path: Directory for the rotating error log; None disables it
        monitoring: Rotation limits and the default log format
        log_format: 'json' or 'console'; overrides monitoring.log_format
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level, force=True)
    if logs_path:
        logging.getLogger().addHandler(_error_file_handler(logs_path, monitoring))
    # Request lines are already covered by our own `api_*` events.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    if log_format is None:
        log_format = monitoring.log_format if monitoring else "json"
    renderer = (
        structlog.dev.ConsoleRenderer(colors=False)
        if log_format == "console"
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
    )

"""Process entry point: settings, logging, bot and the HTTP control surface."""

from __future__ import annotations

import asyncio

import structlog
import uvicorn

from raderbot.account import Account
from raderbot.api.strategy import create_app
from raderbot.bot import RaderBot
from raderbot.config.settings import load_settings
from raderbot.exchange import MockExchangeApi
from raderbot.market import Market
from raderbot.monitoring import Metrics, configure_logging
from raderbot.storage import FsStorageManager

log = structlog.get_logger(__name__)


async def main_async() -> None:
    settings = load_settings()
    configure_logging(settings.monitoring.log_level, settings.storage.logs_path, settings.monitoring)

    metrics = Metrics()
    if settings.monitoring.metrics_enabled:
        metrics.start(settings.monitoring.metrics_port)
        log.info("metrics_server_started", port=settings.monitoring.metrics_port)

    storage_manager = FsStorageManager(settings.storage.data_path)
    market = Market(storage_manager)
    # No venue client ships with the bot; fills are simulated at the trigger price.
    account = Account(MockExchangeApi(), metrics=metrics)
    bot = RaderBot(settings, market, account, storage_manager, metrics)

    config = uvicorn.Config(
        create_app(bot),
        host=settings.monitoring.api_host,
        port=settings.monitoring.api_port,
        log_level=settings.monitoring.log_level.lower(),
    )
    server = uvicorn.Server(config)
    log.info("api_server_starting", host=settings.monitoring.api_host, port=settings.monitoring.api_port)
    await server.serve()


def main() -> None:
    asyncio.run(main_async())


if __name__ == "__main__":
    main()

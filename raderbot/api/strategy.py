"""HTTP control surface for creating, stopping and backtesting strategies."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import structlog
from fastapi import APIRouter, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from raderbot.algorithm import AlgorithmError, available_algorithms
from raderbot.bot import RaderBot
from raderbot.strategy.types import StrategySettings
from raderbot.utils.time import string_to_timestamp

log = structlog.get_logger(__name__)

EXPECTATION_FAILED = 417
NOT_FOUND = 404


class NewStrategyRequest(BaseModel):
    symbol: str
    strategy_name: str
    interval: str
    algorithm_params: dict[str, Any] = Field(default_factory=dict)
    margin: float | None = Field(default=None, gt=0)
    leverage: int | None = Field(default=None, ge=1)
    max_open_orders: int | None = Field(default=None, ge=1)


class StopStrategyRequest(BaseModel):
    strategy_id: str
    close_positions: bool = False


class StopAllStrategiesRequest(BaseModel):
    close_positions: bool = False


class SetStrategyParamsRequest(BaseModel):
    strategy_id: str
    params: dict[str, Any]


class RunBackTestRequest(NewStrategyRequest):
    from_ts: str
    to_ts: str | None = None
    limit: int | None = Field(default=None, ge=1)


def _error(message: str, status_code: int = EXPECTATION_FAILED) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _strategy_settings(bot: RaderBot, body: NewStrategyRequest) -> StrategySettings:
    defaults = bot.default_strategy_settings()
    return StrategySettings(
        max_open_orders=body.max_open_orders or defaults.max_open_orders,
        margin_usd=body.margin or defaults.margin_usd,
        leverage=body.leverage or defaults.leverage,
    )


def build_strategy_router(bot: RaderBot) -> APIRouter:
    router = APIRouter(prefix="/strategy")

    @router.post("/new-strategy")
    async def new_strategy(body: NewStrategyRequest) -> Any:
        try:
            strategy_id = bot.add_strategy(
                body.strategy_name,
                body.symbol,
                body.interval,
                body.algorithm_params,
                _strategy_settings(bot, body),
            )
        except (AlgorithmError, ValueError) as exc:
            log.warning("api_new_strategy_failed", strategy_name=body.strategy_name, error=str(exc))
            return _error(str(exc))
        log.info("api_new_strategy", strategy_id=strategy_id, strategy_name=body.strategy_name)
        return {"success": "Strategy started", "strategy_id": strategy_id}

    @router.post("/stop-strategy")
    async def stop_strategy(body: StopStrategyRequest) -> Any:
        try:
            summary = await bot.stop_strategy(body.strategy_id, body.close_positions)
        except KeyError:
            return _error("Unable to find strategy", NOT_FOUND)
        log.info("api_stop_strategy", strategy_id=body.strategy_id)
        return {
            "success": "Strategy stopped",
            "strategy_id": body.strategy_id,
            "summary": summary.to_dict(),
        }

    @router.get("/active-strategies")
    async def active_strategies() -> dict[str, Any]:
        return {"strategies": [info.to_dict() for info in bot.active_strategies()]}

    @router.post("/stop-all-strategies")
    async def stop_all_strategies(body: StopAllStrategiesRequest | None = None) -> dict[str, Any]:
        close_positions = body.close_positions if body is not None else False
        summaries = await bot.stop_all_strategies(close_positions)
        stopped = [summary.info.id for summary in summaries]
        log.info("api_stop_all_strategies", stopped=len(stopped))
        return {"strategies_stopped": stopped}

    @router.post("/set-strategy-params")
    async def set_strategy_params(body: SetStrategyParamsRequest) -> Any:
        try:
            updated = bot.set_strategy_params(body.strategy_id, body.params)
        except KeyError:
            return _error("Unable to find strategy", NOT_FOUND)
        except AlgorithmError as exc:
            return _error(str(exc))
        log.info("api_set_strategy_params", strategy_id=body.strategy_id)
        return {"success": {"updated_params": updated}}

    @router.post("/run-back-test")
    async def run_back_test(body: RunBackTestRequest) -> Any:
        try:
            from_ts = string_to_timestamp(body.from_ts)
            to_ts = string_to_timestamp(body.to_ts) if body.to_ts else None
        except ValueError:
            return _error("Unable to parse dates")

        try:
            result = await bot.run_back_test(
                body.strategy_name,
                body.symbol,
                body.interval,
                from_ts,
                to_ts,
                body.algorithm_params,
                _strategy_settings(bot, body),
                body.limit,
            )
        except (AlgorithmError, ValueError) as exc:
            return _error(str(exc))
        log.info(
            "api_run_back_test",
            strategy_name=body.strategy_name,
            symbol=body.symbol,
            profit=result.profit,
        )
        return {"result": result.to_dict()}

    @router.get("/summaries")
    async def summaries() -> dict[str, Any]:
        return {"summaries": [summary.to_dict() for summary in bot.strategy_summaries()]}

    @router.get("/summaries/{strategy_id}")
    async def summary(strategy_id: str) -> Any:
        try:
            return {"summary": bot.strategy_summary(strategy_id).to_dict()}
        except FileNotFoundError:
            return _error("Unable to find strategy summary", NOT_FOUND)

    @router.get("/algorithms")
    async def algorithms() -> dict[str, Any]:
        return {"algorithms": available_algorithms()}

    return router


def create_app(bot: RaderBot) -> FastAPI:
    """Create the FastAPI application around one bot instance."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> Any:
        bot.start()
        yield
        await bot.shutdown()

    app = FastAPI(
        title="RaderBot API",
        description="Create, stop and backtest trading strategies",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(build_strategy_router(bot))

    @app.get("/")
    async def root() -> dict[str, Any]:
        return {
            "name": "RaderBot API",
            "version": "0.1.0",
            "active_strategies": len(bot.strategy_ids()),
        }

    return app

"""Tests for the strategy control API."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from raderbot.account import Account
from raderbot.api.strategy import create_app
from raderbot.bot import RaderBot
from raderbot.market import Market
from raderbot.storage import FsStorageManager

from conftest import build_klines

NEW_STRATEGY = {
    "symbol": "BTCUSDT",
    "strategy_name": "SimpleMovingAverage",
    "interval": "1m",
    "algorithm_params": {"sma_period": 3},
}


@pytest.fixture
def bot(settings, workspace_tmp_path) -> RaderBot:
    storage = FsStorageManager(workspace_tmp_path)
    return RaderBot(settings, Market(storage), Account(), storage)


@pytest.fixture
def client(bot: RaderBot) -> TestClient:
    """Create a test client; the context runs the app lifespan."""
    with TestClient(create_app(bot)) as test_client:
        yield test_client


def test_root_endpoint(client: TestClient) -> None:
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["name"] == "RaderBot API"


def test_new_strategy_and_list(client: TestClient) -> None:
    response = client.post("/strategy/new-strategy", json=NEW_STRATEGY)
    assert response.status_code == 200
    data = response.json()
    assert data["success"] == "Strategy started"
    strategy_id = data["strategy_id"]

    response = client.get("/strategy/active-strategies")
    assert response.status_code == 200
    strategies = response.json()["strategies"]
    assert [s["id"] for s in strategies] == [strategy_id]
    assert strategies[0]["algorithm_params"] == {"sma_period": 3}
    assert strategies[0]["settings"]["max_open_orders"] == 2


def test_new_strategy_custom_settings(client: TestClient, bot: RaderBot) -> None:
    body = {**NEW_STRATEGY, "margin": 250.0, "leverage": 3}
    strategy_id = client.post("/strategy/new-strategy", json=body).json()["strategy_id"]
    settings = bot.get_strategy(strategy_id).settings
    assert settings.margin_usd == 250.0
    assert settings.leverage == 3


@pytest.mark.parametrize(
    "override",
    [
        {"strategy_name": "Nope"},
        {"interval": "7q"},
        {"algorithm_params": {"sma_period": "three"}},
    ],
)
def test_new_strategy_errors(client: TestClient, bot: RaderBot, override: dict) -> None:
    response = client.post("/strategy/new-strategy", json={**NEW_STRATEGY, **override})
    assert response.status_code == 417
    assert "error" in response.json()
    assert bot.strategy_ids() == []


def test_stop_strategy_and_fetch_summary(client: TestClient) -> None:
    strategy_id = client.post("/strategy/new-strategy", json=NEW_STRATEGY).json()["strategy_id"]

    response = client.post("/strategy/stop-strategy", json={"strategy_id": strategy_id})
    assert response.status_code == 200
    assert response.json()["strategy_id"] == strategy_id

    response = client.get(f"/strategy/summaries/{strategy_id}")
    assert response.status_code == 200
    assert response.json()["summary"]["info"]["id"] == strategy_id

    response = client.get("/strategy/summaries")
    assert [s["info"]["id"] for s in response.json()["summaries"]] == [strategy_id]


def test_stop_unknown_strategy(client: TestClient) -> None:
    response = client.post("/strategy/stop-strategy", json={"strategy_id": "missing"})
    assert response.status_code == 404
    assert response.json() == {"error": "Unable to find strategy"}


def test_unknown_summary(client: TestClient) -> None:
    response = client.get("/strategy/summaries/missing")
    assert response.status_code == 404


def test_stop_all_strategies(client: TestClient) -> None:
    ids = [
        client.post("/strategy/new-strategy", json=NEW_STRATEGY).json()["strategy_id"]
        for _ in range(2)
    ]
    response = client.post("/strategy/stop-all-strategies")
    assert response.status_code == 200
    assert sorted(response.json()["strategies_stopped"]) == sorted(ids)
    assert client.get("/strategy/active-strategies").json()["strategies"] == []


def test_set_strategy_params(client: TestClient) -> None:
    strategy_id = client.post("/strategy/new-strategy", json=NEW_STRATEGY).json()["strategy_id"]

    response = client.post(
        "/strategy/set-strategy-params",
        json={"strategy_id": strategy_id, "params": {"sma_period": 5}},
    )
    assert response.status_code == 200
    assert response.json() == {"success": {"updated_params": {"sma_period": 5}}}

    response = client.post(
        "/strategy/set-strategy-params",
        json={"strategy_id": strategy_id, "params": {"sma_period": 0}},
    )
    assert response.status_code == 417

    response = client.post(
        "/strategy/set-strategy-params",
        json={"strategy_id": "missing", "params": {"sma_period": 5}},
    )
    assert response.status_code == 404


def test_run_back_test(client: TestClient, bot: RaderBot) -> None:
    klines = build_klines([10.0, 11.0, 12.0, 13.0, 14.0])
    bot.storage_manager.save_klines(klines, "BTCUSDT_1m")

    body = {
        **NEW_STRATEGY,
        "algorithm_params": {"sma_period": 2},
        "from_ts": "2024-01-01T00:00:00Z",
        "to_ts": "2024-01-01T01:00:00Z",
    }
    response = client.post("/strategy/run-back-test", json=body)
    assert response.status_code == 200
    result = response.json()["result"]
    assert result["symbol"] == "BTCUSDT"
    assert result["long_count"] == 2
    assert result["period_start_price"] == 10.0
    assert result["period_end_price"] == 14.0
    assert result["profit"] == pytest.approx(3 * 10000 / 11 + 2 * 10000 / 12)


def test_run_back_test_bad_dates(client: TestClient) -> None:
    body = {**NEW_STRATEGY, "from_ts": "yesterday", "to_ts": "today"}
    response = client.post("/strategy/run-back-test", json=body)
    assert response.status_code == 417
    assert response.json() == {"error": "Unable to parse dates"}


def test_run_back_test_bad_algorithm(client: TestClient) -> None:
    body = {**NEW_STRATEGY, "strategy_name": "Nope", "from_ts": "2024-01-01"}
    response = client.post("/strategy/run-back-test", json=body)
    assert response.status_code == 417


def test_algorithms_listing(client: TestClient) -> None:
    response = client.get("/strategy/algorithms")
    assert response.status_code == 200
    assert "EmaSmaCrossover" in response.json()["algorithms"]

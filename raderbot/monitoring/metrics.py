"""Prometheus metrics definitions."""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Gauge, start_http_server


class Metrics:
    """Expose core engine metrics for monitoring.

    Each instance owns its registry so several bots (or test cases) can live in
    one process without clashing on the global default registry.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()

        self.signals_received = Counter(
            "signals_received_total",
            "Signals consumed by the signal manager",
            ["strategy_id"],
            registry=self.registry,
        )
        self.signal_actions = Counter(
            "signal_actions_total",
            "Outcome of each handled signal",
            ["action"],
            registry=self.registry,
        )
        self.signal_queue_depth = Gauge(
            "signal_queue_depth",
            "Signals waiting on the shared channel",
            registry=self.registry,
        )

        self.positions_opened = Counter(
            "positions_opened_total",
            "Positions opened",
            ["symbol", "side"],
            registry=self.registry,
        )
        self.trades_closed = Counter(
            "trades_closed_total",
            "Positions closed into trades",
            ["symbol", "side"],
            registry=self.registry,
        )
        self.realized_profit = Gauge(
            "realized_profit_usd",
            "Cumulative realized profit",
            registry=self.registry,
        )
        self.open_positions = Gauge(
            "open_positions",
            "Number of open positions",
            registry=self.registry,
        )

        self.active_strategies = Gauge(
            "active_strategies",
            "Strategies currently running",
            registry=self.registry,
        )
        self.candles_evaluated = Counter(
            "candles_evaluated_total",
            "Candles passed through an algorithm",
            ["strategy_id"],
            registry=self.registry,
        )
        self.backtests_run = Counter(
            "backtests_run_total",
            "Completed backtest runs",
            registry=self.registry,
        )

    def start(self, port: int) -> None:
        start_http_server(port, registry=self.registry)

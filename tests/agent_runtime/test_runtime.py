"""
Tests for the sweep runner: ordering, cadence and failure isolation.
"""

import asyncio
import logging

import pytest
from unittest.mock import MagicMock

from arrow_agent.agent_runtime import AgentRuntime, register_builtin_strategies
from arrow_agent.agent_runtime.strategy import Strategy, StrategyConfig
from arrow_agent.core.recovery import ConfigurationError, NetworkError


class RecordingStrategy(Strategy):
    def __init__(self, strategy_id, calls, every_n_ticks=1, error=None):
        super().__init__(config=StrategyConfig(every_n_ticks=every_n_ticks))
        self.id = strategy_id
        self.calls = calls
        self.error = error

    async def on_tick(self, ctx):
        self.calls.append((ctx.tick, self.id))
        if self.error is not None:
            raise self.error


@pytest.fixture
def runtime():
    return AgentRuntime(logger=logging.getLogger("test_runtime"), poll_interval_seconds=0.01)


class TestSweeps:
    @pytest.mark.asyncio
    async def test_strategies_run_in_registration_order(self, runtime):
        calls = []
        for name in ("leader_swaps", "limit_orders", "pending_orders"):
            runtime.register_strategy(RecordingStrategy(name, calls))

        await runtime.run_sweep()

        assert calls == [(0, "leader_swaps"), (0, "limit_orders"), (0, "pending_orders")]
        assert runtime.tick == 1

    @pytest.mark.asyncio
    async def test_every_n_ticks_includes_first_sweep(self, runtime):
        calls = []
        runtime.register_strategy(RecordingStrategy("pending_orders", calls))
        runtime.register_strategy(RecordingStrategy("idea_posts", calls, every_n_ticks=5))

        for _ in range(11):
            await runtime.run_sweep()

        idea_ticks = [tick for tick, name in calls if name == "idea_posts"]
        assert idea_ticks == [0, 5, 10]
        assert len([c for c in calls if c[1] == "pending_orders"]) == 11

    @pytest.mark.asyncio
    async def test_failure_is_isolated_and_recorded(self, runtime):
        calls = []
        runtime.register_strategy(RecordingStrategy("limit_orders", calls, error=RuntimeError("rpc down")))
        runtime.register_strategy(RecordingStrategy("pending_orders", calls))

        await runtime.run_sweep()
        await runtime.run_sweep()

        assert [name for _, name in calls].count("pending_orders") == 2
        state = {s["id"]: s for s in runtime.list_strategies()}["limit_orders"]
        assert state["last_error"] == "rpc down"
        assert state["consecutive_errors"] == 2
        assert state["run_count"] == 2
        assert state["status"] == "idle"


    @pytest.mark.asyncio
    async def test_recoverable_failure_logs_warning(self, runtime, caplog):
        runtime.register_strategy(RecordingStrategy("limit_orders", [], error=NetworkError("rpc down")))

        with caplog.at_level(logging.WARNING, logger="test_runtime"):
            await runtime.run_sweep()

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert "network" in record.getMessage()
        assert "Retry on the next tick" in record.getMessage()

    @pytest.mark.asyncio
    async def test_unrecoverable_failure_logs_error_with_action(self, runtime, caplog):
        error = ConfigurationError("No signing key", setting="agent_private_key")
        runtime.register_strategy(RecordingStrategy("pending_orders", [], error=error))

        with caplog.at_level(logging.WARNING, logger="test_runtime"):
            await runtime.run_sweep()

        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert "configuration" in record.getMessage()
        assert "[Set AGENT_PRIVATE_KEY]" in record.getMessage()
    @pytest.mark.asyncio
    async def test_paused_strategy_is_skipped(self, runtime):
        calls = []
        runtime.register_strategy(RecordingStrategy("limit_orders", calls))

        assert runtime.pause_strategy("limit_orders")
        await runtime.run_sweep()
        assert calls == []

        runtime.resume_strategy("limit_orders")
        await runtime.run_sweep()
        assert calls == [(1, "limit_orders")]

    def test_duplicate_registration_rejected(self, runtime):
        runtime.register_strategy(RecordingStrategy("a", []))
        with pytest.raises(ValueError):
            runtime.register_strategy(RecordingStrategy("a", []))


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_run_forever_stops_on_request(self, runtime):
        calls = []
        runtime.register_strategy(RecordingStrategy("pending_orders", calls))

        task = asyncio.create_task(runtime.run_forever())
        while len(calls) < 2:
            await asyncio.sleep(0.005)
        runtime.request_stop()
        await asyncio.wait_for(task, timeout=1)

        assert not runtime.is_running
        assert runtime.status()["tick"] >= 2


def test_builtin_strategies_registered_in_fixed_order(runtime):
    services = MagicMock()
    services.hook = None

    register_builtin_strategies(runtime, services)

    assert [s["id"] for s in runtime.list_strategies()] == [
        "leader_swaps",
        "limit_orders",
        "pending_orders",
        "idea_posts",
    ]
    assert runtime.list_strategies()[-1]["every_n_ticks"] == 5

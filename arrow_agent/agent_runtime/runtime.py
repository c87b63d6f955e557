from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog

from .strategy import ExecutionContext, Strategy
from ..config import settings
from ..core.recovery import classify_error


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class StrategyState:
    """Bookkeeping for one strategy across sweeps."""

    status: str = "idle"
    run_count: int = 0
    consecutive_errors: int = 0
    last_started: Optional[datetime] = None
    last_completed: Optional[datetime] = None
    last_error: Optional[str] = None
    paused: bool = False

    def begin(self) -> None:
        self.status = "running"
        self.last_started = _now()

    def finish(self, error: Optional[BaseException] = None) -> None:
        if error is None:
            self.last_error = None
            self.consecutive_errors = 0
        else:
            self.last_error = str(error)
            self.consecutive_errors += 1
        self.run_count += 1
        self.last_completed = _now()
        self.status = "idle"

    def as_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "paused": self.paused,
            "run_count": self.run_count,
            "consecutive_errors": self.consecutive_errors,
            "last_error": self.last_error,
            "last_started": self.last_started.isoformat() if self.last_started else None,
            "last_completed": self.last_completed.isoformat() if self.last_completed else None,
        }


class AgentRuntime:
    """Fixed-interval sweep runner.

    Each sweep runs every due strategy once, one after another, in
    registration order. The next sweep starts `poll_interval_seconds` after
    the previous one finished, so sweeps never overlap.
    """

    def __init__(
        self,
        *,
        logger: Optional[logging.Logger] = None,
        poll_interval_seconds: Optional[float] = None,
    ) -> None:
        self.logger = logger or logging.getLogger("agent_runtime")
        self._strategies: Dict[str, Strategy] = {}
        self._state: Dict[str, StrategyState] = {}
        self._poll_interval = (
            poll_interval_seconds if poll_interval_seconds is not None else settings.poll_interval_seconds
        )
        self._stop_event = asyncio.Event()
        self._running = False
        self.tick = 0

    def register_strategy(self, strategy: Strategy) -> None:
        if strategy.id in self._strategies:
            raise ValueError(f"Strategy '{strategy.id}' already registered")
        self._strategies[strategy.id] = strategy
        self._state[strategy.id] = StrategyState()
        self.logger.info("Registered strategy %s (every %d tick(s))", strategy.id, strategy.config.every_n_ticks)

    def unregister_strategy(self, strategy_id: str) -> None:
        self._strategies.pop(strategy_id, None)
        self._state.pop(strategy_id, None)

    # Lifecycle

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._stop_event.clear()
        self.logger.info("Agent runtime starting with %d strategies", len(self._strategies))
        await self._broadcast("on_start")

    async def run_forever(self) -> None:
        """Sweep until `request_stop` is called. The current sweep always completes."""
        await self.start()
        try:
            while not self._stop_event.is_set():
                await self.run_sweep()
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=self._poll_interval)
                except asyncio.TimeoutError:
                    pass
        finally:
            await self.stop()

    def request_stop(self) -> None:
        if not self._stop_event.is_set():
            self.logger.info("Stop requested; finishing current sweep")
        self._stop_event.set()

    async def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        self.logger.info("Agent runtime stopping after %d sweep(s)", self.tick)
        await self._broadcast("on_stop")

    @property
    def is_running(self) -> bool:
        return self._running

    async def _broadcast(self, hook_name: str) -> None:
        for strategy_id, strategy in self._strategies.items():
            try:
                await getattr(strategy, hook_name)(self._make_context(strategy_id))
            except Exception as exc:  # noqa: BLE001
                self.logger.warning("Strategy %s %s failed: %s", strategy_id, hook_name, exc, exc_info=True)

    # Sweeps

    async def run_sweep(self) -> None:
        tick = self.tick
        structlog.contextvars.bind_contextvars(tick=tick)
        try:
            for strategy_id, strategy in self._strategies.items():
                state = self._state[strategy_id]
                if state.paused or not strategy.is_due(tick):
                    continue
                await self._run_strategy_tick(strategy_id, strategy, state)
        finally:
            structlog.contextvars.unbind_contextvars("tick")
            self.tick += 1

    async def _run_strategy_tick(self, strategy_id: str, strategy: Strategy, state: StrategyState) -> None:
        state.begin()
        try:
            await strategy.on_tick(self._make_context(strategy_id))
        except Exception as exc:  # noqa: BLE001
            state.finish(exc)
            error_ctx = classify_error(exc)
            # Recoverable failures are retried by the next sweep; the rest need an operator
            self.logger.log(
                logging.WARNING if error_ctx.recoverable else logging.ERROR,
                "Strategy %s tick failed (%s, %d in a row): %s%s",
                strategy_id,
                error_ctx.category.value,
                state.consecutive_errors,
                exc,
                f" [{error_ctx.suggested_action}]" if error_ctx.suggested_action else "",
                exc_info=True,
            )
        else:
            state.finish()

    def _set_paused(self, strategy_id: str, paused: bool) -> bool:
        state = self._state.get(strategy_id)
        if state is None:
            return False
        state.paused = paused
        self.logger.info("Strategy %s %s", strategy_id, "paused" if paused else "resumed")
        return True

    def pause_strategy(self, strategy_id: str) -> bool:
        return self._set_paused(strategy_id, True)

    def resume_strategy(self, strategy_id: str) -> bool:
        return self._set_paused(strategy_id, False)

    # Introspection

    def list_strategies(self) -> list[dict[str, Any]]:
        return [
            {
                "id": strategy_id,
                "description": strategy.description,
                "every_n_ticks": strategy.config.every_n_ticks,
                **self._state[strategy_id].as_dict(),
            }
            for strategy_id, strategy in self._strategies.items()
        ]

    def status(self) -> dict[str, Any]:
        return {
            "running": self._running,
            "tick": self.tick,
            "poll_interval_seconds": self._poll_interval,
            "strategies": self.list_strategies(),
        }

    def _make_context(self, strategy_id: str) -> ExecutionContext:
        return ExecutionContext(logger=self.logger.getChild(strategy_id), tick=self.tick, runtime=self)

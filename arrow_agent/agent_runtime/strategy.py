from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import BaseModel, Field

from ..config import Settings, settings as default_settings


class StrategyConfig(BaseModel):
    """Per-strategy cadence. Subclasses add their own knobs."""

    every_n_ticks: int = Field(
        default=1,
        ge=1,
        description="Run on sweeps whose tick number is a multiple of this value.",
    )


class ExecutionContext:
    """What a strategy sees during one sweep."""

    def __init__(
        self,
        *,
        logger: logging.Logger,
        tick: int = 0,
        runtime: Any = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.logger = logger
        self.tick = tick
        self.runtime = runtime
        self.settings = settings or default_settings


class Strategy:
    """One unit of work in the sweep.

    `on_tick` may raise; the runtime records the failure and moves on to the
    next strategy. Work that must survive a partial failure (one order out of
    many) is isolated inside the strategy itself.
    """

    id: str = "strategy"
    description: str = ""
    ConfigModel = StrategyConfig

    def __init__(self, config: StrategyConfig | None = None, logger: Optional[logging.Logger] = None) -> None:
        self.config = config or self.ConfigModel()
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    def is_due(self, tick: int) -> bool:
        return tick % self.config.every_n_ticks == 0

    async def on_start(self, ctx: ExecutionContext) -> None:
        return None

    async def on_tick(self, ctx: ExecutionContext) -> None:
        return None

    async def on_stop(self, ctx: ExecutionContext) -> None:
        return None

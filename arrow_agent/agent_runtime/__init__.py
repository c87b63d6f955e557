from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .runtime import AgentRuntime, StrategyState
from .strategies import (
    IdeaPostProcessor,
    LeaderSwapWatcher,
    LimitOrderScanner,
    PendingOrderProcessor,
)
from ..config import Settings, settings as default_settings
from ..core.bridge import AttestationPoller, BridgeLegExecutor, ChainRegistry
from ..core.hook import CopyTradeHook, build_hook
from ..core.orchestrator import BridgeSwapOrchestrator
from ..core.storage import SeenStore, build_seen_store
from ..core.swap import SwapExecutor
from ..providers.backend import BackendClient
from ..providers.oracle import DecisionOracle, build_oracle


@dataclass
class AgentServices:
    """Long-lived collaborators shared by the strategies."""

    registry: ChainRegistry
    backend: BackendClient
    oracle: DecisionOracle
    store: SeenStore
    poller: AttestationPoller
    orchestrator: BridgeSwapOrchestrator
    hook: Optional[CopyTradeHook] = None

    async def close(self) -> None:
        await self.backend.close()
        await self.poller.close()
        await self.registry.close()


def build_services(settings: Optional[Settings] = None) -> AgentServices:
    s = settings or default_settings
    registry = ChainRegistry(settings=s)
    poller = AttestationPoller(
        api_url=s.attestation_api_url,
        max_attempts=s.attestation_max_attempts,
        interval_seconds=s.attestation_interval_seconds,
        rate_limit_cooldown_seconds=s.attestation_rate_limit_cooldown_seconds,
        timeout_seconds=s.rpc_timeout_seconds,
    )
    execution_client = registry.client(registry.execution)
    orchestrator = BridgeSwapOrchestrator(
        registry,
        legs=BridgeLegExecutor(registry.client, poller),
        swapper=SwapExecutor(execution_client, s.pool_swap_test_address),
    )
    return AgentServices(
        registry=registry,
        backend=BackendClient(
            base_url=s.backend_url,
            agent_secret=s.agent_secret,
            timeout=s.backend_timeout_seconds,
        ),
        oracle=build_oracle(s),
        store=build_seen_store(s),
        poller=poller,
        orchestrator=orchestrator,
        hook=build_hook(execution_client, s.hook_address),
    )


def register_builtin_strategies(
    runtime: AgentRuntime,
    services: AgentServices,
    settings: Optional[Settings] = None,
) -> None:
    """Register the sweep in its fixed order: leader swaps, limit orders, pending orders, idea posts."""
    s = settings or default_settings
    runtime.register_strategy(
        LeaderSwapWatcher(
            hook=services.hook,
            oracle=services.oracle,
            backend=services.backend,
            store=services.store,
        )
    )
    runtime.register_strategy(
        LimitOrderScanner(
            hook=services.hook,
            oracle=services.oracle,
            backend=services.backend,
            store=services.store,
        )
    )
    runtime.register_strategy(
        PendingOrderProcessor(
            orchestrator=services.orchestrator,
            backend=services.backend,
            store=services.store,
            settings=s,
        )
    )
    runtime.register_strategy(
        IdeaPostProcessor(
            oracle=services.oracle,
            backend=services.backend,
            hook=services.hook,
        )
    )


def build_runtime(services: AgentServices, settings: Optional[Settings] = None) -> AgentRuntime:
    s = settings or default_settings
    runtime = AgentRuntime(
        logger=logging.getLogger("agent_runtime"),
        poll_interval_seconds=s.poll_interval_seconds,
    )
    register_builtin_strategies(runtime, services, s)
    return runtime


__all__ = [
    "AgentRuntime",
    "AgentServices",
    "StrategyState",
    "build_runtime",
    "build_services",
    "register_builtin_strategies",
]

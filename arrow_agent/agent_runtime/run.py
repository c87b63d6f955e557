from __future__ import annotations

import asyncio
import logging
import signal
from typing import Optional

from . import AgentServices, build_runtime, build_services
from ..config import Settings, settings as default_settings
from ..core.execution import format_units
from ..logging_config import setup_logging

logger = logging.getLogger("arrow_agent")

# The home chain's native gas token is the stable asset, at 18 decimals
HOME_NATIVE_DECIMALS = 18


def log_banner(services: AgentServices, settings: Settings) -> None:
    home = services.registry.home
    execution = services.registry.execution
    logger.info("Arrow agent starting: %s <-> bridge <-> %s", home.name, execution.name)
    logger.info("  %s RPC: %s", home.name, home.rpc_url)
    logger.info("  %s RPC: %s", execution.name, execution.rpc_url)
    logger.info("  Hook: %s", settings.hook_address or "NOT SET")
    logger.info("  PoolSwapTest: %s", settings.pool_swap_test_address)
    logger.info("  Oracle model: %s", settings.llm_model)
    logger.info("  Oracle key: %s", "SET" if settings.has_anthropic_key else "NOT SET")
    logger.info("  Agent key: %s", "SET" if settings.has_signing_key else "NOT SET")
    logger.info("  Backend: %s", settings.backend_url)
    logger.info("  Poll interval: %ss", settings.poll_interval_seconds)
    logger.info(
        "  Bridge domains: %s(%d) <-> %s(%d)", home.name, home.domain, execution.name, execution.domain
    )


async def log_balances(services: AgentServices) -> None:
    """Operator balances on both chains. Best-effort; failures only log."""
    registry = services.registry
    operator = registry.operator_address
    if operator is None:
        return
    try:
        home_balance = await registry.client(registry.home).native_balance(operator)
        execution_balance = await registry.client(registry.execution).erc20_balance(
            registry.execution.usdc_address, operator
        )
    except Exception as exc:  # noqa: BLE001
        logger.warning("Could not fetch agent balances: %s", exc)
        return
    logger.info("  Agent address: %s", operator)
    logger.info("  %s USDC: %s", registry.home.name, format_units(home_balance, HOME_NATIVE_DECIMALS))
    logger.info(
        "  %s USDC: %s",
        registry.execution.name,
        format_units(execution_balance, registry.execution.usdc_decimals),
    )


async def _serve(settings: Optional[Settings] = None) -> None:
    s = settings or default_settings
    services = build_services(s)
    runtime = build_runtime(services, s)

    log_banner(services, s)
    await log_balances(services)
    if s.has_hook:
        logger.info("Watching copy-trade hook %s on %s", s.hook_address, services.registry.execution.name)
    else:
        logger.info("Running in dry-run mode (no HOOK_ADDRESS); only backend posts and orders are processed")

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, runtime.request_stop)

    try:
        await runtime.run_forever()
    finally:
        await services.close()


def main() -> None:
    setup_logging()
    asyncio.run(_serve())


if __name__ == "__main__":
    main()

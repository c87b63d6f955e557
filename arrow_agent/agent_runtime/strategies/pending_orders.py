"""
Pending order processor.

Pulls user-initiated orders from the backend and drives each one through
the bridge-and-swap orchestrator at most once.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

import structlog
from eth_utils import is_address

from ..strategy import ExecutionContext, Strategy, StrategyConfig
from ...config import Settings, settings as default_settings
from ...core.orchestrator import BridgeSwapOrchestrator
from ...core.storage import SeenStore
from ...core.swap import PoolKey, ZERO_ADDRESS
from ...providers.backend import BackendClient, PendingOrder

NAMESPACE = "pending_orders"


class PendingOrderProcessor(Strategy):
    id = "pending_orders"
    description = "Executes queued user orders through bridge, swap and bridge-back."

    def __init__(
        self,
        *,
        orchestrator: BridgeSwapOrchestrator,
        backend: BackendClient,
        store: SeenStore,
        settings: Optional[Settings] = None,
        config: Optional[StrategyConfig] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(config=config, logger=logger)
        self.orchestrator = orchestrator
        self.backend = backend
        self.store = store
        self.settings = settings or default_settings

    def build_pool_key(self, order: PendingOrder) -> PoolKey:
        """Pool key from order metadata; missing pair addresses fall back to the stable asset."""
        stable = self.orchestrator.registry.execution.usdc_address
        return PoolKey(
            currency0=order.pair_address_0 or stable,
            currency1=order.pair_address_1 or stable,
            fee=order.pool_fee or self.settings.default_pool_fee,
            tick_spacing=self.settings.default_tick_spacing,
            hooks=self.settings.hook_address or ZERO_ADDRESS,
        )

    def to_units(self, order: PendingOrder) -> int:
        return self.orchestrator.registry.execution.to_units(Decimal(order.amount))

    async def on_tick(self, ctx: ExecutionContext) -> None:
        orders = await self.backend.fetch_pending_orders()
        seen = self.store.seen_keys(NAMESPACE)
        new_orders = [o for o in orders if o.id not in seen]
        if not new_orders:
            return

        ctx.logger.info("Found %d pending order(s) to execute", len(new_orders))
        for order in new_orders:
            # Recorded before execution so a crash mid-run never repeats it
            if not self.store.mark_seen(NAMESPACE, order.id):
                continue
            structlog.contextvars.bind_contextvars(order_id=order.id)
            try:
                await self._process(ctx, order)
            finally:
                structlog.contextvars.unbind_contextvars("order_id")

    async def _process(self, ctx: ExecutionContext, order: PendingOrder) -> None:
        ctx.logger.info(
            "Processing order %s: user=@%s (%s) direction=%s amount=%s trigger=%s pair=%s",
            order.id[:8],
            order.username,
            order.user_address,
            "0->1" if order.zero_for_one else "1->0",
            order.amount,
            order.trigger_price,
            order.pair or "unknown",
        )

        if not self.settings.has_signing_key:
            ctx.logger.info("No signing key configured; skipping order %s", order.id[:8])
            return

        if not order.user_address or not is_address(order.user_address):
            ctx.logger.error("Order %s has no valid user address (%r); marking failed", order.id[:8], order.user_address)
            await self.backend.update_order_status(order.id, "failed")
            return

        try:
            pool_key = self.build_pool_key(order)
            result = await self.orchestrator.run(
                amount=self.to_units(order),
                pool_key=pool_key,
                zero_for_one=order.zero_for_one,
                user_address=order.user_address,
            )
        except Exception as exc:  # noqa: BLE001
            ctx.logger.error("Order %s failed: %s", order.id[:8], exc, exc_info=True)
            await self.backend.update_order_status(order.id, "failed")
            return

        await self.backend.update_order_status(order.id, "executed", result.swap_tx)
        ctx.logger.info("Order %s executed, swap tx %s", order.id[:8], result.swap_tx)
        await self.backend.notify(
            "order-executed",
            {
                "orderId": order.id,
                "swapTx": result.swap_tx,
                "bridgeTx": result.bridge_to_destination_tx,
                "user": order.user_address,
            },
        )

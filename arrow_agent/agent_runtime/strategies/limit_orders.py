"""
On-chain limit order scanner.

Walks the hook's limit orders in index order. Orders the chain reports as
executed are retired locally; the rest go to the oracle, and an approved
order becomes a limit-order proposal for its owner and is marked executed
on-chain with the operator key.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..strategy import ExecutionContext, Strategy, StrategyConfig
from ...core.hook import CopyTradeHook, LimitOrderRecord
from ...core.storage import SeenStore
from ...providers.backend import BackendClient, TradeProposal
from ...providers.oracle import LIMIT_ORDER_THRESHOLD, DecisionOracle, LimitOrderContext, Verdict

NAMESPACE = "limit_orders"

# No on-chain price read yet; the oracle is told the price is unknown
CURRENT_PRICE_PLACEHOLDER = "0"


class LimitOrderScanner(Strategy):
    id = "limit_orders"
    description = "Evaluates resting on-chain limit orders and actions approved ones."

    def __init__(
        self,
        *,
        hook: Optional[CopyTradeHook],
        oracle: DecisionOracle,
        backend: BackendClient,
        store: SeenStore,
        config: Optional[StrategyConfig] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(config=config, logger=logger)
        self.hook = hook
        self.oracle = oracle
        self.backend = backend
        self.store = store

    async def on_tick(self, ctx: ExecutionContext) -> None:
        if self.hook is None:
            return

        count = await self.hook.get_limit_order_count()
        if count == 0:
            return
        ctx.logger.debug("Checking %d limit orders", count)

        seen = self.store.seen_keys(NAMESPACE)
        for index in range(count):
            if str(index) in seen:
                continue
            try:
                await self._check(ctx, index)
            except Exception as exc:  # noqa: BLE001
                ctx.logger.warning("Limit order #%d check failed: %s", index, exc, exc_info=True)

    async def _check(self, ctx: ExecutionContext, index: int) -> None:
        order = await self.hook.get_limit_order(index)
        if order.executed:
            self.store.mark_seen(NAMESPACE, str(index))
            return

        ctx.logger.info("Limit order #%d: owner=%s trigger=%s", index, order.owner, order.trigger_price)
        verdict = await self.oracle.evaluate_limit_order(
            LimitOrderContext(
                order_id=index,
                owner=order.owner,
                zero_for_one=order.zero_for_one,
                amount=order.amount,
                trigger_price=str(order.trigger_price),
                current_price=CURRENT_PRICE_PLACEHOLDER,
                created_at=order.created_at,
            )
        )
        ctx.logger.info("Oracle: %s (%.2f) %s", verdict.action, verdict.confidence, verdict.reason)

        if not verdict.approves(LIMIT_ORDER_THRESHOLD):
            return
        await self._execute(ctx, order, verdict)

    async def _execute(
        self,
        ctx: ExecutionContext,
        order: LimitOrderRecord,
        verdict: Verdict,
    ) -> None:
        proposal_id = await self.backend.create_trade_proposal(
            TradeProposal(
                user_address=order.owner,
                type="limit-order",
                zero_for_one=order.zero_for_one,
                amount=order.amount,
                token0=order.pool_key.currency0,
                token1=order.pool_key.currency1,
                pool_fee=order.pool_key.fee,
                ai_confidence=verdict.confidence,
                ai_reason=verdict.reason,
                slippage_bps=verdict.slippage_bps,
                urgency=verdict.urgency,
            )
        )
        if proposal_id is None:
            ctx.logger.warning("Proposal for limit order #%d was not created; will retry", order.index)
            return

        # The proposal exists now, so the order must not produce another one
        self.store.mark_seen(NAMESPACE, str(order.index))

        result = await self.hook.mark_limit_order_executed(order.index)
        ctx.logger.info("Marked limit order #%d executed on-chain, tx: %s", order.index, result.tx_hash)
        await self.backend.notify("order-executed", {"orderId": order.index, "txHash": result.tx_hash})

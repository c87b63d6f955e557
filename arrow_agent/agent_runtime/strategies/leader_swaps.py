"""
Leader swap watcher.

Scans the hook for LeaderSwap events since the last processed block and,
when the oracle approves, turns each one into copy-trade proposals for the
leader's followers.
"""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import Field

from ..strategy import ExecutionContext, Strategy, StrategyConfig
from ...config import settings
from ...core.hook import CopyTradeHook, LeaderSwapEvent
from ...core.storage import SeenStore
from ...providers.backend import BackendClient, TradeProposal
from ...providers.oracle import LEADER_SWAP_THRESHOLD, DecisionOracle, LeaderSwapContext

NAMESPACE = "leader_swaps"
CURSOR = "leader_swaps.last_block"


class LeaderSwapWatcherConfig(StrategyConfig):
    lookback_blocks: int = Field(
        default_factory=lambda: settings.leader_swap_lookback_blocks,
        ge=0,
        description="Blocks scanned on the first pass when no cursor is stored.",
    )
    max_block_range: int = Field(
        default_factory=lambda: settings.leader_swap_max_block_range,
        ge=1,
        description="Widest range requested from eth_getLogs in one scan.",
    )


class LeaderSwapWatcher(Strategy):
    id = "leader_swaps"
    description = "Relays approved leader swaps to followers as copy-trade proposals."
    ConfigModel = LeaderSwapWatcherConfig

    def __init__(
        self,
        *,
        hook: Optional[CopyTradeHook],
        oracle: DecisionOracle,
        backend: BackendClient,
        store: SeenStore,
        config: Optional[LeaderSwapWatcherConfig] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(config=config, logger=logger)
        self.hook = hook
        self.oracle = oracle
        self.backend = backend
        self.store = store

    def _from_block(self, current_block: int, ctx: ExecutionContext) -> int:
        cfg: LeaderSwapWatcherConfig = self.config  # type: ignore[assignment]
        last = self.store.get_cursor(CURSOR)
        if last is None:
            return max(current_block - cfg.lookback_blocks, 0)

        # Providers reject wide eth_getLogs ranges; a stale cursor resumes near the head
        from_block = max(last + 1, current_block - cfg.max_block_range)
        if from_block > last + 1:
            ctx.logger.warning(
                "Cursor %s is %s blocks behind head; skipping to %s",
                last,
                current_block - last,
                from_block,
            )
        return from_block

    async def on_tick(self, ctx: ExecutionContext) -> None:
        if self.hook is None:
            return

        current_block = await self.hook.client.block_number()
        from_block = self._from_block(current_block, ctx)
        if from_block > current_block:
            return

        # A failed fetch raises before the cursor moves, so the range is retried
        events = await self.hook.get_leader_swaps(from_block, current_block)
        for event in events:
            if event.tx_hash and not self.store.mark_seen(NAMESPACE, event.tx_hash.lower()):
                continue
            try:
                await self._handle(ctx, event)
            except Exception as exc:  # noqa: BLE001
                ctx.logger.warning("LeaderSwap %s failed: %s", event.tx_hash, exc, exc_info=True)

        self.store.set_cursor(CURSOR, current_block)

    async def _handle(self, ctx: ExecutionContext, event: LeaderSwapEvent) -> None:
        ctx.logger.info(
            "LeaderSwap detected: leader=%s direction=%s amount=%s block=%s",
            event.leader,
            "0->1" if event.zero_for_one else "1->0",
            event.amount,
            event.block_number,
        )

        followers: list[str] = []
        trade_count = 0
        try:
            followers = await self.hook.get_followers(event.leader)
            trade_count = await self.hook.get_leader_trade_count(event.leader)
        except Exception as exc:  # noqa: BLE001
            ctx.logger.warning("Reading hook state for %s failed: %s", event.leader, exc)

        if not followers:
            ctx.logger.info("No followers for %s; skipping evaluation", event.leader)
            return

        verdict = await self.oracle.evaluate_leader_swap(
            LeaderSwapContext(
                leader=event.leader,
                follower_count=len(followers),
                zero_for_one=event.zero_for_one,
                amount=event.amount,
                delta0=str(event.delta0),
                delta1=str(event.delta1),
                leader_trade_count=trade_count,
            )
        )
        ctx.logger.info("Oracle: %s (%.2f) %s", verdict.action, verdict.confidence, verdict.reason)

        if not verdict.approves(LEADER_SWAP_THRESHOLD):
            return

        ctx.logger.info("Creating copy-trade proposals for %d followers", len(followers))
        for follower in followers:
            await self.backend.create_trade_proposal(
                TradeProposal(
                    user_address=follower,
                    type="copy-trade",
                    zero_for_one=event.zero_for_one,
                    amount=event.amount,
                    leader_address=event.leader,
                    ai_confidence=verdict.confidence,
                    ai_reason=verdict.reason,
                    slippage_bps=verdict.slippage_bps,
                    urgency=verdict.urgency,
                )
            )

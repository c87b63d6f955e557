"""
Idea post processor.

Scores trade ideas from the feed and, for approved ones, proposes the
trade to the author's followers (or to the author when nobody follows).
Every idea is marked processed once evaluated, whatever the verdict.
"""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import Field

from ..strategy import ExecutionContext, Strategy, StrategyConfig
from ...config import settings
from ...core.hook import CopyTradeHook
from ...core.swap import zero_for_one_from_side
from ...providers.backend import BackendClient, IdeaPost, TradeProposal
from ...providers.oracle import IDEA_POST_THRESHOLD, DecisionOracle, IdeaContext, IdeaVerdict

DEFAULT_IDEA_AMOUNT = "10"


class IdeaPostConfig(StrategyConfig):
    every_n_ticks: int = Field(
        default_factory=lambda: settings.idea_posts_every_n_ticks,
        ge=1,
        description="Idea posts are processed on every Nth sweep.",
    )


class IdeaPostProcessor(Strategy):
    id = "idea_posts"
    description = "Turns approved idea posts into proposals for the author's followers."
    ConfigModel = IdeaPostConfig

    def __init__(
        self,
        *,
        oracle: DecisionOracle,
        backend: BackendClient,
        hook: Optional[CopyTradeHook] = None,
        config: Optional[IdeaPostConfig] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(config=config, logger=logger)
        self.oracle = oracle
        self.backend = backend
        self.hook = hook

    async def on_tick(self, ctx: ExecutionContext) -> None:
        ideas = await self.backend.fetch_unprocessed_ideas()
        if not ideas:
            return

        ctx.logger.info("Processing %d new idea post(s)", len(ideas))
        for idea in ideas:
            try:
                await self._process(ctx, idea)
                await self.backend.mark_idea_processed(idea.id)
            except Exception as exc:  # noqa: BLE001
                ctx.logger.warning("Idea %s failed: %s", idea.id, exc, exc_info=True)

    async def _process(self, ctx: ExecutionContext, idea: IdeaPost) -> None:
        context = IdeaContext(
            post_id=idea.id,
            content=idea.content,
            pair=idea.pair,
            side=idea.side,
            price=idea.price,
            author_username=idea.username,
            author_address=idea.address,
            is_leader=idea.is_leader,
            pair_address_0=idea.pair_address_0,
            pair_address_1=idea.pair_address_1,
        )
        ctx.logger.info(
            "Idea by @%s: %s %s %s",
            idea.username,
            idea.pair,
            idea.side.upper(),
            f"@ {idea.price}" if context.has_price else "(market)",
        )

        verdict = await self.oracle.evaluate_idea(context)
        ctx.logger.info(
            "Oracle: %s (%.2f) %s [%s]", verdict.action, verdict.confidence, verdict.reason, verdict.order_type
        )
        if not verdict.approves(IDEA_POST_THRESHOLD):
            return

        try:
            zero_for_one = zero_for_one_from_side(idea.side)
        except ValueError as exc:
            ctx.logger.warning("Idea %s has no tradable side: %s", idea.id, exc)
            return

        targets = await self._targets(ctx, idea)
        ctx.logger.info("Creating %s proposals for %d user(s)", verdict.order_type, len(targets))
        for target in targets:
            await self.backend.create_trade_proposal(self._proposal(idea, verdict, target, zero_for_one))

    async def _targets(self, ctx: ExecutionContext, idea: IdeaPost) -> list[str]:
        followers: list[str] = []
        if self.hook is not None and idea.address:
            try:
                followers = await self.hook.get_followers(idea.address)
            except Exception as exc:  # noqa: BLE001
                ctx.logger.info("Could not read followers of %s, using author only: %s", idea.address, exc)
        return followers or [idea.address]

    @staticmethod
    def _proposal(idea: IdeaPost, verdict: IdeaVerdict, target: str, zero_for_one: bool) -> TradeProposal:
        return TradeProposal(
            user_address=target,
            type="limit-order" if verdict.order_type == "limit" else "ai-suggestion",
            zero_for_one=zero_for_one,
            amount=verdict.suggested_amount or DEFAULT_IDEA_AMOUNT,
            token0=idea.pair_address_0,
            token1=idea.pair_address_1,
            pool_fee=idea.pool_fee,
            leader_address=idea.address,
            ai_confidence=verdict.confidence,
            ai_reason=f"[Idea by @{idea.username}] {verdict.reason}",
            slippage_bps=verdict.suggested_slippage_bps or verdict.slippage_bps,
            urgency=verdict.urgency,
        )

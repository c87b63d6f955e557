"""
Tests for the idea post processor.
"""

import logging

import pytest
from unittest.mock import AsyncMock, MagicMock

from arrow_agent.agent_runtime.strategies import IdeaPostProcessor
from arrow_agent.agent_runtime.strategy import ExecutionContext
from arrow_agent.providers.backend import IdeaPost
from arrow_agent.providers.oracle import IdeaVerdict, StaticOracle


AUTHOR = "0x5555555555555555555555555555555555555555"
FOLLOWERS = ["0x4444444444444444444444444444444444444444", "0x6666666666666666666666666666666666666666"]


def idea(post_id="i1", **overrides):
    fields = dict(
        id=post_id,
        content="ETH breaking out",
        pair="ETH/USDC",
        pair_address_0="0x1000000000000000000000000000000000000001",
        pair_address_1="0x2000000000000000000000000000000000000002",
        pool_fee=500,
        side="buy",
        price="",
        username="alice",
        address=AUTHOR,
    )
    fields.update(overrides)
    return IdeaPost(**fields)


def oracle_returning(**fields):
    verdict = IdeaVerdict(**{"action": "execute", "reason": "momentum", "confidence": 0.8, **fields})
    oracle = MagicMock()
    oracle.evaluate_idea = AsyncMock(return_value=verdict)
    return oracle


@pytest.fixture
def backend():
    backend = MagicMock()
    backend.fetch_unprocessed_ideas = AsyncMock(return_value=[idea()])
    backend.create_trade_proposal = AsyncMock(return_value="p1")
    backend.mark_idea_processed = AsyncMock()
    return backend


@pytest.fixture
def hook():
    hook = MagicMock()
    hook.get_followers = AsyncMock(return_value=FOLLOWERS)
    return hook


@pytest.fixture
def ctx():
    return ExecutionContext(logger=logging.getLogger("test_idea_posts"))


class TestIdeaPostProcessor:
    @pytest.mark.asyncio
    async def test_approved_idea_proposes_to_followers(self, backend, hook, ctx):
        processor = IdeaPostProcessor(oracle=oracle_returning(), backend=backend, hook=hook)

        await processor.on_tick(ctx)

        proposals = [c.args[0] for c in backend.create_trade_proposal.await_args_list]
        assert [p.user_address for p in proposals] == FOLLOWERS
        proposal = proposals[0]
        assert proposal.type == "ai-suggestion"
        assert proposal.zero_for_one is False
        assert proposal.amount == "10"
        assert proposal.pool_fee == 500
        assert proposal.leader_address == AUTHOR
        assert proposal.ai_reason == "[Idea by @alice] momentum"
        backend.mark_idea_processed.assert_awaited_once_with("i1")

    @pytest.mark.asyncio
    async def test_priced_idea_becomes_limit_order_with_suggestions(self, backend, hook, ctx):
        backend.fetch_unprocessed_ideas.return_value = [idea(side="sell", price="3200")]
        oracle = oracle_returning(order_type="limit", suggested_amount="25", suggested_slippage_bps=75)
        processor = IdeaPostProcessor(oracle=oracle, backend=backend, hook=hook)

        await processor.on_tick(ctx)

        proposal = backend.create_trade_proposal.await_args.args[0]
        assert proposal.type == "limit-order"
        assert proposal.zero_for_one is True
        assert proposal.amount == "25"
        assert proposal.slippage_bps == 75

    @pytest.mark.asyncio
    async def test_author_is_target_without_followers(self, backend, hook, ctx):
        hook.get_followers.return_value = []
        processor = IdeaPostProcessor(oracle=oracle_returning(), backend=backend, hook=hook)

        await processor.on_tick(ctx)

        assert backend.create_trade_proposal.await_args.args[0].user_address == AUTHOR

    @pytest.mark.asyncio
    async def test_author_is_target_without_hook(self, backend, ctx):
        processor = IdeaPostProcessor(oracle=oracle_returning(), backend=backend)

        await processor.on_tick(ctx)

        assert backend.create_trade_proposal.await_count == 1

    @pytest.mark.asyncio
    async def test_rejected_idea_is_still_marked_processed(self, backend, hook, ctx):
        processor = IdeaPostProcessor(oracle=StaticOracle(), backend=backend, hook=hook)

        await processor.on_tick(ctx)

        backend.create_trade_proposal.assert_not_awaited()
        backend.mark_idea_processed.assert_awaited_once_with("i1")

    @pytest.mark.asyncio
    async def test_unknown_side_creates_nothing(self, backend, hook, ctx):
        backend.fetch_unprocessed_ideas.return_value = [idea(side="hold")]
        processor = IdeaPostProcessor(oracle=oracle_returning(), backend=backend, hook=hook)

        await processor.on_tick(ctx)

        backend.create_trade_proposal.assert_not_awaited()
        backend.mark_idea_processed.assert_awaited_once_with("i1")

    @pytest.mark.asyncio
    async def test_failing_idea_does_not_block_the_next(self, backend, hook, ctx):
        backend.fetch_unprocessed_ideas.return_value = [idea("i1"), idea("i2")]
        oracle = oracle_returning()
        oracle.evaluate_idea.side_effect = [RuntimeError("boom"), oracle.evaluate_idea.return_value]
        processor = IdeaPostProcessor(oracle=oracle, backend=backend, hook=hook)

        await processor.on_tick(ctx)

        backend.mark_idea_processed.assert_awaited_once_with("i2")

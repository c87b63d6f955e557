"""
Tests for the social backend client.
"""

import json

import httpx
import pytest

from arrow_agent.providers.backend import BackendClient, TradeProposal


class FakeBackend:
    """Routes requests to canned answers and records what was sent."""

    def __init__(self, routes=None):
        self.routes = routes or {}
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        answer = self.routes.get((request.method, request.url.path))
        if answer is None:
            return httpx.Response(200, json={})
        if isinstance(answer, Exception):
            raise answer
        return answer

    def body(self, index=-1):
        return json.loads(self.requests[index].content)


def make_client(fake):
    return BackendClient(
        base_url="http://backend.test/",
        agent_secret="s3cret",
        timeout=5,
        transport=httpx.MockTransport(fake.handler),
    )


def proposal(**overrides):
    fields = dict(
        user_address="0x4444444444444444444444444444444444444444",
        type="copy-trade",
        zero_for_one=True,
        amount="2",
        ai_confidence=0.8,
        ai_reason="solid leader",
    )
    fields.update(overrides)
    return TradeProposal(**fields)


class TestTradeProposals:
    @pytest.mark.asyncio
    async def test_create_sends_defaults_and_secret(self):
        fake = FakeBackend({("POST", "/trade-proposals"): httpx.Response(201, json={"proposal": {"id": 17}})})
        client = make_client(fake)

        proposal_id = await client.create_trade_proposal(proposal())

        assert proposal_id == "17"
        request = fake.requests[0]
        assert request.headers["x-agent-secret"] == "s3cret"
        body = fake.body()
        assert body["pool_fee"] == 3000
        assert body["slippage_bps"] == 50
        assert body["urgency"] == "medium"
        assert body["leader_address"] == ""
        assert body["token0"] == ""
        await client.close()

    @pytest.mark.asyncio
    async def test_create_keeps_explicit_fields(self):
        fake = FakeBackend({("POST", "/trade-proposals"): httpx.Response(200, json={"proposal": {"id": "p1"}})})
        client = make_client(fake)

        await client.create_trade_proposal(proposal(pool_fee=500, slippage_bps=120, urgency="high", leader_address="0xabc"))

        body = fake.body()
        assert (body["pool_fee"], body["slippage_bps"], body["urgency"]) == (500, 120, "high")
        assert body["leader_address"] == "0xabc"
        await client.close()

    @pytest.mark.asyncio
    async def test_missing_id_is_none(self):
        fake = FakeBackend({("POST", "/trade-proposals"): httpx.Response(200, json={"ok": True})})
        client = make_client(fake)

        assert await client.create_trade_proposal(proposal()) is None
        await client.close()

    @pytest.mark.asyncio
    async def test_server_error_is_none(self):
        fake = FakeBackend({("POST", "/trade-proposals"): httpx.Response(500, text="boom")})
        client = make_client(fake)

        assert await client.create_trade_proposal(proposal()) is None
        await client.close()


class TestPendingOrders:
    @pytest.mark.asyncio
    async def test_fetch_skips_malformed(self):
        fake = FakeBackend({
            ("GET", "/orders/agent/pending"): httpx.Response(200, json={"orders": [
                {"id": "o1", "amount": 10, "zero_for_one": 1, "pool_fee": 500},
                {"amount": "5"},
            ]}),
        })
        client = make_client(fake)

        orders = await client.fetch_pending_orders()

        assert len(orders) == 1
        assert orders[0].id == "o1"
        assert orders[0].amount == "10"
        assert orders[0].zero_for_one is True
        await client.close()

    @pytest.mark.asyncio
    async def test_transport_failure_is_empty(self):
        fake = FakeBackend({("GET", "/orders/agent/pending"): httpx.ConnectError("refused")})
        client = make_client(fake)

        assert await client.fetch_pending_orders() == []
        await client.close()

    @pytest.mark.asyncio
    async def test_update_order_status(self):
        fake = FakeBackend()
        client = make_client(fake)

        await client.update_order_status("o1", "failed")

        request = fake.requests[0]
        assert (request.method, request.url.path) == ("PATCH", "/orders/o1/status")
        assert fake.body() == {"status": "failed", "tx_hash": ""}
        await client.close()


class TestIdeasAndEvents:
    @pytest.mark.asyncio
    async def test_fetch_ideas_normalises_nulls(self):
        fake = FakeBackend({
            ("GET", "/posts/agent/unprocessed-ideas"): httpx.Response(200, json={"ideas": [
                {"id": "i1", "side": "sell", "price": None, "username": "bob", "is_leader": 0},
            ]}),
        })
        client = make_client(fake)

        [idea] = await client.fetch_unprocessed_ideas()

        assert idea.price == ""
        assert idea.side == "sell"
        assert idea.is_leader is False
        await client.close()

    @pytest.mark.asyncio
    async def test_mark_idea_processed(self):
        fake = FakeBackend()
        client = make_client(fake)

        await client.mark_idea_processed("i1")

        assert fake.requests[0].url.path == "/posts/agent/mark-processed"
        assert fake.body() == {"post_id": "i1"}
        await client.close()

    @pytest.mark.asyncio
    async def test_notify_stamps_millis(self):
        fake = FakeBackend()
        client = make_client(fake)

        await client.notify("order-executed", {"orderId": "o1"})

        body = fake.body()
        assert body["event"] == "order-executed"
        assert body["data"] == {"orderId": "o1"}
        assert body["timestamp"] > 1_600_000_000_000
        await client.close()

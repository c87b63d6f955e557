"""
Tests for attestation polling.
"""

import httpx
import pytest
from unittest.mock import AsyncMock, patch

from arrow_agent.core.bridge import AttestationPoller, AttestationStatus
from arrow_agent.core.recovery import AttestationTimeoutError


BURN_TX = "0x" + "12" * 32

COMPLETE = {
    "messages": [
        {"status": "complete", "message": "0xdeadbeef", "attestation": "0xcafe"},
    ]
}
PENDING = {
    "messages": [
        {"status": "pending_confirmations", "message": "0x", "attestation": "PENDING"},
    ]
}


class ScriptedService:
    """Plays back a list of responses; repeats the last one when exhausted."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]


def make_poller(service):
    return AttestationPoller(
        api_url="https://attestation.test/v2/messages",
        max_attempts=10,
        interval_seconds=5.0,
        rate_limit_cooldown_seconds=60.0,
        transport=httpx.MockTransport(service),
    )


@pytest.fixture
def sleep():
    with patch("arrow_agent.core.bridge.attestation.asyncio.sleep", new_callable=AsyncMock) as mocked:
        yield mocked


class TestAttestationPoller:
    @pytest.mark.asyncio
    async def test_returns_complete_record(self, sleep):
        service = ScriptedService(httpx.Response(200, json=COMPLETE))
        poller = make_poller(service)

        record = await poller.await_attestation(26, BURN_TX)

        assert record.status == AttestationStatus.COMPLETE
        assert record.message == "0xdeadbeef"
        assert record.attestation == "0xcafe"
        assert record.source_domain == 26
        request = service.requests[0]
        assert request.url.path == "/v2/messages/26"
        assert request.url.params["transactionHash"] == BURN_TX

    @pytest.mark.asyncio
    async def test_not_found_keeps_polling(self, sleep):
        service = ScriptedService(
            httpx.Response(404),
            httpx.Response(404),
            httpx.Response(200, json=COMPLETE),
        )
        poller = make_poller(service)

        record = await poller.await_attestation(26, BURN_TX)

        assert record.is_complete
        assert len(service.requests) == 3
        assert [c.args[0] for c in sleep.await_args_list] == [5.0, 5.0]

    @pytest.mark.asyncio
    async def test_pending_status_is_not_complete(self, sleep):
        service = ScriptedService(
            httpx.Response(200, json=PENDING),
            httpx.Response(200, json=COMPLETE),
        )
        poller = make_poller(service)

        record = await poller.await_attestation(6, BURN_TX)

        assert record.is_complete
        assert len(service.requests) == 2

    @pytest.mark.asyncio
    async def test_times_out_after_exactly_max_attempts(self, sleep):
        service = ScriptedService(httpx.Response(200, json=PENDING))
        poller = make_poller(service)

        with pytest.raises(AttestationTimeoutError) as exc_info:
            await poller.await_attestation(26, BURN_TX, max_attempts=3)

        assert len(service.requests) == 3
        assert exc_info.value.attempts == 3
        assert isinstance(exc_info.value, TimeoutError)

    @pytest.mark.asyncio
    async def test_rate_limit_uses_cooldown_not_interval(self, sleep):
        service = ScriptedService(
            httpx.Response(429),
            httpx.Response(200, json=COMPLETE),
        )
        poller = make_poller(service)

        await poller.await_attestation(26, BURN_TX)

        assert [c.args[0] for c in sleep.await_args_list] == [60.0]

    @pytest.mark.asyncio
    async def test_rate_limit_consumes_an_attempt(self, sleep):
        service = ScriptedService(httpx.Response(429))
        poller = make_poller(service)

        with pytest.raises(AttestationTimeoutError):
            await poller.await_attestation(26, BURN_TX, max_attempts=2)

        assert len(service.requests) == 2

    @pytest.mark.asyncio
    async def test_server_errors_are_retried(self, sleep):
        service = ScriptedService(
            httpx.Response(503),
            httpx.Response(200, content=b"not json"),
            httpx.Response(200, json=COMPLETE),
        )
        poller = make_poller(service)

        record = await poller.await_attestation(26, BURN_TX)

        assert record.is_complete
        assert len(service.requests) == 3

    @pytest.mark.asyncio
    async def test_empty_messages_keep_polling(self, sleep):
        service = ScriptedService(
            httpx.Response(200, json={"messages": []}),
            httpx.Response(200, json=COMPLETE),
        )
        poller = make_poller(service)

        assert (await poller.await_attestation(26, BURN_TX)).is_complete

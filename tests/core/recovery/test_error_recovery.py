"""
Tests for the error taxonomy and error classification.
"""

import httpx
import pytest

from arrow_agent.core.recovery import (
    AttestationIncompleteError,
    AttestationTimeoutError,
    ConfigurationError,
    NetworkError,
    OracleValidationError,
    RateLimitError,
    RecoverableError,
    RpcError,
    TransactionRevertedError,
    UnrecoverableError,
    classify_error,
)
from arrow_agent.core.recovery.errors import ErrorCategory


# =============================================================================
# Error Types
# =============================================================================

class TestErrorTypes:
    """Tests for typed error properties."""

    def test_recoverable_error_is_recoverable(self):
        assert RecoverableError("Test error").context.recoverable is True

    def test_unrecoverable_error_is_not_recoverable(self):
        assert UnrecoverableError("Test error").context.recoverable is False

    def test_rate_limit_error(self):
        error = RateLimitError(provider="attestation")

        assert error.category == ErrorCategory.RATE_LIMIT
        assert error.context.recoverable is True
        assert error.context.suggested_action
        assert error.context.provider == "attestation"

    def test_network_error(self):
        error = NetworkError(provider="rpc")

        assert error.category == ErrorCategory.NETWORK
        assert error.context.recoverable is True

    def test_rpc_error_keeps_payload(self):
        error = RpcError("boom", chain_id=84532, method="eth_call", error={"code": -32000})

        assert error.category == ErrorCategory.CONTRACT
        assert error.context.details["method"] == "eth_call"
        assert error.error == {"code": -32000}

    def test_attestation_timeout_is_fatal_timeout(self):
        error = AttestationTimeoutError(source_domain=26, tx_hash="0xburn", attempts=3)

        assert isinstance(error, TimeoutError)
        assert error.category == ErrorCategory.TIMEOUT
        assert error.context.recoverable is False
        assert error.context.details == {"source_domain": 26, "attempts": 3}

    def test_transaction_reverted(self):
        error = TransactionRevertedError(tx_hash="0xabc", reason="STF", chain_id=84532)

        assert error.tx_hash == "0xabc"
        assert error.context.details["revert_reason"] == "STF"
        assert error.context.recoverable is False

    def test_configuration_error_suggests_setting(self):
        error = ConfigurationError(setting="agent_private_key")

        assert error.category == ErrorCategory.CONFIGURATION
        assert error.context.suggested_action == "Set AGENT_PRIVATE_KEY"

    @pytest.mark.parametrize("error_cls", [OracleValidationError, AttestationIncompleteError])
    def test_validation_errors(self, error_cls):
        assert error_cls().category == ErrorCategory.VALIDATION


# =============================================================================
# Classification
# =============================================================================

class TestErrorClassification:
    """Tests for classify_error."""

    def test_typed_errors_keep_their_context(self):
        error = RateLimitError()
        assert classify_error(error) is error.context

    def test_http_429(self):
        request = httpx.Request("GET", "https://attestation.test")
        response = httpx.Response(429, request=request)
        error = httpx.HTTPStatusError("429", request=request, response=response)

        assert classify_error(error).category == ErrorCategory.RATE_LIMIT

    def test_http_timeout(self):
        error = httpx.ReadTimeout("slow")
        assert classify_error(error).category == ErrorCategory.TIMEOUT

    def test_http_connect_error(self):
        error = httpx.ConnectError("refused")
        assert classify_error(error).category == ErrorCategory.NETWORK

    @pytest.mark.parametrize(
        "message,category",
        [
            ("execution reverted: STF", ErrorCategory.TRANSACTION_REVERTED),
            ("Too Many Requests", ErrorCategory.RATE_LIMIT),
            ("request timed out", ErrorCategory.TIMEOUT),
            ("connection reset by peer", ErrorCategory.NETWORK),
            ("something else", ErrorCategory.UNKNOWN),
        ],
    )
    def test_message_patterns(self, message, category):
        assert classify_error(RuntimeError(message)).category == category

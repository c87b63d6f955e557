"""
Error Classification

Defines the error types raised across the agent.
Errors are classified as recoverable (the natural polling cadence will try
again) or unrecoverable (the current run is over and must be reported).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

import httpx


class ErrorCategory(str, Enum):
    """Categories of errors for logging and status decisions."""

    NETWORK = "network"           # RPC hiccup, backend unreachable
    RATE_LIMIT = "rate_limit"     # Attestation service 429
    TIMEOUT = "timeout"           # Attestation or receipt never arrived
    TRANSACTION_REVERTED = "transaction_reverted"  # On-chain revert
    CONFIGURATION = "configuration"  # Missing key or contract address
    VALIDATION = "validation"     # Malformed oracle verdict or input
    CONTRACT = "contract"         # JSON-RPC error response
    UNKNOWN = "unknown"


@dataclass
class ErrorContext:
    """Additional context about an error."""

    category: ErrorCategory = ErrorCategory.UNKNOWN
    recoverable: bool = True
    suggested_action: Optional[str] = None
    provider: Optional[str] = None
    chain_id: Optional[int] = None
    tx_hash: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


class RecoverableError(Exception):
    """
    Base class for transient errors.

    These are retried by the next poll or the next tick, never by a tight
    retry loop:
    - Network issues
    - Rate limits
    - RPC error responses
    """

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.context = context or ErrorContext(category=category, recoverable=True)


class UnrecoverableError(Exception):
    """
    Base class for errors that end the current run.

    - Attestation timeouts
    - Transaction reverts
    - Missing configuration
    """

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.context = context or ErrorContext(category=category, recoverable=False)


# Recoverable
class RateLimitError(RecoverableError):
    """Upstream service answered 429."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        provider: Optional[str] = None,
    ):
        super().__init__(
            message,
            category=ErrorCategory.RATE_LIMIT,
            context=ErrorContext(
                category=ErrorCategory.RATE_LIMIT,
                recoverable=True,
                provider=provider,
                suggested_action="Back off until the provider cooldown passes",
            ),
        )


class NetworkError(RecoverableError):
    """Network connectivity error."""

    def __init__(
        self,
        message: str = "Network error",
        provider: Optional[str] = None,
    ):
        super().__init__(
            message,
            category=ErrorCategory.NETWORK,
            context=ErrorContext(
                category=ErrorCategory.NETWORK,
                recoverable=True,
                provider=provider,
                suggested_action="Retry on the next tick",
            ),
        )


class RpcError(RecoverableError):
    """JSON-RPC endpoint returned an error object."""

    def __init__(
        self,
        message: str = "RPC error",
        chain_id: Optional[int] = None,
        method: Optional[str] = None,
        error: Optional[Any] = None,
    ):
        super().__init__(
            message,
            category=ErrorCategory.CONTRACT,
            context=ErrorContext(
                category=ErrorCategory.CONTRACT,
                recoverable=True,
                chain_id=chain_id,
                details={"method": method, "error": error},
            ),
        )
        self.error = error


# Unrecoverable
class AttestationTimeoutError(UnrecoverableError, TimeoutError):
    """Attestation never reached `complete` within the attempt budget."""

    def __init__(
        self,
        message: str = "Attestation timeout",
        source_domain: Optional[int] = None,
        tx_hash: Optional[str] = None,
        attempts: Optional[int] = None,
    ):
        super().__init__(
            message,
            category=ErrorCategory.TIMEOUT,
            context=ErrorContext(
                category=ErrorCategory.TIMEOUT,
                recoverable=False,
                tx_hash=tx_hash,
                suggested_action="Complete the mint manually once the attestation is available",
                details={"source_domain": source_domain, "attempts": attempts},
            ),
        )
        self.attempts = attempts


class AttestationIncompleteError(UnrecoverableError):
    """A mint was requested with an attestation that is not complete."""

    def __init__(self, message: str = "Attestation is not complete", tx_hash: Optional[str] = None):
        super().__init__(
            message,
            category=ErrorCategory.VALIDATION,
            context=ErrorContext(
                category=ErrorCategory.VALIDATION,
                recoverable=False,
                tx_hash=tx_hash,
            ),
        )


class TransactionRevertedError(UnrecoverableError):
    """Transaction reverted on-chain."""

    def __init__(
        self,
        message: str = "Transaction reverted",
        tx_hash: Optional[str] = None,
        reason: Optional[str] = None,
        chain_id: Optional[int] = None,
    ):
        super().__init__(
            message,
            category=ErrorCategory.TRANSACTION_REVERTED,
            context=ErrorContext(
                category=ErrorCategory.TRANSACTION_REVERTED,
                recoverable=False,
                tx_hash=tx_hash,
                chain_id=chain_id,
                suggested_action="Review transaction parameters",
                details={"revert_reason": reason} if reason else {},
            ),
        )
        self.tx_hash = tx_hash


class TransactionTimeoutError(UnrecoverableError):
    """Receipt did not arrive within the confirmation timeout."""

    def __init__(
        self,
        message: str = "Transaction confirmation timed out",
        tx_hash: Optional[str] = None,
        chain_id: Optional[int] = None,
    ):
        super().__init__(
            message,
            category=ErrorCategory.TIMEOUT,
            context=ErrorContext(
                category=ErrorCategory.TIMEOUT,
                recoverable=False,
                tx_hash=tx_hash,
                chain_id=chain_id,
                suggested_action="Check the transaction on an explorer before resubmitting",
            ),
        )
        self.tx_hash = tx_hash


class ConfigurationError(UnrecoverableError):
    """Required setting (signing key, contract address) is missing."""

    def __init__(self, message: str = "Missing configuration", setting: Optional[str] = None):
        super().__init__(
            message,
            category=ErrorCategory.CONFIGURATION,
            context=ErrorContext(
                category=ErrorCategory.CONFIGURATION,
                recoverable=False,
                suggested_action=f"Set {setting.upper()}" if setting else None,
                details={"setting": setting} if setting else {},
            ),
        )


class OracleValidationError(UnrecoverableError):
    """Decision oracle answered with something that is not a verdict."""

    def __init__(self, message: str = "Invalid oracle verdict", raw: Optional[str] = None):
        super().__init__(
            message,
            category=ErrorCategory.VALIDATION,
            context=ErrorContext(
                category=ErrorCategory.VALIDATION,
                recoverable=False,
                details={"raw": raw} if raw else {},
            ),
        )


def classify_error(error: BaseException) -> ErrorContext:
    """
    Classify an exception and return its error context.

    Typed errors carry their own context; transport exceptions and generic
    errors are classified by type and message.
    """
    if isinstance(error, (RecoverableError, UnrecoverableError)):
        return error.context

    if isinstance(error, httpx.HTTPStatusError):
        if error.response.status_code == 429:
            return ErrorContext(category=ErrorCategory.RATE_LIMIT, recoverable=True)
        return ErrorContext(category=ErrorCategory.NETWORK, recoverable=True)

    if isinstance(error, httpx.TimeoutException):
        return ErrorContext(category=ErrorCategory.TIMEOUT, recoverable=True)

    if isinstance(error, httpx.RequestError):
        return ErrorContext(category=ErrorCategory.NETWORK, recoverable=True)

    message = str(error).lower()

    rate_limit_patterns = ["rate limit", "too many requests", "429", "throttl"]
    if any(p in message for p in rate_limit_patterns):
        return ErrorContext(category=ErrorCategory.RATE_LIMIT, recoverable=True)

    revert_patterns = ["revert", "execution reverted", "out of gas"]
    if any(p in message for p in revert_patterns):
        return ErrorContext(category=ErrorCategory.TRANSACTION_REVERTED, recoverable=False)

    timeout_patterns = ["timeout", "timed out", "deadline"]
    if any(p in message for p in timeout_patterns):
        return ErrorContext(category=ErrorCategory.TIMEOUT, recoverable=True)

    network_patterns = ["connection", "network", "unreachable", "refused", "dns", "socket"]
    if any(p in message for p in network_patterns):
        return ErrorContext(category=ErrorCategory.NETWORK, recoverable=True)

    return ErrorContext(category=ErrorCategory.UNKNOWN, recoverable=True)

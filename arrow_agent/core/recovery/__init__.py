"""
Error taxonomy shared by the chain, bridge, swap and runtime layers.

Usage:
    from arrow_agent.core.recovery import classify_error

    try:
        await orchestrator.run(...)
    except Exception as exc:
        ctx = classify_error(exc)
        logger.warning("run failed (%s)", ctx.category.value)
"""

from .errors import (
    AttestationIncompleteError,
    AttestationTimeoutError,
    ConfigurationError,
    ErrorCategory,
    ErrorContext,
    NetworkError,
    OracleValidationError,
    RateLimitError,
    RecoverableError,
    RpcError,
    TransactionRevertedError,
    TransactionTimeoutError,
    UnrecoverableError,
    classify_error,
)

__all__ = [
    "AttestationIncompleteError",
    "AttestationTimeoutError",
    "ConfigurationError",
    "ErrorCategory",
    "ErrorContext",
    "NetworkError",
    "OracleValidationError",
    "RateLimitError",
    "RecoverableError",
    "RpcError",
    "TransactionRevertedError",
    "TransactionTimeoutError",
    "UnrecoverableError",
    "classify_error",
]

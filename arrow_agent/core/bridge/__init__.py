"""Burn/attest/mint bridge components."""

from .attestation import AttestationPoller
from .chain_registry import ChainRegistry
from .constants import ZERO_BYTES32, ZERO_TX_HASH
from .leg import BridgeLegExecutor
from .models import (
    AttestationRecord,
    AttestationStatus,
    BridgeLeg,
    BurnResult,
    ChainDomain,
)

__all__ = [
    "AttestationPoller",
    "AttestationRecord",
    "AttestationStatus",
    "BridgeLeg",
    "BridgeLegExecutor",
    "BurnResult",
    "ChainDomain",
    "ChainRegistry",
    "ZERO_BYTES32",
    "ZERO_TX_HASH",
]

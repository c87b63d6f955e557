"""Typed models used by the bridge subsystem."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


@dataclass(frozen=True)
class ChainDomain:
    """A chain as the bridge sees it. Loaded from settings once at startup."""

    name: str
    chain_id: int
    domain: int
    rpc_url: str
    usdc_address: str
    usdc_decimals: int
    token_messenger: str
    message_transmitter: str

    def to_units(self, amount: Decimal) -> int:
        """Human stable-asset amount to smallest units."""
        return int(amount.scaleb(self.usdc_decimals))

    def is_usdc(self, token: str) -> bool:
        return token.lower() == self.usdc_address.lower()


@dataclass(frozen=True)
class BridgeLeg:
    """One directed transfer of the stable asset between two domains."""

    source: ChainDomain
    destination: ChainDomain
    amount: int
    mint_recipient: str

    def describe(self) -> str:
        return f"{self.source.name} -> {self.destination.name} ({self.amount} units to {self.mint_recipient})"


class AttestationStatus(str, Enum):
    PENDING = "pending"
    COMPLETE = "complete"


@dataclass(frozen=True)
class AttestationRecord:
    """Signed message fetched from the attestation service. Consumed by one mint."""

    source_domain: int
    source_tx_hash: str
    message: str
    attestation: str
    status: AttestationStatus = AttestationStatus.PENDING

    @property
    def is_complete(self) -> bool:
        return self.status == AttestationStatus.COMPLETE


@dataclass(frozen=True)
class BurnResult:
    """Transactions submitted on the source chain for one leg."""

    approve_tx_hash: str
    burn_tx_hash: str

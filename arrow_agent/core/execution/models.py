"""
Transaction execution models and types.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from eth_utils import to_checksum_address


class TransactionType(str, Enum):
    """Kinds of transactions the agent signs."""
    APPROVE = "approve"
    BURN = "burn"
    MINT = "mint"
    SWAP = "swap"
    MARK_EXECUTED = "mark_executed"


class TransactionStatus(str, Enum):
    """Transaction lifecycle status."""
    PENDING = "pending"          # Built, not yet submitted
    SUBMITTED = "submitted"      # Broadcast to network
    CONFIRMED = "confirmed"      # Mined with status 1
    FAILED = "failed"            # Submission failed
    REVERTED = "reverted"        # Mined with status 0
    TIMEOUT = "timeout"          # Receipt never arrived


@dataclass
class GasEstimate:
    """Gas estimation for a transaction."""
    gas_limit: int
    gas_price_wei: int
    max_fee_per_gas: Optional[int] = None      # EIP-1559
    max_priority_fee_per_gas: Optional[int] = None  # EIP-1559
    estimated_cost_wei: int = 0

    def __post_init__(self):
        if self.estimated_cost_wei == 0:
            self.estimated_cost_wei = self.gas_limit * self.gas_price_wei

    @property
    def is_eip1559(self) -> bool:
        return self.max_fee_per_gas is not None


@dataclass
class PreparedTransaction:
    """A transaction ready to be priced, signed and broadcast."""
    tx_type: TransactionType
    chain_id: int
    from_address: str
    to_address: str
    data: str                                   # Encoded calldata (hex)
    value: int = 0
    gas_estimate: Optional[GasEstimate] = None
    nonce: Optional[int] = None
    description: str = ""
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_call_object(self) -> Dict[str, Any]:
        """JSON-RPC call object for eth_estimateGas / eth_call."""
        call = {
            "from": self.from_address,
            "to": self.to_address,
            "data": self.data,
        }
        if self.value:
            call["value"] = hex(self.value)
        return call

    def to_signable(self) -> Dict[str, Any]:
        """Transaction dict in the shape eth_account signs."""
        if self.nonce is None or self.gas_estimate is None:
            raise ValueError("Transaction needs a nonce and a gas estimate before signing")

        tx: Dict[str, Any] = {
            "chainId": self.chain_id,
            "nonce": self.nonce,
            "to": to_checksum_address(self.to_address),
            "value": self.value,
            "data": self.data,
            "gas": self.gas_estimate.gas_limit,
        }
        if self.gas_estimate.is_eip1559:
            tx["type"] = 2
            tx["maxFeePerGas"] = self.gas_estimate.max_fee_per_gas
            tx["maxPriorityFeePerGas"] = self.gas_estimate.max_priority_fee_per_gas or 0
        else:
            tx["gasPrice"] = self.gas_estimate.gas_price_wei
        return tx


@dataclass
class TransactionResult:
    """Result of a transaction execution."""
    tx_hash: str
    chain_id: int
    status: TransactionStatus = TransactionStatus.SUBMITTED

    # Confirmation details
    block_number: Optional[int] = None
    block_hash: Optional[str] = None
    gas_used: Optional[int] = None
    effective_gas_price: Optional[int] = None

    submitted_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    error: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.status == TransactionStatus.CONFIRMED

"""
Transaction Execution Layer

Provides the infrastructure for reading from and writing to EVM chains:
- ChainClient: JSON-RPC reads, gas pricing, signing, submission, receipts
- NonceManager: Serialises nonce allocation per signer and chain
- TransactionBuilder: ABI-encodes bridge, swap, approval and hook calls

Usage:
    from arrow_agent.core.execution import ChainClient, TransactionBuilder

    client = ChainClient.from_private_key(key, rpc_url=url, chain_id=84532)

    tx = TransactionBuilder.build_erc20_approve(
        chain_id=client.chain_id,
        owner_address=client.address,
        token_address="0x...",
        spender_address="0x...",
        amount=1_000_000,
    )
    result = await client.transact(tx)
"""

from .models import (
    TransactionType,
    TransactionStatus,
    GasEstimate,
    PreparedTransaction,
    TransactionResult,
)

from .nonce_manager import (
    NonceManager,
    NonceState,
    get_nonce_manager,
)

from .tx_builder import (
    MAX_UINT256,
    TransactionBuilder,
    address_to_bytes32,
    encode_call,
    format_units,
)

from .client import ChainClient

__all__ = [
    # Models
    "TransactionType",
    "TransactionStatus",
    "GasEstimate",
    "PreparedTransaction",
    "TransactionResult",
    # Nonce Manager
    "NonceManager",
    "NonceState",
    "get_nonce_manager",
    # Transaction Builder
    "MAX_UINT256",
    "TransactionBuilder",
    "address_to_bytes32",
    "encode_call",
    "format_units",
    # Client
    "ChainClient",
]

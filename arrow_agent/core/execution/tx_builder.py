"""
Transaction builder for the contracts the agent drives.

Calldata is ABI-encoded with eth_abi; selectors come from the canonical
signatures in `abi.py`.
"""

from decimal import Decimal
from typing import Any, List, Sequence, Tuple

from eth_abi import decode, encode
from eth_utils import encode_hex, to_bytes, to_checksum_address

from . import abi
from .models import PreparedTransaction, TransactionType


# Maximum uint256 for unlimited approval
MAX_UINT256 = 2**256 - 1

PoolKeyTuple = Tuple[str, str, int, int, str]


def address_to_bytes32(address: str) -> bytes:
    """Left-pad a 20-byte address to the 32-byte form used for bridge recipients."""
    raw = to_bytes(hexstr=address)
    if len(raw) != 20:
        raise ValueError(f"Not an address: {address}")
    return raw.rjust(32, b"\x00")


def encode_call(signature: str, *args: Any) -> str:
    """Selector plus ABI-encoded arguments, as a 0x-prefixed hex string."""
    types = abi.argument_types(signature)
    if len(types) != len(args):
        raise ValueError(f"{signature} takes {len(types)} arguments, got {len(args)}")
    return encode_hex(abi.selector(signature) + encode(types, list(args)))


def _checksum_key(pool_key: Sequence[Any]) -> PoolKeyTuple:
    currency0, currency1, fee, tick_spacing, hooks = pool_key
    return (
        to_checksum_address(currency0),
        to_checksum_address(currency1),
        int(fee),
        int(tick_spacing),
        to_checksum_address(hooks),
    )


class TransactionBuilder:
    """
    Builds transactions for the bridge, the swap venue and the hook.

    Handles:
    - ERC20 approvals
    - Bridge burns (depositForBurn) and mints (receiveMessage)
    - Exact-input pool swaps
    - Marking hook limit orders executed
    """

    @staticmethod
    def build_erc20_approve(
        chain_id: int,
        owner_address: str,
        token_address: str,
        spender_address: str,
        amount: int = MAX_UINT256,
        description: str = "",
    ) -> PreparedTransaction:
        """
        Build an ERC20 approval transaction.

        Args:
            chain_id: The chain ID
            owner_address: The token owner (sender)
            token_address: The ERC20 token contract
            spender_address: The address being approved to spend
            amount: The amount to approve (default: unlimited)
            description: Human-readable description

        Returns:
            PreparedTransaction ready to be signed
        """
        calldata = encode_call(abi.ERC20_APPROVE, to_checksum_address(spender_address), amount)

        return PreparedTransaction(
            tx_type=TransactionType.APPROVE,
            chain_id=chain_id,
            from_address=owner_address,
            to_address=token_address,
            data=calldata,
            description=description or f"Approve {spender_address[:10]}... to spend tokens",
        )

    @staticmethod
    def build_deposit_for_burn(
        chain_id: int,
        owner_address: str,
        token_messenger: str,
        amount: int,
        destination_domain: int,
        mint_recipient: str,
        burn_token: str,
        destination_caller: bytes,
        max_fee: int,
        min_finality_threshold: int,
    ) -> PreparedTransaction:
        """Burn `amount` of `burn_token`, minting to `mint_recipient` on `destination_domain`."""
        calldata = encode_call(
            abi.DEPOSIT_FOR_BURN,
            amount,
            destination_domain,
            address_to_bytes32(mint_recipient),
            to_checksum_address(burn_token),
            destination_caller,
            max_fee,
            min_finality_threshold,
        )

        return PreparedTransaction(
            tx_type=TransactionType.BURN,
            chain_id=chain_id,
            from_address=owner_address,
            to_address=token_messenger,
            data=calldata,
            description=f"Burn {amount} for domain {destination_domain}",
        )

    @staticmethod
    def build_receive_message(
        chain_id: int,
        owner_address: str,
        message_transmitter: str,
        message: str,
        attestation: str,
    ) -> PreparedTransaction:
        """Submit an attested message to the destination transmitter."""
        calldata = encode_call(
            abi.RECEIVE_MESSAGE,
            to_bytes(hexstr=message),
            to_bytes(hexstr=attestation),
        )

        return PreparedTransaction(
            tx_type=TransactionType.MINT,
            chain_id=chain_id,
            from_address=owner_address,
            to_address=message_transmitter,
            data=calldata,
            description="Receive attested bridge message",
        )

    @staticmethod
    def build_pool_swap(
        chain_id: int,
        owner_address: str,
        router_address: str,
        pool_key: Sequence[Any],
        zero_for_one: bool,
        amount_specified: int,
        sqrt_price_limit_x96: int,
        take_claims: bool = False,
        settle_using_burn: bool = False,
        hook_data: bytes = b"",
    ) -> PreparedTransaction:
        """
        Build a pool swap through the test router.

        A negative `amount_specified` means exact input.
        """
        calldata = encode_call(
            abi.POOL_SWAP,
            _checksum_key(pool_key),
            (zero_for_one, amount_specified, sqrt_price_limit_x96),
            (take_claims, settle_using_burn),
            hook_data,
        )

        return PreparedTransaction(
            tx_type=TransactionType.SWAP,
            chain_id=chain_id,
            from_address=owner_address,
            to_address=router_address,
            data=calldata,
            description=f"Swap {'0->1' if zero_for_one else '1->0'} amount {amount_specified}",
        )

    @staticmethod
    def build_mark_limit_order_executed(
        chain_id: int,
        owner_address: str,
        hook_address: str,
        order_id: int,
    ) -> PreparedTransaction:
        calldata = encode_call(abi.HOOK_MARK_LIMIT_ORDER_EXECUTED, order_id)

        return PreparedTransaction(
            tx_type=TransactionType.MARK_EXECUTED,
            chain_id=chain_id,
            from_address=owner_address,
            to_address=hook_address,
            data=calldata,
            description=f"Mark limit order {order_id} executed",
        )


# Return-data decoders for eth_call results

def decode_uint256(data: bytes) -> int:
    return decode(["uint256"], data)[0]


def decode_address_array(data: bytes) -> List[str]:
    return [to_checksum_address(a) for a in decode(["address[]"], data)[0]]


def decode_array_length(data: bytes) -> int:
    """Length of a single dynamic-array return value, without decoding its elements."""
    offset = decode(["uint256"], data[:32])[0]
    return decode(["uint256"], data[offset:offset + 32])[0]


def decode_limit_order(data: bytes) -> Tuple[Any, ...]:
    return decode(abi.LIMIT_ORDER_OUTPUT_TYPES, data)


def decode_leader_swap_data(data: bytes) -> Tuple[Any, ...]:
    return decode(abi.LEADER_SWAP_DATA_TYPES, data)


def format_units(value: int, decimals: int) -> str:
    """Integer token units to a plain decimal string ("1.5", "10")."""
    return format(Decimal(value).scaleb(-decimals).normalize(), "f")

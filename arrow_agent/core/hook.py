"""
Copy-trade hook contract on the execution chain.

Reads followers, leader trade history and limit orders; decodes
LeaderSwap logs; marks limit orders executed with the operator key.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from eth_abi.exceptions import DecodingError
from eth_utils import to_bytes, to_checksum_address

from .execution import ChainClient, TransactionBuilder, TransactionResult, encode_call
from .execution import abi
from .execution.tx_builder import (
    decode_address_array,
    decode_array_length,
    decode_leader_swap_data,
    decode_limit_order,
    decode_uint256,
    format_units,
)
from .swap import PoolKey

logger = logging.getLogger(__name__)

# Leader swap and on-chain limit order amounts are 18-decimal token units
HOOK_AMOUNT_DECIMALS = 18


@dataclass(frozen=True)
class LeaderSwapEvent:
    leader: str
    pool_id: str
    zero_for_one: bool
    amount_specified: int
    delta0: int
    delta1: int
    timestamp: int
    block_number: int
    tx_hash: str

    @property
    def amount(self) -> str:
        return format_units(abs(self.amount_specified), HOOK_AMOUNT_DECIMALS)


@dataclass(frozen=True)
class LimitOrderRecord:
    """On-chain limit order. `executed` is authoritative over any local state."""

    index: int
    owner: str
    pool_key: PoolKey
    zero_for_one: bool
    amount_specified: int
    trigger_price: int
    executed: bool
    created_at: int

    @property
    def amount(self) -> str:
        return format_units(abs(self.amount_specified), HOOK_AMOUNT_DECIMALS)


def _topic_to_address(topic: str) -> str:
    return to_checksum_address("0x" + topic[-40:])


def parse_leader_swap_log(log: Dict[str, Any]) -> LeaderSwapEvent:
    topics = log["topics"]
    zero_for_one, amount_specified, delta0, delta1, timestamp = decode_leader_swap_data(
        to_bytes(hexstr=log["data"])
    )
    return LeaderSwapEvent(
        leader=_topic_to_address(topics[1]),
        pool_id=topics[2],
        zero_for_one=zero_for_one,
        amount_specified=amount_specified,
        delta0=delta0,
        delta1=delta1,
        timestamp=timestamp,
        block_number=int(log.get("blockNumber") or "0x0", 16),
        tx_hash=log.get("transactionHash") or "",
    )


class CopyTradeHook:
    """Typed access to the hook contract."""

    def __init__(self, client: ChainClient, address: str):
        self.client = client
        self.address = address

    async def get_followers(self, leader: str) -> List[str]:
        data = encode_call(abi.HOOK_GET_FOLLOWERS, to_checksum_address(leader))
        return decode_address_array(await self.client.call(self.address, data))

    async def get_leader_trade_count(self, leader: str) -> int:
        data = encode_call(abi.HOOK_GET_LEADER_TRADES, to_checksum_address(leader))
        return decode_array_length(await self.client.call(self.address, data))

    async def get_limit_order_count(self) -> int:
        data = encode_call(abi.HOOK_GET_LIMIT_ORDER_COUNT)
        return decode_uint256(await self.client.call(self.address, data))

    async def get_limit_order(self, index: int) -> LimitOrderRecord:
        data = encode_call(abi.HOOK_LIMIT_ORDERS, index)
        owner, key, zero_for_one, amount_specified, trigger_price, executed, created_at = decode_limit_order(
            await self.client.call(self.address, data)
        )
        return LimitOrderRecord(
            index=index,
            owner=to_checksum_address(owner),
            pool_key=PoolKey.from_tuple(key),
            zero_for_one=zero_for_one,
            amount_specified=amount_specified,
            trigger_price=trigger_price,
            executed=executed,
            created_at=created_at,
        )

    async def get_leader_swaps(self, from_block: int, to_block: int) -> List[LeaderSwapEvent]:
        logs = await self.client.get_logs(
            address=self.address,
            topics=[abi.LEADER_SWAP_TOPIC],
            from_block=from_block,
            to_block=to_block,
        )
        events: List[LeaderSwapEvent] = []
        for log in logs:
            try:
                events.append(parse_leader_swap_log(log))
            except (KeyError, IndexError, ValueError, DecodingError) as e:
                logger.warning(f"Skipping undecodable LeaderSwap log {log.get('transactionHash')}: {e}")
        return events

    async def mark_limit_order_executed(self, index: int) -> TransactionResult:
        return await self.client.transact(
            TransactionBuilder.build_mark_limit_order_executed(
                chain_id=self.client.chain_id,
                owner_address=self.client.address,
                hook_address=self.address,
                order_id=index,
            )
        )


def build_hook(client: ChainClient, address: Optional[str]) -> Optional[CopyTradeHook]:
    return CopyTradeHook(client, address) if address else None

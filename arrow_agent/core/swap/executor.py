"""Exact-input swaps through the pool swap router."""

from __future__ import annotations

import logging

from ..execution import ChainClient, TransactionBuilder
from .constants import MAX_SQRT_PRICE, MIN_SQRT_PRICE
from .models import PoolKey

logger = logging.getLogger(__name__)


def price_limit(zero_for_one: bool) -> int:
    """Protocol bound for the swap: the floor when selling asset0, the ceiling otherwise."""
    return MIN_SQRT_PRICE if zero_for_one else MAX_SQRT_PRICE


class SwapExecutor:
    """Approves the input asset for the router, then swaps it."""

    def __init__(self, client: ChainClient, router_address: str):
        self.client = client
        self.router_address = router_address

    async def swap(self, pool_key: PoolKey, zero_for_one: bool, amount_in: int) -> str:
        """
        Swap exactly `amount_in` of the input asset.

        Returns:
            The swap transaction hash, once mined
        """
        if amount_in <= 0:
            raise ValueError(f"Swap amount must be positive, got {amount_in}")

        input_token = pool_key.input_token(zero_for_one)

        logger.info(f"Approving {amount_in} of {input_token} for the swap router")
        await self.client.transact(
            TransactionBuilder.build_erc20_approve(
                chain_id=self.client.chain_id,
                owner_address=self.client.address,
                token_address=input_token,
                spender_address=self.router_address,
                amount=amount_in,
            )
        )

        logger.info(f"Swapping on {self.client.name} (zeroForOne={zero_for_one})")
        result = await self.client.transact(
            TransactionBuilder.build_pool_swap(
                chain_id=self.client.chain_id,
                owner_address=self.client.address,
                router_address=self.router_address,
                pool_key=pool_key.as_tuple(),
                zero_for_one=zero_for_one,
                # negative = exact input
                amount_specified=-amount_in,
                sqrt_price_limit_x96=price_limit(zero_for_one),
            )
        )
        logger.info(f"Swap executed: {result.tx_hash}")
        return result.tx_hash

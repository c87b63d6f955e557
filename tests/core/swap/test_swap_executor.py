"""
Tests for exact-input swaps and pool keys.
"""

import pytest
from eth_abi import decode
from eth_utils import to_bytes
from unittest.mock import AsyncMock, MagicMock

from arrow_agent.core.execution import TransactionResult, TransactionType, abi
from arrow_agent.core.swap import (
    MAX_SQRT_PRICE,
    MIN_SQRT_PRICE,
    PoolKey,
    SwapExecutor,
    ZERO_ADDRESS,
    price_limit,
    zero_for_one_from_side,
)


USDC = "0x036cbd53842c5426634e7929541ec2318f3dcf7e"
WETH = "0x4200000000000000000000000000000000000006"
ROUTER = "0x8b5bcc363dde2614281ad875bad385e0a785d3b9"

POOL = PoolKey(currency0=USDC, currency1=WETH, fee=3000, tick_spacing=60, hooks=ZERO_ADDRESS)


@pytest.fixture
def client():
    client = MagicMock()
    client.address = "0x1111111111111111111111111111111111111111"
    client.chain_id = 84532
    client.name = "Base Sepolia"
    client.transact = AsyncMock(
        side_effect=[
            TransactionResult(tx_hash="0xapprove", chain_id=84532),
            TransactionResult(tx_hash="0xswap", chain_id=84532),
        ]
    )
    return client


def swap_args(tx):
    raw = to_bytes(hexstr=tx.data)
    return decode(abi.argument_types(abi.POOL_SWAP), raw[4:])


class TestPriceLimit:
    def test_selling_asset0_uses_floor(self):
        assert price_limit(True) == MIN_SQRT_PRICE == 4295128739 + 1

    def test_selling_asset1_uses_ceiling(self):
        assert price_limit(False) == MAX_SQRT_PRICE
        assert MAX_SQRT_PRICE == 1461446703485210103287273052203988822378723970342 - 1


class TestPoolKey:
    def test_input_and_output_tokens(self):
        assert POOL.input_token(True) == USDC
        assert POOL.output_token(True) == WETH
        assert POOL.input_token(False) == WETH
        assert POOL.output_token(False) == USDC

    def test_structural_equality(self):
        assert PoolKey.from_tuple(POOL.as_tuple()) == POOL

    @pytest.mark.parametrize("side,expected", [("sell", True), ("buy", False), (" SELL ", True)])
    def test_side_mapping(self, side, expected):
        assert zero_for_one_from_side(side) is expected

    def test_unknown_side_rejected(self):
        with pytest.raises(ValueError):
            zero_for_one_from_side("hold")


class TestSwapExecutor:
    @pytest.mark.asyncio
    async def test_approves_input_then_swaps_exact_input(self, client):
        executor = SwapExecutor(client, ROUTER)

        tx_hash = await executor.swap(POOL, zero_for_one=False, amount_in=10_000_000)

        assert tx_hash == "0xswap"
        approve, swap = [c.args[0] for c in client.transact.await_args_list]
        assert approve.tx_type == TransactionType.APPROVE
        assert approve.to_address == WETH
        assert swap.tx_type == TransactionType.SWAP
        assert swap.to_address == ROUTER

        _, params, settings, _ = swap_args(swap)
        zero_for_one, amount_specified, limit = params
        assert zero_for_one is False
        assert amount_specified == -10_000_000
        assert limit == MAX_SQRT_PRICE
        assert settings == (False, False)

    @pytest.mark.asyncio
    async def test_sell_asset0_uses_min_limit(self, client):
        executor = SwapExecutor(client, ROUTER)

        await executor.swap(POOL, zero_for_one=True, amount_in=1)

        swap = client.transact.await_args_list[1].args[0]
        _, (zero_for_one, amount_specified, limit), _, _ = swap_args(swap)
        assert zero_for_one is True
        assert amount_specified == -1
        assert limit == MIN_SQRT_PRICE

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, -5])
    async def test_rejects_non_positive_amounts(self, client, amount):
        executor = SwapExecutor(client, ROUTER)

        with pytest.raises(ValueError):
            await executor.swap(POOL, zero_for_one=True, amount_in=amount)
        client.transact.assert_not_awaited()

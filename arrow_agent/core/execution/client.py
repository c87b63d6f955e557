"""
JSON-RPC chain client.

One client per chain: reads (blocks, logs, balances, eth_call) and writes
(gas estimation, nonce reservation, local signing, submission and receipt
monitoring) over a plain httpx connection.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx
from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import encode_hex, to_bytes, to_checksum_address

from ..recovery import (
    ConfigurationError,
    NetworkError,
    RateLimitError,
    RpcError,
    TransactionRevertedError,
    TransactionTimeoutError,
)
from . import abi
from .models import (
    GasEstimate,
    PreparedTransaction,
    TransactionResult,
    TransactionStatus,
    TransactionType,
)
from .nonce_manager import NonceManager, get_nonce_manager
from .tx_builder import decode_uint256, encode_call


logger = logging.getLogger(__name__)

DEFAULT_PRIORITY_FEE_WEI = 1_000_000_000


class ChainClient:
    """
    Read/write handle for one EVM chain.

    Responsibilities:
    - JSON-RPC reads
    - Estimate gas and price fees
    - Reserve fresh nonces via NonceManager
    - Sign locally and submit raw transactions
    - Wait for receipts
    """

    def __init__(
        self,
        rpc_url: str,
        chain_id: int,
        name: str = "",
        account: Optional[LocalAccount] = None,
        nonce_manager: Optional[NonceManager] = None,
        timeout_seconds: float = 30.0,
        receipt_timeout_seconds: float = 300.0,
        receipt_poll_interval_seconds: float = 2.0,
        gas_multiplier: float = 1.2,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.rpc_url = rpc_url
        self.chain_id = chain_id
        self.name = name or str(chain_id)
        self.account = account
        self.nonce_manager = nonce_manager or get_nonce_manager()
        self.receipt_timeout_seconds = receipt_timeout_seconds
        self.receipt_poll_interval_seconds = receipt_poll_interval_seconds
        self.gas_multiplier = gas_multiplier
        self._client = httpx.AsyncClient(timeout=timeout_seconds, transport=transport)
        self._request_id = 0

    @classmethod
    def from_private_key(cls, private_key: Optional[str], **kwargs: Any) -> "ChainClient":
        account = Account.from_key(private_key) if private_key else None
        return cls(account=account, **kwargs)

    @property
    def can_sign(self) -> bool:
        return self.account is not None

    @property
    def address(self) -> str:
        """Operator address. Raises when the client is read-only."""
        if self.account is None:
            raise ConfigurationError(
                f"No signing key configured for {self.name}",
                setting="agent_private_key",
            )
        return self.account.address

    async def _rpc_call(self, method: str, params: List[Any]) -> Any:
        """Make an RPC call to the chain."""
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": self._request_id,
        }

        try:
            response = await self._client.post(self.rpc_url, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 429:
                raise RateLimitError(f"{self.name} RPC rate limited", provider=self.rpc_url) from e
            raise NetworkError(f"{self.name} RPC returned {e.response.status_code}", provider=self.rpc_url) from e
        except httpx.RequestError as e:
            raise NetworkError(f"{self.name} RPC unreachable: {e}", provider=self.rpc_url) from e

        try:
            result = response.json()
        except ValueError as e:
            # Proxies in front of the node answer 200 with an HTML error page
            raise NetworkError(
                f"{self.name} RPC returned a non-JSON body: {response.text[:80]!r}", provider=self.rpc_url
            ) from e
        if not isinstance(result, dict):
            raise NetworkError(f"{self.name} RPC returned a non-object body", provider=self.rpc_url)
        if "error" in result:
            raise RpcError(
                f"{method} failed on {self.name}: {result['error']}",
                chain_id=self.chain_id,
                method=method,
                error=result["error"],
            )
        return result.get("result")

    # Reads

    async def block_number(self) -> int:
        return int(await self._rpc_call("eth_blockNumber", []), 16)

    async def get_chain_id(self) -> int:
        return int(await self._rpc_call("eth_chainId", []), 16)

    async def get_transaction_count(self, address: str, block: str = "pending") -> int:
        return int(await self._rpc_call("eth_getTransactionCount", [address, block]), 16)

    async def native_balance(self, owner: str) -> int:
        return int(await self._rpc_call("eth_getBalance", [owner, "latest"]), 16)

    async def call(self, to: str, data: str, block: str = "latest") -> bytes:
        """eth_call; returns raw return data."""
        result = await self._rpc_call("eth_call", [{"to": to, "data": data}, block])
        return to_bytes(hexstr=result or "0x")

    async def erc20_balance(self, token: str, owner: str) -> int:
        data = encode_call(abi.ERC20_BALANCE_OF, to_checksum_address(owner))
        return decode_uint256(await self.call(token, data))

    async def get_logs(
        self,
        address: str,
        topics: List[Optional[str]],
        from_block: int,
        to_block: int,
    ) -> List[Dict[str, Any]]:
        return await self._rpc_call(
            "eth_getLogs",
            [{
                "address": address,
                "topics": topics,
                "fromBlock": hex(from_block),
                "toBlock": hex(to_block),
            }],
        ) or []

    async def get_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        return await self._rpc_call("eth_getTransactionReceipt", [tx_hash])

    # Writes

    async def estimate_gas(self, tx: PreparedTransaction) -> GasEstimate:
        """
        Estimate gas for a transaction.

        EIP-1559 fees come from eth_feeHistory; chains without it fall back
        to a legacy eth_gasPrice quote.
        """
        gas_limit = int(await self._rpc_call("eth_estimateGas", [tx.to_call_object()]), 16)
        gas_limit = int(gas_limit * self.gas_multiplier)

        try:
            fee_history = await self._rpc_call("eth_feeHistory", [1, "latest", [50]])
            base_fee = int(fee_history["baseFeePerGas"][-1], 16)
            reward = fee_history.get("reward")
            priority_fee = int(reward[0][0], 16) if reward else DEFAULT_PRIORITY_FEE_WEI
        except (RpcError, KeyError, IndexError, TypeError) as e:
            logger.debug(f"{self.name}: fee history unavailable ({e}), using eth_gasPrice")
            gas_price = int(await self._rpc_call("eth_gasPrice", []), 16)
            return GasEstimate(gas_limit=gas_limit, gas_price_wei=gas_price)

        max_fee = base_fee * 2 + priority_fee
        return GasEstimate(
            gas_limit=gas_limit,
            gas_price_wei=max_fee,
            max_fee_per_gas=max_fee,
            max_priority_fee_per_gas=priority_fee,
        )

    async def send(self, tx: PreparedTransaction) -> str:
        """Price, sign and broadcast a prepared transaction. Returns its hash."""
        address = self.address
        if tx.gas_estimate is None:
            tx.gas_estimate = await self.estimate_gas(tx)

        # Broadcast inside the reservation so the next one sees this tx as pending
        async with self.nonce_manager.reserve(address, self.chain_id, self.get_transaction_count) as nonce:
            tx.nonce = nonce
            signed = self.account.sign_transaction(tx.to_signable())
            tx_hash = await self._rpc_call("eth_sendRawTransaction", [encode_hex(signed.raw_transaction)])

        logger.info(f"{self.name}: submitted {tx.tx_type.value} {tx_hash} (nonce {tx.nonce})")
        return tx_hash

    async def send_transaction(
        self,
        to: str,
        data: str,
        value: int = 0,
        tx_type: TransactionType = TransactionType.SWAP,
    ) -> str:
        tx = PreparedTransaction(
            tx_type=tx_type,
            chain_id=self.chain_id,
            from_address=self.address,
            to_address=to,
            data=data,
            value=value,
        )
        return await self.send(tx)

    async def wait_for_receipt(self, tx_hash: str) -> TransactionResult:
        """
        Poll until the transaction is mined.

        Raises:
            TransactionRevertedError: receipt status is 0
            TransactionTimeoutError: no receipt within the receipt timeout
        """
        result = TransactionResult(
            tx_hash=tx_hash,
            chain_id=self.chain_id,
            submitted_at=datetime.now(timezone.utc),
        )
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.receipt_timeout_seconds

        while True:
            try:
                receipt = await self.get_receipt(tx_hash)
            except (NetworkError, RateLimitError, RpcError) as e:
                logger.warning(f"{self.name}: error checking {tx_hash}: {e}")
                receipt = None

            if receipt:
                result.block_number = int(receipt["blockNumber"], 16)
                result.block_hash = receipt.get("blockHash")
                result.gas_used = int(receipt.get("gasUsed", "0x0"), 16)
                result.effective_gas_price = int(receipt.get("effectiveGasPrice", "0x0"), 16)

                # 0x1 = success, 0x0 = revert
                if int(receipt.get("status", "0x1"), 16) == 0:
                    result.status = TransactionStatus.REVERTED
                    raise TransactionRevertedError(
                        f"Transaction {tx_hash} reverted on {self.name}",
                        tx_hash=tx_hash,
                        chain_id=self.chain_id,
                    )

                result.status = TransactionStatus.CONFIRMED
                result.confirmed_at = datetime.now(timezone.utc)
                logger.info(f"{self.name}: confirmed {tx_hash} (block {result.block_number})")
                return result

            if loop.time() >= deadline:
                raise TransactionTimeoutError(
                    f"No receipt for {tx_hash} on {self.name} after {self.receipt_timeout_seconds}s",
                    tx_hash=tx_hash,
                    chain_id=self.chain_id,
                )

            await asyncio.sleep(self.receipt_poll_interval_seconds)

    async def transact(self, tx: PreparedTransaction) -> TransactionResult:
        """Send a prepared transaction and wait for it to be mined."""
        tx_hash = await self.send(tx)
        result = await self.wait_for_receipt(tx_hash)
        await self.nonce_manager.confirm_nonce(self.address, self.chain_id, tx.nonce)
        return result

    async def close(self) -> None:
        """Close HTTP client."""
        await self._client.aclose()

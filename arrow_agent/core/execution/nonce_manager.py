"""
Nonce management for the agent's signing account.

The node's pending transaction count is the only source of truth: every
reservation re-reads it, and nothing cached locally can push a nonce past
it. A transaction that timed out and was dropped from the mempool therefore
leaves no gap behind; its nonce is simply handed out again.

Signing and broadcasting happen while the per-(chain, address) lock is
held, so the next reservation always sees the previous transaction in the
node's pending count.
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import AsyncIterator, Awaitable, Callable, Dict, Optional


NonceFetcher = Callable[[str], Awaitable[int]]


@dataclass
class NonceState:
    """Last observed nonce state for an address on a chain."""
    address: str
    chain_id: int
    pending_nonce: int                          # Live pending count at the last reservation
    confirmed_nonce: int = 0                    # One past the highest mined nonce we sent
    last_submitted: Optional[int] = None
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class NonceManager:
    """
    Serialises nonce allocation per (chain, address).

    Usage:
        async with manager.reserve(address, chain_id, client.get_transaction_count) as nonce:
            tx_hash = await broadcast(sign(tx, nonce))
    """

    def __init__(self):
        self._states: Dict[str, NonceState] = {}  # key: "{chain_id}:{address}"
        self._locks: Dict[str, asyncio.Lock] = {}

    def _get_key(self, chain_id: int, address: str) -> str:
        return f"{chain_id}:{address.lower()}"

    def _get_lock(self, key: str) -> asyncio.Lock:
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
        return self._locks[key]

    async def _observe(self, key: str, address: str, chain_id: int, fetch_nonce: NonceFetcher) -> int:
        on_chain_nonce = await fetch_nonce(address)
        state = self._states.get(key)
        if state is None:
            self._states[key] = NonceState(address=address.lower(), chain_id=chain_id, pending_nonce=on_chain_nonce)
        else:
            state.pending_nonce = on_chain_nonce
            state.last_updated = datetime.now(timezone.utc)
        return on_chain_nonce

    @asynccontextmanager
    async def reserve(self, address: str, chain_id: int, fetch_nonce: NonceFetcher) -> AsyncIterator[int]:
        """
        Hold the signer's lock and yield the live pending nonce.

        The body should sign and broadcast. When it exits cleanly the nonce
        is recorded as submitted; when it raises, nothing is recorded and the
        next reservation reads the same nonce from the node again.
        """
        key = self._get_key(chain_id, address)
        async with self._get_lock(key):
            nonce = await self._observe(key, address, chain_id, fetch_nonce)
            yield nonce
            self._states[key].last_submitted = nonce

    async def get_next_nonce(self, address: str, chain_id: int, fetch_nonce: NonceFetcher) -> int:
        """Read the live pending nonce under the signer's lock."""
        key = self._get_key(chain_id, address)
        async with self._get_lock(key):
            return await self._observe(key, address, chain_id, fetch_nonce)

    async def confirm_nonce(self, address: str, chain_id: int, nonce: int) -> None:
        """Record that a transaction with this nonce was mined."""
        state = self._states.get(self._get_key(chain_id, address))
        if state is not None and nonce >= state.confirmed_nonce:
            state.confirmed_nonce = nonce + 1

    def get_state(self, address: str, chain_id: int) -> Optional[NonceState]:
        """Get the current nonce state for an address."""
        return self._states.get(self._get_key(chain_id, address))


# Singleton instance
_nonce_manager: Optional[NonceManager] = None


def get_nonce_manager() -> NonceManager:
    """Get the process-wide nonce manager shared by every chain client."""
    global _nonce_manager
    if _nonce_manager is None:
        _nonce_manager = NonceManager()
    return _nonce_manager

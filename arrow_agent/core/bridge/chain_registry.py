"""Chain registry built from settings: the home chain and the execution chain."""

from __future__ import annotations

import logging
from typing import Dict, Optional

import httpx
from eth_account import Account

from ...config import Settings, settings as default_settings
from ..execution import ChainClient, NonceManager, get_nonce_manager
from .models import ChainDomain


class ChainRegistry:
    """Static chain metadata plus one shared `ChainClient` per chain.

    Usage:
        registry = ChainRegistry()
        client = registry.client(registry.execution)
        balance = await client.erc20_balance(registry.execution.usdc_address, owner)
    """

    def __init__(
        self,
        *,
        settings: Optional[Settings] = None,
        nonce_manager: Optional[NonceManager] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._settings = settings or default_settings
        self._nonce_manager = nonce_manager or get_nonce_manager()
        self._transport = transport
        self._logger = logger or logging.getLogger(__name__)
        self._clients: Dict[int, ChainClient] = {}

        s = self._settings
        self.home = ChainDomain(
            name=s.home_chain_name,
            chain_id=s.home_chain_id,
            domain=s.home_cctp_domain,
            rpc_url=s.home_rpc_url,
            usdc_address=s.home_usdc_address,
            usdc_decimals=s.home_usdc_decimals,
            token_messenger=s.home_token_messenger,
            message_transmitter=s.home_message_transmitter,
        )
        self.execution = ChainDomain(
            name=s.execution_chain_name,
            chain_id=s.execution_chain_id,
            domain=s.execution_cctp_domain,
            rpc_url=s.execution_rpc_url,
            usdc_address=s.execution_usdc_address,
            usdc_decimals=s.execution_usdc_decimals,
            token_messenger=s.execution_token_messenger,
            message_transmitter=s.execution_message_transmitter,
        )
        self._account = Account.from_key(s.agent_private_key) if s.agent_private_key else None

    @property
    def operator_address(self) -> Optional[str]:
        return self._account.address if self._account else None

    def domains(self) -> list[ChainDomain]:
        return [self.home, self.execution]

    def client(self, domain: ChainDomain) -> ChainClient:
        """Shared client for a chain; created on first use."""
        client = self._clients.get(domain.chain_id)
        if client is None:
            s = self._settings
            client = ChainClient(
                rpc_url=domain.rpc_url,
                chain_id=domain.chain_id,
                name=domain.name,
                account=self._account,
                nonce_manager=self._nonce_manager,
                timeout_seconds=s.rpc_timeout_seconds,
                receipt_timeout_seconds=s.receipt_timeout_seconds,
                receipt_poll_interval_seconds=s.receipt_poll_interval_seconds,
                gas_multiplier=s.gas_multiplier,
                transport=self._transport,
            )
            self._clients[domain.chain_id] = client
            self._logger.debug("Created chain client for %s (%s)", domain.name, domain.chain_id)
        return client

    async def close(self) -> None:
        for client in self._clients.values():
            await client.close()
        self._clients.clear()

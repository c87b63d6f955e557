"""One directed burn -> attest -> mint transfer."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from ..execution import ChainClient, TransactionBuilder
from ..recovery import AttestationIncompleteError
from .attestation import AttestationPoller
from .constants import (
    STANDARD_FINALITY_THRESHOLD,
    STANDARD_TRANSFER_MAX_FEE,
    ZERO_BYTES32,
)
from .models import AttestationRecord, BridgeLeg, BurnResult, ChainDomain

logger = logging.getLogger(__name__)

ClientFactory = Callable[[ChainDomain], ChainClient]


class BridgeLegExecutor:
    """Submits the source-chain half of a leg and, separately, its mint.

    A leg never retries internally: any failed submission or confirmation
    propagates to the caller. Re-running a leg after an ambiguous burn
    failure risks burning twice.
    """

    def __init__(self, client_for: ClientFactory, poller: Optional[AttestationPoller] = None):
        self._client_for = client_for
        self.poller = poller or AttestationPoller()

    async def execute_leg(self, leg: BridgeLeg) -> BurnResult:
        """Approve the messenger, then burn. Returns once both are mined."""
        source = leg.source
        client = self._client_for(source)

        logger.info(f"Approving {leg.amount} for the token messenger on {source.name}")
        approve = await client.transact(
            TransactionBuilder.build_erc20_approve(
                chain_id=source.chain_id,
                owner_address=client.address,
                token_address=source.usdc_address,
                spender_address=source.token_messenger,
                amount=leg.amount,
            )
        )

        logger.info(f"Burning on {leg.describe()}")
        burn = await client.transact(
            TransactionBuilder.build_deposit_for_burn(
                chain_id=source.chain_id,
                owner_address=client.address,
                token_messenger=source.token_messenger,
                amount=leg.amount,
                destination_domain=leg.destination.domain,
                mint_recipient=leg.mint_recipient,
                burn_token=source.usdc_address,
                destination_caller=ZERO_BYTES32,
                max_fee=STANDARD_TRANSFER_MAX_FEE,
                min_finality_threshold=STANDARD_FINALITY_THRESHOLD,
            )
        )
        logger.info(f"Burned on {source.name}: {burn.tx_hash}")
        return BurnResult(approve_tx_hash=approve.tx_hash, burn_tx_hash=burn.tx_hash)

    async def await_attestation(self, leg: BridgeLeg, burn: BurnResult) -> AttestationRecord:
        return await self.poller.await_attestation(leg.source.domain, burn.burn_tx_hash)

    async def mint(self, destination: ChainDomain, record: AttestationRecord) -> str:
        """Receive an attested message on the destination chain."""
        if not record.is_complete:
            raise AttestationIncompleteError(
                f"Refusing to mint with a {record.status.value} attestation",
                tx_hash=record.source_tx_hash,
            )

        client = self._client_for(destination)
        logger.info(f"Minting on {destination.name}")
        result = await client.transact(
            TransactionBuilder.build_receive_message(
                chain_id=destination.chain_id,
                owner_address=client.address,
                message_transmitter=destination.message_transmitter,
                message=record.message,
                attestation=record.attestation,
            )
        )
        logger.info(f"Minted on {destination.name}: {result.tx_hash}")
        return result.tx_hash

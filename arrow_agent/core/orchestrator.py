"""
Bridge-and-swap orchestration.

Moves the stable asset from the home chain to the execution chain, swaps
it there, and returns the proceeds to the user when the output is the
bridgeable asset:

    START -> BURN_ON_SOURCE -> AWAIT_ATTESTATION -> MINT_ON_DESTINATION
          -> SWAP -> CHECK_OUTPUT
          -> [BURN_ON_DESTINATION -> AWAIT_ATTESTATION_BACK -> MINT_ON_SOURCE]
          -> DONE
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional

import structlog

from ..config import settings
from .bridge import BridgeLeg, BridgeLegExecutor, ChainRegistry, ZERO_TX_HASH
from .swap import PoolKey, SwapExecutor

logger = logging.getLogger(__name__)


class OrchestrationStep(str, Enum):
    START = "start"
    BURN_ON_SOURCE = "burn_on_source"
    AWAIT_ATTESTATION = "await_attestation"
    MINT_ON_DESTINATION = "mint_on_destination"
    SWAP = "swap"
    CHECK_OUTPUT = "check_output"
    BURN_ON_DESTINATION = "burn_on_destination"
    AWAIT_ATTESTATION_BACK = "await_attestation_back"
    MINT_ON_SOURCE = "mint_on_source"
    DONE = "done"
    FAILED = "failed"


@dataclass
class BridgeSwapResult:
    """Audit trail of one run. Skipped steps hold the zero hash."""

    bridge_to_destination_tx: str = ZERO_TX_HASH
    mint_on_destination_tx: str = ZERO_TX_HASH
    swap_tx: str = ZERO_TX_HASH
    bridge_back_tx: str = ZERO_TX_HASH
    mint_on_source_tx: str = ZERO_TX_HASH

    @property
    def bridged_back(self) -> bool:
        return self.mint_on_source_tx != ZERO_TX_HASH

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class OrchestrationError(Exception):
    """A run failed; carries the step it failed in and what completed before it."""

    def __init__(self, step: OrchestrationStep, partial_result: BridgeSwapResult, cause: BaseException):
        super().__init__(f"Bridge-and-swap failed during {step.value}: {cause}")
        self.step = step
        self.partial_result = partial_result
        self.cause = cause


class BridgeSwapOrchestrator:
    """Composes two bridge legs and one swap into the full cycle."""

    def __init__(
        self,
        registry: ChainRegistry,
        legs: Optional[BridgeLegExecutor] = None,
        swapper: Optional[SwapExecutor] = None,
    ):
        self.registry = registry
        self.legs = legs or BridgeLegExecutor(registry.client)
        self.swapper = swapper or SwapExecutor(
            registry.client(registry.execution),
            settings.pool_swap_test_address,
        )
        self.step = OrchestrationStep.START

    async def run(
        self,
        amount: int,
        pool_key: PoolKey,
        zero_for_one: bool,
        user_address: str,
    ) -> BridgeSwapResult:
        """
        Run one full cycle for `amount` smallest units of the stable asset.

        Raises:
            OrchestrationError: any step failed; chained from the cause
        """
        home = self.registry.home
        execution = self.registry.execution
        operator = self.registry.client(execution).address
        result = BridgeSwapResult()

        structlog.contextvars.bind_contextvars(run_user=user_address)
        logger.info(
            f"Starting bridge+swap: amount={amount} pool={pool_key.currency0}/{pool_key.currency1} "
            f"direction={'0->1' if zero_for_one else '1->0'} user={user_address} operator={operator}"
        )

        try:
            self.step = OrchestrationStep.BURN_ON_SOURCE
            outbound = BridgeLeg(source=home, destination=execution, amount=amount, mint_recipient=operator)
            burn = await self.legs.execute_leg(outbound)
            result.bridge_to_destination_tx = burn.burn_tx_hash

            self.step = OrchestrationStep.AWAIT_ATTESTATION
            record = await self.legs.await_attestation(outbound, burn)

            self.step = OrchestrationStep.MINT_ON_DESTINATION
            result.mint_on_destination_tx = await self.legs.mint(execution, record)

            self.step = OrchestrationStep.SWAP
            result.swap_tx = await self.swapper.swap(pool_key, zero_for_one, amount)

            self.step = OrchestrationStep.CHECK_OUTPUT
            output_token = pool_key.output_token(zero_for_one)
            output_balance = await self.registry.client(execution).erc20_balance(output_token, operator)
            logger.info(f"Swap output: {output_balance} of {output_token}")

            if execution.is_usdc(output_token) and output_balance > 0:
                self.step = OrchestrationStep.BURN_ON_DESTINATION
                inbound = BridgeLeg(
                    source=execution,
                    destination=home,
                    amount=output_balance,
                    mint_recipient=user_address,
                )
                back_burn = await self.legs.execute_leg(inbound)
                result.bridge_back_tx = back_burn.burn_tx_hash

                self.step = OrchestrationStep.AWAIT_ATTESTATION_BACK
                back_record = await self.legs.await_attestation(inbound, back_burn)

                self.step = OrchestrationStep.MINT_ON_SOURCE
                result.mint_on_source_tx = await self.legs.mint(home, back_record)
            else:
                logger.info(f"Output is not the bridgeable asset; keeping it on {execution.name}")

        except Exception as e:
            failed_step = self.step
            self.step = OrchestrationStep.FAILED
            raise OrchestrationError(failed_step, result, e) from e
        finally:
            structlog.contextvars.unbind_contextvars("run_user")

        self.step = OrchestrationStep.DONE
        logger.info(f"Bridge+swap complete: {result.to_dict()}")
        return result

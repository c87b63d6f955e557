"""Attestation polling against the bridge's attestation service."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from ...config import settings
from ..recovery import AttestationTimeoutError
from .constants import ATTESTATION_PROGRESS_EVERY
from .models import AttestationRecord, AttestationStatus

logger = logging.getLogger(__name__)


class AttestationPoller:
    """
    Polls `{api_url}/{source_domain}?transactionHash={hash}` until the
    attested message is `complete`.

    - 404 is the normal pre-completion answer; keep polling
    - 429 triggers a fixed cooldown, then polling resumes without the normal delay
    - any other failure is retried on the next attempt
    - the attempt budget is hard; running out raises AttestationTimeoutError
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        max_attempts: Optional[int] = None,
        interval_seconds: Optional[float] = None,
        rate_limit_cooldown_seconds: Optional[float] = None,
        timeout_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = (api_url or settings.attestation_api_url).rstrip("/")
        self.max_attempts = max_attempts if max_attempts is not None else settings.attestation_max_attempts
        self.interval_seconds = (
            interval_seconds if interval_seconds is not None else settings.attestation_interval_seconds
        )
        self.rate_limit_cooldown_seconds = (
            rate_limit_cooldown_seconds
            if rate_limit_cooldown_seconds is not None
            else settings.attestation_rate_limit_cooldown_seconds
        )
        self._client = httpx.AsyncClient(
            timeout=timeout_seconds or settings.rpc_timeout_seconds,
            transport=transport,
        )

    def _url(self, source_domain: int) -> str:
        return f"{self.api_url}/{source_domain}"

    async def await_attestation(
        self,
        source_domain: int,
        source_tx_hash: str,
        max_attempts: Optional[int] = None,
        interval_seconds: Optional[float] = None,
    ) -> AttestationRecord:
        """
        Wait for the attestation of a burn.

        Args:
            source_domain: Bridge domain of the chain the burn happened on
            source_tx_hash: Burn transaction hash
            max_attempts: Poll budget (default: configured)
            interval_seconds: Delay between polls (default: configured)

        Returns:
            A complete AttestationRecord

        Raises:
            AttestationTimeoutError: budget exhausted without a complete attestation
        """
        attempts = max_attempts if max_attempts is not None else self.max_attempts
        interval = interval_seconds if interval_seconds is not None else self.interval_seconds
        url = self._url(source_domain)

        logger.info(f"Polling attestation for {source_tx_hash} on domain {source_domain}")

        for attempt in range(attempts):
            try:
                response = await self._client.get(url, params={"transactionHash": source_tx_hash})

                if response.status_code == 429:
                    logger.warning(
                        f"Attestation service rate limited, cooling down {self.rate_limit_cooldown_seconds}s"
                    )
                    await asyncio.sleep(self.rate_limit_cooldown_seconds)
                    continue

                if response.status_code != 404:
                    response.raise_for_status()
                    record = self._parse(source_domain, source_tx_hash, response.json())
                    if record is not None and record.is_complete:
                        logger.info(f"Attestation received after {attempt + 1} attempts")
                        return record

            except (httpx.HTTPError, ValueError) as e:
                logger.debug(f"Attestation poll {attempt + 1} failed: {e}")

            if attempt > 0 and attempt % ATTESTATION_PROGRESS_EVERY == 0:
                logger.info(f"Still waiting for attestation... (attempt {attempt + 1})")

            await asyncio.sleep(interval)

        raise AttestationTimeoutError(
            f"No complete attestation for {source_tx_hash} after {attempts} attempts",
            source_domain=source_domain,
            tx_hash=source_tx_hash,
            attempts=attempts,
        )

    @staticmethod
    def _parse(source_domain: int, source_tx_hash: str, payload: Dict[str, Any]) -> Optional[AttestationRecord]:
        messages = payload.get("messages") if isinstance(payload, dict) else None
        if not messages or not isinstance(messages[0], dict):
            return None

        first = messages[0]
        status = (
            AttestationStatus.COMPLETE
            if first.get("status") == AttestationStatus.COMPLETE.value
            else AttestationStatus.PENDING
        )
        return AttestationRecord(
            source_domain=source_domain,
            source_tx_hash=source_tx_hash,
            message=first.get("message") or "0x",
            attestation=first.get("attestation") or "0x",
            status=status,
        )

    async def close(self) -> None:
        await self._client.aclose()

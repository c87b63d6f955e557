"""
Client for the social backend.

Every call is best-effort: transport errors, non-2xx answers and malformed
payloads are logged and turned into an empty/negative result so the agent
keeps running while the backend is down.
"""

import logging
import time
from typing import Any, Dict, List, Literal, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError, field_validator

from ..config import settings

logger = logging.getLogger(__name__)

ProposalType = Literal["copy-trade", "limit-order", "ai-suggestion"]
OrderStatus = Literal["executed", "failed"]

DEFAULT_SLIPPAGE_BPS = 50
DEFAULT_URGENCY = "medium"

M = TypeVar("M", bound=BaseModel)


class PendingOrder(BaseModel):
    """User-initiated order queued for the agent. Read-only here."""
    id: str
    user_id: Optional[str] = None
    user_address: Optional[str] = None
    username: Optional[str] = None
    pool_key_hash: Optional[str] = None
    zero_for_one: bool = False
    amount: str
    trigger_price: Optional[str] = None
    pair: Optional[str] = None
    pair_address_0: Optional[str] = None
    pair_address_1: Optional[str] = None
    pool_fee: Optional[int] = None

    @field_validator("amount", "trigger_price", mode="before")
    @classmethod
    def _numeric_as_string(cls, value):
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @field_validator("zero_for_one", mode="before")
    @classmethod
    def _truthy(cls, value):
        return bool(value)


class IdeaPost(BaseModel):
    """Trade idea posted to the feed, not yet processed by the agent."""
    id: str
    author_id: Optional[str] = None
    content: str = ""
    pair: str = ""
    pair_address_0: str = ""
    pair_address_1: str = ""
    pool_fee: Optional[int] = None
    side: str = "buy"
    price: str = ""
    username: str = ""
    address: str = ""
    is_leader: bool = False

    @field_validator("content", "pair", "pair_address_0", "pair_address_1", "price", "username", "address", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)

    @field_validator("is_leader", mode="before")
    @classmethod
    def _truthy(cls, value):
        return bool(value)


class TradeProposal(BaseModel):
    """A user-approvable trade the agent suggests."""
    user_address: str
    type: ProposalType
    zero_for_one: bool
    amount: str
    token0: Optional[str] = None
    token1: Optional[str] = None
    pool_fee: Optional[int] = None
    leader_address: Optional[str] = None
    ai_confidence: float
    ai_reason: str
    slippage_bps: Optional[int] = None
    urgency: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return {
            "user_address": self.user_address,
            "type": self.type,
            "zero_for_one": self.zero_for_one,
            "amount": self.amount,
            "token0": self.token0 or "",
            "token1": self.token1 or "",
            "pool_fee": self.pool_fee or settings.default_pool_fee,
            "leader_address": self.leader_address or "",
            "ai_confidence": self.ai_confidence,
            "ai_reason": self.ai_reason,
            "slippage_bps": self.slippage_bps or DEFAULT_SLIPPAGE_BPS,
            "urgency": self.urgency or DEFAULT_URGENCY,
        }


class BackendClient:
    """
    Async client for the social backend's agent endpoints.

    Example usage:
        backend = BackendClient()
        for order in await backend.fetch_pending_orders():
            ...
        await backend.update_order_status(order.id, "executed", tx_hash)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        agent_secret: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.backend_url).rstrip("/")
        self.agent_secret = agent_secret if agent_secret is not None else settings.agent_secret
        self.timeout = timeout or settings.backend_timeout_seconds
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def headers(self) -> Dict[str, str]:
        """Headers for agent requests."""
        return {
            "Content-Type": "application/json",
            "x-agent-secret": self.agent_secret,
        }

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self.headers,
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, **kwargs) -> Optional[Any]:
        """JSON body of a 2xx answer, or None on any failure."""
        client = await self._get_client()
        try:
            response = await client.request(method, path, **kwargs)
            response.raise_for_status()
            return response.json() if response.content else {}
        except httpx.HTTPStatusError as e:
            logger.warning(f"Backend {method} {path} returned {e.response.status_code}: {e.response.text[:200]}")
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Backend {method} {path} failed: {e}")
        return None

    @staticmethod
    def _parse_list(payload: Optional[Any], key: str, model: Type[M]) -> List[M]:
        if not isinstance(payload, dict):
            return []
        items: List[M] = []
        for raw in payload.get(key) or []:
            try:
                items.append(model.model_validate(raw))
            except ValidationError as e:
                logger.warning(f"Skipping malformed {model.__name__}: {e.errors()[0].get('msg')}")
        return items

    # Trade proposals

    async def create_trade_proposal(self, proposal: TradeProposal) -> Optional[str]:
        """Create a proposal. Returns its id, or None when the backend refused or failed."""
        payload = await self._request("POST", "/trade-proposals", json=proposal.to_payload())
        if not isinstance(payload, dict):
            return None

        proposal_id = (payload.get("proposal") or {}).get("id")
        if proposal_id is None:
            logger.warning(f"Backend accepted proposal for {proposal.user_address} without an id")
            return None
        logger.info(f"Trade proposal created: {proposal_id}")
        return str(proposal_id)

    # Orders

    async def fetch_pending_orders(self) -> List[PendingOrder]:
        payload = await self._request("GET", "/orders/agent/pending")
        return self._parse_list(payload, "orders", PendingOrder)

    async def update_order_status(self, order_id: str, status: OrderStatus, tx_hash: Optional[str] = None) -> None:
        await self._request(
            "PATCH",
            f"/orders/{order_id}/status",
            json={"status": status, "tx_hash": tx_hash or ""},
        )

    # Idea posts

    async def fetch_unprocessed_ideas(self) -> List[IdeaPost]:
        payload = await self._request("GET", "/posts/agent/unprocessed-ideas")
        return self._parse_list(payload, "ideas", IdeaPost)

    async def mark_idea_processed(self, post_id: str) -> None:
        await self._request("POST", "/posts/agent/mark-processed", json={"post_id": post_id})

    # Notifications

    async def notify(self, event: str, data: Dict[str, Any]) -> None:
        await self._request(
            "POST",
            "/agent/events",
            json={"event": event, "data": data, "timestamp": int(time.time() * 1000)},
        )

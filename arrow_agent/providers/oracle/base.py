"""Decision oracle interface and verdict models."""

import logging
from abc import ABC, abstractmethod
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


Action = Literal["execute", "skip", "wait"]

# Confidence each call site needs before acting on "execute"
IDEA_POST_THRESHOLD = 0.5
LEADER_SWAP_THRESHOLD = 0.6
LIMIT_ORDER_THRESHOLD = 0.7


class Adjustments(BaseModel):
    slippage_bps: Optional[int] = None
    urgency: Optional[str] = None  # "high" | "medium" | "low"


class Verdict(BaseModel):
    """Structured oracle output."""
    action: Action
    reason: str = ""
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    adjustments: Optional[Adjustments] = None

    def approves(self, threshold: float) -> bool:
        """True only for "execute" at or above the call site's threshold."""
        return self.action == "execute" and self.confidence >= threshold

    @property
    def slippage_bps(self) -> Optional[int]:
        return self.adjustments.slippage_bps if self.adjustments else None

    @property
    def urgency(self) -> Optional[str]:
        return self.adjustments.urgency if self.adjustments else None

    @classmethod
    def wait(cls, reason: str) -> "Verdict":
        return cls(action="wait", reason=reason, confidence=0.0)


class IdeaVerdict(Verdict):
    """Verdict on an idea post, with the proposal shape it suggests."""
    order_type: Literal["market", "limit"] = "market"
    suggested_amount: Optional[str] = None
    suggested_slippage_bps: Optional[int] = None

    @field_validator("suggested_amount", mode="before")
    @classmethod
    def _amount_as_string(cls, value):
        if value is None or isinstance(value, str):
            return value
        return str(value)


class LeaderSwapContext(BaseModel):
    leader: str
    follower_count: int
    zero_for_one: bool
    amount: str
    delta0: str
    delta1: str
    leader_trade_count: int


class LimitOrderContext(BaseModel):
    order_id: int
    owner: str
    zero_for_one: bool
    amount: str
    trigger_price: str
    current_price: str
    created_at: int  # unix seconds


class IdeaContext(BaseModel):
    post_id: str
    content: str = ""
    pair: str = ""
    side: str
    price: str = ""
    author_username: str = ""
    author_address: str = ""
    is_leader: bool = False
    pair_address_0: str = ""
    pair_address_1: str = ""

    @property
    def has_price(self) -> bool:
        return bool(self.price) and self.price != "0"

    @property
    def order_type(self) -> Literal["market", "limit"]:
        return "limit" if self.has_price else "market"


class DecisionOracle(ABC):
    """Advisory trade scoring.

    Implementations never raise: any failure becomes a "wait" verdict with
    zero confidence, which no call site acts on.
    """

    name: str = "oracle"

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    async def evaluate_leader_swap(self, context: LeaderSwapContext) -> Verdict:
        """Should a leader's swap be relayed to their followers?"""

    @abstractmethod
    async def evaluate_limit_order(self, context: LimitOrderContext) -> Verdict:
        """Should a resting limit order be executed now?"""

    @abstractmethod
    async def evaluate_idea(self, context: IdeaContext) -> IdeaVerdict:
        """Should an idea post become proposals for the author's followers?"""

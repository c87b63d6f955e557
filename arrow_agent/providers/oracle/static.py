from typing import Optional

from .base import (
    Action,
    DecisionOracle,
    IdeaContext,
    IdeaVerdict,
    LeaderSwapContext,
    LimitOrderContext,
    Verdict,
)


class StaticOracle(DecisionOracle):
    """Deterministic oracle: returns the same verdict for everything.

    Used when no model is configured, and in tests.
    """

    name = "static"

    def __init__(
        self,
        action: Action = "wait",
        confidence: float = 0.0,
        reason: Optional[str] = None,
    ):
        super().__init__()
        self.verdict = Verdict(
            action=action,
            confidence=confidence,
            reason=reason or "Decision oracle not configured",
        )

    async def evaluate_leader_swap(self, context: LeaderSwapContext) -> Verdict:
        return self.verdict

    async def evaluate_limit_order(self, context: LimitOrderContext) -> Verdict:
        return self.verdict

    async def evaluate_idea(self, context: IdeaContext) -> IdeaVerdict:
        return IdeaVerdict(**self.verdict.model_dump(), order_type=context.order_type)

import logging
from typing import Optional

from ...config import Settings, settings as default_settings
from .anthropic import AnthropicOracle, parse_verdict
from .base import (
    IDEA_POST_THRESHOLD,
    LEADER_SWAP_THRESHOLD,
    LIMIT_ORDER_THRESHOLD,
    Adjustments,
    DecisionOracle,
    IdeaContext,
    IdeaVerdict,
    LeaderSwapContext,
    LimitOrderContext,
    Verdict,
)
from .static import StaticOracle

logger = logging.getLogger(__name__)


def build_oracle(settings: Optional[Settings] = None) -> DecisionOracle:
    """Anthropic oracle when an API key is configured, otherwise the static "wait" oracle."""
    s = settings or default_settings
    if s.has_anthropic_key:
        return AnthropicOracle(
            api_key=s.anthropic_api_key,
            model=s.llm_model,
            max_tokens=s.oracle_max_tokens,
        )
    logger.info("No ANTHROPIC_API_KEY set; decision oracle will always wait")
    return StaticOracle()


__all__ = [
    "IDEA_POST_THRESHOLD",
    "LEADER_SWAP_THRESHOLD",
    "LIMIT_ORDER_THRESHOLD",
    "Adjustments",
    "AnthropicOracle",
    "DecisionOracle",
    "IdeaContext",
    "IdeaVerdict",
    "LeaderSwapContext",
    "LimitOrderContext",
    "StaticOracle",
    "Verdict",
    "build_oracle",
    "parse_verdict",
]

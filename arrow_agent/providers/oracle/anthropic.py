import json
import re
from typing import Optional, Type, TypeVar

import anthropic
from anthropic import AsyncAnthropic
from pydantic import ValidationError

from ...core.recovery import OracleValidationError
from .base import (
    DecisionOracle,
    IdeaContext,
    IdeaVerdict,
    LeaderSwapContext,
    LimitOrderContext,
    Verdict,
)
from .prompts import SYSTEM_PROMPT, idea_prompt, leader_swap_prompt, limit_order_prompt

V = TypeVar("V", bound=Verdict)

_FENCE_RE = re.compile(r"```(?:json)?\s*")


def parse_verdict(text: str, model: Type[V] = Verdict) -> V:
    """Parse a JSON verdict, tolerating markdown code fences.

    Raises:
        OracleValidationError: not JSON, or not a valid verdict
    """
    cleaned = _FENCE_RE.sub("", text or "").strip()
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise OracleValidationError(f"Verdict is not JSON: {e}", raw=text) from e
    if not isinstance(payload, dict):
        raise OracleValidationError("Verdict is not a JSON object", raw=text)

    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise OracleValidationError(f"Invalid verdict: {e.errors()[0].get('msg')}", raw=text) from e


class AnthropicOracle(DecisionOracle):
    """Decision oracle backed by a Claude model."""

    name = "anthropic"

    def __init__(
        self,
        api_key: str,
        model: str,
        max_tokens: int = 256,
        client: Optional[AsyncAnthropic] = None,
    ):
        super().__init__()
        if not model:
            raise ValueError("AnthropicOracle requires a model to be specified")
        self.model = model
        self.max_tokens = max_tokens
        self.client = client or AsyncAnthropic(api_key=api_key)

    async def _complete(self, prompt: str) -> str:
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            system=SYSTEM_PROMPT,
            messages=[{"role": "user", "content": prompt}],
        )
        text = ""
        for block in response.content or []:
            if getattr(block, "type", None) == "text":
                text += block.text
        return text

    async def _evaluate(self, prompt: str, model: Type[V]) -> V:
        try:
            return parse_verdict(await self._complete(prompt), model)
        except OracleValidationError as e:
            self.logger.warning(f"Oracle returned an invalid verdict: {e.message}")
            return model(action="wait", reason=f"Oracle error: {e.message}", confidence=0.0)
        except anthropic.APIError as e:
            self.logger.error(f"Error calling Anthropic: {e}")
            return model(action="wait", reason=f"Oracle error: {e}", confidence=0.0)

    async def evaluate_leader_swap(self, context: LeaderSwapContext) -> Verdict:
        return await self._evaluate(leader_swap_prompt(context), Verdict)

    async def evaluate_limit_order(self, context: LimitOrderContext) -> Verdict:
        return await self._evaluate(limit_order_prompt(context), Verdict)

    async def evaluate_idea(self, context: IdeaContext) -> IdeaVerdict:
        verdict = await self._evaluate(idea_prompt(context), IdeaVerdict)
        # The post itself decides market vs limit, not the model
        return verdict.model_copy(update={"order_type": context.order_type})

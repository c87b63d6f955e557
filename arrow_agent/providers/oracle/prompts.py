"""Prompt templates for the language-model oracle."""

import time
from datetime import datetime, timezone
from typing import Optional

from .base import IdeaContext, LeaderSwapContext, LimitOrderContext

SYSTEM_PROMPT = """You are the Arrow trading agent. You operate a Uniswap v4 copy-trade hook and decide, trade by trade, whether the agent should act.

You are asked to:
1. Decide whether a leader's swap should be relayed to the leader's followers
2. Decide whether a resting limit order should be executed now
3. Judge trade ideas posted to the social feed

Answer with a single JSON object and nothing else:
{
  "action": "execute" | "skip" | "wait",
  "reason": "short explanation",
  "confidence": 0.0-1.0,
  "adjustments": {
    "slippage_bps": number (optional, default 50),
    "urgency": "high" | "medium" | "low"
  }
}

Rules:
- Weigh gas costs against trade size
- Copy-trades: relay when the leader has a solid track record
- Limit orders: execute only once the current price has crossed the trigger price
- When unsure, answer "wait"; never execute a trade you are not confident about
- Be risk-averse. Protect user funds."""


def leader_swap_prompt(context: LeaderSwapContext) -> str:
    direction = "token0 -> token1" if context.zero_for_one else "token1 -> token0"
    return f"""A leader just swapped through the hook. Should this be relayed to their followers?

Leader: {context.leader}
Followers: {context.follower_count}
Direction: {direction}
Amount: {context.amount}
Delta0: {context.delta0}
Delta1: {context.delta1}
Leader's total trade count: {context.leader_trade_count}

Respond with the JSON decision."""


def limit_order_prompt(context: LimitOrderContext, now: Optional[float] = None) -> str:
    now = time.time() if now is None else now
    created = datetime.fromtimestamp(context.created_at, tz=timezone.utc).isoformat()
    age_hours = max(int((now - context.created_at) // 3600), 0)
    direction = "zeroForOne" if context.zero_for_one else "oneForZero"
    return f"""A user has a resting limit order. Should it be executed now?

Order ID: {context.order_id}
Owner: {context.owner}
Direction: {direction}
Amount: {context.amount}
Trigger price: {context.trigger_price}
Current pool price (sqrtPriceX96): {context.current_price}
Created: {created}
Age: {age_hours} hours

Decide whether the current price has crossed the trigger price and respond with the JSON decision."""


def idea_prompt(context: IdeaContext) -> str:
    order_type = context.order_type
    side = context.side.lower()
    if order_type == "market":
        price_rule = "No price was set, so this is a MARKET order executed at the current price."
    else:
        price_rule = f"Price {context.price} was set, so this is a LIMIT order. Only execute once price reaches {context.price}."
    if side == "buy":
        side_rule = 'side "buy" means buying token0 with token1 (zeroForOne=false)'
    else:
        side_rule = f'side "{side}" means selling token0 for token1 (zeroForOne=true)'

    role = "(Leader)" if context.is_leader else "(Regular user)"
    token0 = context.pair_address_0 or "unknown"
    token1 = context.pair_address_1 or "unknown"
    price = context.price if context.has_price else "NOT SET (market order)"

    return f"""A trade idea was posted to the social feed. Decide whether it should become trade proposals for the author's followers.

Post ID: {context.post_id}
Author: @{context.author_username} {role}
Author address: {context.author_address}
Pair: {context.pair}
Token0: {token0}
Token1: {token1}
Side: {side.upper()}
Price: {price}
Description: "{context.content}"
Order type: {order_type}

Respond with JSON:
{{
  "action": "execute" | "skip" | "wait",
  "reason": "short explanation",
  "confidence": 0.0-1.0,
  "order_type": "{order_type}",
  "suggested_amount": "trade amount in USDC, e.g. \\"10\\"",
  "suggested_slippage_bps": number (default 50, max 500),
  "adjustments": {{
    "slippage_bps": number,
    "urgency": "high" | "medium" | "low"
  }}
}}

Rules:
- Give leaders higher confidence
- {price_rule}
- {side_rule}
- Keep suggested amounts conservative
- Skip vague or low-quality ideas"""

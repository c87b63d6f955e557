"""Typed models used by the swap subsystem."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from .constants import SIDE_TO_ZERO_FOR_ONE


@dataclass(frozen=True)
class PoolKey:
    """Identifies a pool. Compared by value."""

    currency0: str
    currency1: str
    fee: int
    tick_spacing: int
    hooks: str

    def as_tuple(self) -> Tuple[str, str, int, int, str]:
        return (self.currency0, self.currency1, self.fee, self.tick_spacing, self.hooks)

    @classmethod
    def from_tuple(cls, value) -> "PoolKey":
        currency0, currency1, fee, tick_spacing, hooks = value
        return cls(currency0, currency1, int(fee), int(tick_spacing), hooks)

    def input_token(self, zero_for_one: bool) -> str:
        return self.currency0 if zero_for_one else self.currency1

    def output_token(self, zero_for_one: bool) -> str:
        return self.currency1 if zero_for_one else self.currency0


def zero_for_one_from_side(side: str) -> bool:
    """Map an order side ("buy"/"sell") to the pool's swap direction."""
    try:
        return SIDE_TO_ZERO_FOR_ONE[side.strip().lower()]
    except KeyError:
        raise ValueError(f"Unknown order side: {side!r}") from None

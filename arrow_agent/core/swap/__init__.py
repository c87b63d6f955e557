"""Pool swap components."""

from .constants import MAX_SQRT_PRICE, MIN_SQRT_PRICE, ZERO_ADDRESS
from .executor import SwapExecutor, price_limit
from .models import PoolKey, zero_for_one_from_side

__all__ = [
    "MAX_SQRT_PRICE",
    "MIN_SQRT_PRICE",
    "PoolKey",
    "SwapExecutor",
    "ZERO_ADDRESS",
    "price_limit",
    "zero_for_one_from_side",
]

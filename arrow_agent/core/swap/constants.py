"""Constants for pool swaps."""

# Protocol price bounds (sqrtPriceX96); a swap limit must sit strictly inside them
MIN_SQRT_PRICE = 4295128739 + 1
MAX_SQRT_PRICE = 1461446703485210103287273052203988822378723970342 - 1

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Order side -> zeroForOne. Selling asset0 moves the pool price down.
SIDE_TO_ZERO_FOR_ONE = {
    "sell": True,
    "buy": False,
}

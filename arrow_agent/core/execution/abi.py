"""Function and event signatures for the contracts the agent talks to.

Only the members actually called are listed. Signatures are canonical
Solidity type strings; selectors and topics are derived with eth_utils.
"""

from eth_utils import event_signature_to_log_topic, function_signature_to_4byte_selector

# ERC-20
ERC20_APPROVE = "approve(address,uint256)"
ERC20_BALANCE_OF = "balanceOf(address)"

# Bridge: burn on the source chain, receive on the destination chain
DEPOSIT_FOR_BURN = "depositForBurn(uint256,uint32,bytes32,address,bytes32,uint256,uint32)"
RECEIVE_MESSAGE = "receiveMessage(bytes,bytes)"

# Pool swap router
POOL_KEY_TUPLE = "(address,address,uint24,int24,address)"
SWAP_PARAMS_TUPLE = "(bool,int256,uint160)"
TEST_SETTINGS_TUPLE = "(bool,bool)"
POOL_SWAP = f"swap({POOL_KEY_TUPLE},{SWAP_PARAMS_TUPLE},{TEST_SETTINGS_TUPLE},bytes)"

# Copy-trade hook
HOOK_GET_FOLLOWERS = "getFollowers(address)"
HOOK_GET_LEADER_TRADES = "getLeaderTrades(address)"
HOOK_GET_LIMIT_ORDER_COUNT = "getLimitOrderCount()"
HOOK_LIMIT_ORDERS = "limitOrders(uint256)"
HOOK_MARK_LIMIT_ORDER_EXECUTED = "markLimitOrderExecuted(uint256)"

# limitOrders(i) -> (owner, key, zeroForOne, amountSpecified, triggerPrice, executed, createdAt)
LIMIT_ORDER_OUTPUT_TYPES = [
    "address",
    POOL_KEY_TUPLE,
    "bool",
    "int256",
    "uint256",
    "bool",
    "uint256",
]

# leader and poolId are indexed; the rest lives in the data section
LEADER_SWAP_EVENT = "LeaderSwap(address,bytes32,bool,int256,int128,int128,uint256)"
LEADER_SWAP_DATA_TYPES = ["bool", "int256", "int128", "int128", "uint256"]


def selector(signature: str) -> bytes:
    """4-byte function selector for a canonical signature."""
    return function_signature_to_4byte_selector(signature)


def event_topic(signature: str) -> str:
    """topic0 for a canonical event signature, 0x-prefixed."""
    return "0x" + event_signature_to_log_topic(signature).hex()


def argument_types(signature: str) -> list[str]:
    """Split the argument list of a signature into top-level types.

    Tuple types keep their parentheses so eth_abi can encode them.
    """
    inner = signature[signature.index("(") + 1: signature.rindex(")")]
    types: list[str] = []
    depth = 0
    current = ""
    for char in inner:
        if char == "," and depth == 0:
            types.append(current)
            current = ""
            continue
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        current += char
    if current:
        types.append(current)
    return types


LEADER_SWAP_TOPIC = event_topic(LEADER_SWAP_EVENT)

"""Constants for the burn/attest/mint bridge."""

# Anyone may call receiveMessage on the destination chain
ZERO_BYTES32 = b"\x00" * 32

# Placeholder hash for steps an orchestration run skipped
ZERO_TX_HASH = "0x" + "0" * 64

# Standard (non-expedited) transfer class
STANDARD_TRANSFER_MAX_FEE = 0
STANDARD_FINALITY_THRESHOLD = 2000

# Progress is logged every N unanswered polls
ATTESTATION_PROGRESS_EVERY = 10

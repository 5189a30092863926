"""
Orca Whirlpool Constants
"""

import hashlib


def _anchor_discriminator(name: str) -> bytes:
    """Compute Anchor discriminator for instruction name"""
    return hashlib.sha256(f"global:{name}".encode("utf-8")).digest()[:8]


def _anchor_account_discriminator(name: str) -> bytes:
    """Compute Anchor discriminator for account name"""
    return hashlib.sha256(f"account:{name}".encode("utf-8")).digest()[:8]


# Orca Whirlpool Program ID (mainnet)
WHIRLPOOL_PROGRAM_ID = "whirLbMiicVdio4qvUfM5KAg6Ct8VwpYzGff3uctyCc"

# Token Programs
TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"

# Associated Token Program
ASSOCIATED_TOKEN_PROGRAM_ID = "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL"

# System Program
SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"

# Rent Sysvar
RENT_SYSVAR_ID = "SysvarRent111111111111111111111111111111111"

# Whirlpool tick arrays hold 88 ticks each
TICK_ARRAY_SIZE = 88

# Tick bounds
MIN_TICK_INDEX = -443636
MAX_TICK_INDEX = 443636

# Sqrt prices at the tick bounds, Q64.64
MIN_SQRT_PRICE_X64 = 4295048016
MAX_SQRT_PRICE_X64 = 79226673515401279992447579055

# Swaps may cross at most three tick arrays
MAX_SWAP_TICK_ARRAYS = 3

# Q64 constant for fixed-point math
Q64 = 2 ** 64

# Account sizes (including the 8 byte discriminator)
WHIRLPOOL_ACCOUNT_SIZE = 653
POSITION_ACCOUNT_SIZE = 216
MINT_ACCOUNT_SIZE = 82
TOKEN_ACCOUNT_SIZE = 165

NUM_REWARDS = 3

DISCRIMINATORS = {
    "initialize_tick_array": _anchor_discriminator("initialize_tick_array"),
}

ACCOUNT_DISCRIMINATORS = {
    "Whirlpool": _anchor_account_discriminator("Whirlpool"),
    "Position": _anchor_account_discriminator("Position"),
    "TickArray": _anchor_account_discriminator("TickArray"),
}

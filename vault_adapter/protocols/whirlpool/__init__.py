"""
Orca Whirlpool Protocol

Account layouts, math and address derivation for the AMM the vault
program provides liquidity to.
"""

from .constants import (
    WHIRLPOOL_PROGRAM_ID,
    TICK_ARRAY_SIZE,
    MIN_TICK_INDEX,
    MAX_TICK_INDEX,
    MAX_SWAP_TICK_ARRAYS,
)
from .layouts import parse_whirlpool, parse_position, parse_mint, parse_token_account
from .pda import (
    get_associated_token_address,
    derive_tick_array,
    derive_position,
    derive_oracle,
)

__all__ = [
    "WHIRLPOOL_PROGRAM_ID",
    "TICK_ARRAY_SIZE",
    "MIN_TICK_INDEX",
    "MAX_TICK_INDEX",
    "MAX_SWAP_TICK_ARRAYS",
    "parse_whirlpool",
    "parse_position",
    "parse_mint",
    "parse_token_account",
    "get_associated_token_address",
    "derive_tick_array",
    "derive_position",
    "derive_oracle",
]

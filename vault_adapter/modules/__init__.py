"""
Functional modules for VaultClient

Provides:
- AccountCache: Batched, memoized account reads with typed decoders
- AddressResolver: Vault, position and token account derivation
- tick_array_window: Tick arrays a swap walks through
- is_token_a_to_b: Reinvest swap direction
- PriceMath: LP <-> token amount conversions
- InstructionAssembler: Unsigned vault program instructions
"""

from .account_cache import AccountCache, AccountDecoder, WHIRLPOOL, POSITION, MINT, TOKEN_ACCOUNT, VAULT
from .resolver import AddressResolver
from .tick_window import tick_array_window, tick_array_start_indices
from .swap_direction import is_token_a_to_b
from .price_math import PriceMath
from .assembler import InstructionAssembler

__all__ = [
    # Cache
    "AccountCache",
    "AccountDecoder",
    "WHIRLPOOL",
    "POSITION",
    "MINT",
    "TOKEN_ACCOUNT",
    "VAULT",
    # Resolution
    "AddressResolver",
    # Decisions
    "tick_array_window",
    "tick_array_start_indices",
    "is_token_a_to_b",
    "PriceMath",
    # Instructions
    "InstructionAssembler",
]

"""
Vault Program

Account layout, address derivation and instruction encoding for the
on-chain vault that manages Whirlpool positions.
"""

from .constants import SwapRoute, DISCRIMINATORS, ACCOUNT_DISCRIMINATORS
from .layouts import parse_vault
from .pda import derive_vault_account, derive_vault_lp_mint
from .instructions import INSTRUCTION_ACCOUNTS, encode_instruction

__all__ = [
    "SwapRoute",
    "DISCRIMINATORS",
    "ACCOUNT_DISCRIMINATORS",
    "parse_vault",
    "derive_vault_account",
    "derive_vault_lp_mint",
    "INSTRUCTION_ACCOUNTS",
    "encode_instruction",
]

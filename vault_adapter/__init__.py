"""
Vault Adapter - Client-side resolver and instruction builder for a
Whirlpool-based automated liquidity vault

Provides:
- Batched, cached account reads (AccountCache)
- Deterministic vault/position/token account derivation (AddressResolver)
- Swap tick-array window and reinvest swap direction
- Unsigned vault program instructions (InstructionAssembler)
"""

__version__ = "0.1.0"

from .client import VaultClient
from .types import (
    VaultKey,
    VaultAddresses,
    PositionAddresses,
    DepositWithdrawAccounts,
    WhirlpoolView,
    PositionView,
    MintView,
    VaultView,
)
from .errors import (
    VaultAdapterError,
    RpcError,
    AccountNotFoundError,
    DecodeError,
    ConfigurationError,
    ErrorCode,
)
from .modules import (
    AccountCache,
    AddressResolver,
    InstructionAssembler,
    PriceMath,
    tick_array_window,
    is_token_a_to_b,
)
from .protocols.vault import SwapRoute

__all__ = [
    # Client
    "VaultClient",
    # Types
    "VaultKey",
    "VaultAddresses",
    "PositionAddresses",
    "DepositWithdrawAccounts",
    "WhirlpoolView",
    "PositionView",
    "MintView",
    "VaultView",
    "SwapRoute",
    # Errors
    "VaultAdapterError",
    "RpcError",
    "AccountNotFoundError",
    "DecodeError",
    "ConfigurationError",
    "ErrorCode",
    # Modules
    "AccountCache",
    "AddressResolver",
    "InstructionAssembler",
    "PriceMath",
    "tick_array_window",
    "is_token_a_to_b",
]

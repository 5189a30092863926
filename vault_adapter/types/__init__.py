"""
Type definitions for Vault Adapter
"""

from .accounts import (
    AccountBlob,
    RewardInfoView,
    WhirlpoolView,
    PositionView,
    MintView,
    TokenAccountView,
    PositionInfo,
    MarketRewardsInfo,
    VaultView,
)
from .addresses import (
    VaultKey,
    VaultAddresses,
    PositionAddresses,
    DepositWithdrawAccounts,
)

__all__ = [
    # Account views
    "AccountBlob",
    "RewardInfoView",
    "WhirlpoolView",
    "PositionView",
    "MintView",
    "TokenAccountView",
    "PositionInfo",
    "MarketRewardsInfo",
    "VaultView",
    # Address bundles
    "VaultKey",
    "VaultAddresses",
    "PositionAddresses",
    "DepositWithdrawAccounts",
]

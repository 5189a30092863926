"""
Vault Program Constants
"""

import hashlib
from enum import IntEnum


def _anchor_discriminator(name: str) -> bytes:
    """Compute Anchor discriminator for instruction name"""
    return hashlib.sha256(f"global:{name}".encode("utf-8")).digest()[:8]


def _anchor_account_discriminator(name: str) -> bytes:
    """Compute Anchor discriminator for account name"""
    return hashlib.sha256(f"account:{name}".encode("utf-8")).digest()[:8]


# PDA seeds
VAULT_SEED = b"vault"
LP_MINT_SEED = b"mint"

# Vault ids are a single seed byte
MAX_VAULT_ID = 255

# Fee is expressed in basis points
MAX_VAULT_FEE_BPS = 10_000


class SwapRoute(IntEnum):
    """Swap route used to sell a reward token"""
    NOT_SET = 0
    ORCA = 1
    WHIRLPOOL = 2


INSTRUCTION_NAMES = (
    "initialize_vault",
    "open_position",
    "close_position",
    "deposit",
    "withdraw",
    "collect_fees",
    "collect_rewards",
    "swap_rewards",
    "reinvest",
    "rebalance",
    "set_vault_fee",
    "set_vault_pause_status",
    "set_market_rewards",
)

# Anchor discriminators for instructions
# Computed as sha256("global:<instruction_name>")[0:8]
DISCRIMINATORS = {name: _anchor_discriminator(name) for name in INSTRUCTION_NAMES}

ACCOUNT_DISCRIMINATORS = {
    "VaultAccount": _anchor_account_discriminator("VaultAccount"),
}

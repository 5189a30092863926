"""
Derived address bundles
"""

from dataclasses import dataclass
from typing import Iterator

from solders.pubkey import Pubkey


@dataclass(frozen=True)
class VaultKey:
    """
    Logical vault identity

    Attributes:
        whirlpool: Pool the vault is built on
        vault_id: Numeric vault id (u8 seed)
    """
    whirlpool: Pubkey
    vault_id: int = 0

    def __str__(self) -> str:
        return f"{self.whirlpool}#{self.vault_id}"


@dataclass(frozen=True)
class VaultAddresses:
    """
    Addresses derived for one VaultKey

    Pure function of (program id, whirlpool, vault id) plus the pool's two
    token mints.
    """
    vault_account: Pubkey
    vault_lp_token_mint: Pubkey
    vault_input_token_a_account: Pubkey
    vault_input_token_b_account: Pubkey

    def __iter__(self) -> Iterator[Pubkey]:
        return iter((
            self.vault_account,
            self.vault_lp_token_mint,
            self.vault_input_token_a_account,
            self.vault_input_token_b_account,
        ))


@dataclass(frozen=True)
class PositionAddresses:
    """
    Addresses derived for one position

    Tick arrays depend on the pool's tick spacing, so the bundle is only valid
    for the pool snapshot it was computed from.
    """
    whirlpool: Pubkey
    position: Pubkey
    position_token_account: Pubkey
    tick_array_lower: Pubkey
    tick_array_upper: Pubkey


@dataclass(frozen=True)
class DepositWithdrawAccounts:
    """Account set shared by deposit and withdraw"""
    user_signer: Pubkey
    vault_account: Pubkey
    vault_lp_token_mint: Pubkey
    vault_input_token_a_account: Pubkey
    vault_input_token_b_account: Pubkey
    user_lp_token_account: Pubkey
    user_token_a_account: Pubkey
    user_token_b_account: Pubkey
    whirlpool_program_id: Pubkey
    position: PositionAddresses
    whirlpool_token_vault_a: Pubkey
    whirlpool_token_vault_b: Pubkey
    token_program: Pubkey

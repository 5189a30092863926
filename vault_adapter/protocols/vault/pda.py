"""
Vault program address derivation

Seed-only derivations: pure functions of their inputs, no account state.
"""

from typing import Tuple

from solders.pubkey import Pubkey

from ...errors import ConfigurationError
from .constants import VAULT_SEED, LP_MINT_SEED, MAX_VAULT_ID


def vault_id_seed(vault_id: int) -> bytes:
    """Encode a vault id as its seed byte"""
    if not 0 <= vault_id <= MAX_VAULT_ID:
        raise ConfigurationError.invalid("vault_id", f"must be in [0, {MAX_VAULT_ID}], got {vault_id}")
    return bytes([vault_id])


def derive_vault_account(
    program_id: Pubkey,
    whirlpool: Pubkey,
    vault_id: int,
) -> Tuple[Pubkey, int]:
    """
    Derive vault account PDA

    PDA: [program_id, "vault", whirlpool, vault_id]

    Returns:
        (vault account, bump)
    """
    seeds = [VAULT_SEED, bytes(whirlpool), vault_id_seed(vault_id)]
    return Pubkey.find_program_address(seeds, program_id)


def derive_vault_lp_mint(
    program_id: Pubkey,
    vault_account: Pubkey,
) -> Tuple[Pubkey, int]:
    """
    Derive vault LP token mint PDA

    PDA: [program_id, "mint", vault_account]

    Returns:
        (LP mint, bump)
    """
    return Pubkey.find_program_address([LP_MINT_SEED, bytes(vault_account)], program_id)

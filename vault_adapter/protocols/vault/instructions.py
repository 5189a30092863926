"""
Vault Program Instruction Encoding

Each instruction declares its account list once, in program order. Callers
pass accounts by name; the encoder emits them in the declared order with
the declared signer/writable flags, then appends any remaining accounts.
"""

import struct
from typing import Dict, Mapping, NamedTuple, Optional, Sequence, Tuple

from solders.instruction import Instruction, AccountMeta
from solders.pubkey import Pubkey

from .constants import DISCRIMINATORS
from ...errors import ConfigurationError


class AccountSpec(NamedTuple):
    name: str
    is_signer: bool = False
    is_writable: bool = False


def _signer(name: str) -> AccountSpec:
    return AccountSpec(name, is_signer=True, is_writable=True)


def _mut(name: str) -> AccountSpec:
    return AccountSpec(name, is_writable=True)


def _ro(name: str) -> AccountSpec:
    return AccountSpec(name)


# Position bundle shared by deposit, withdraw, collect_fees and reinvest
_POSITION = (
    _mut("whirlpool"),
    _mut("position"),
    _ro("position_token_account"),
    _mut("tick_array_lower"),
    _mut("tick_array_upper"),
)

_DEPOSIT_WITHDRAW = (
    _signer("user_signer"),
    _mut("vault_account"),
    _mut("vault_lp_token_mint_pubkey"),
    _mut("vault_input_token_a_account"),
    _mut("vault_input_token_b_account"),
    _mut("user_lp_token_account"),
    _mut("user_token_a_account"),
    _mut("user_token_b_account"),
    _ro("whirlpool_program_id"),
) + _POSITION + (
    _mut("whirlpool_token_vault_a"),
    _mut("whirlpool_token_vault_b"),
    _ro("token_program"),
)

INSTRUCTION_ACCOUNTS: Dict[str, Tuple[AccountSpec, ...]] = {
    "initialize_vault": (
        _signer("user_signer"),
        _ro("whirlpool"),
        _ro("input_token_a_mint_address"),
        _ro("input_token_b_mint_address"),
        _mut("vault_account"),
        _mut("vault_lp_token_mint_pubkey"),
        _mut("vault_input_token_a_account"),
        _mut("vault_input_token_b_account"),
        _mut("dao_treasury_lp_token_account"),
        _ro("dao_treasury_owner"),
        _ro("system_program"),
        _ro("associated_token_program"),
        _ro("token_program"),
        _ro("rent"),
    ),
    "open_position": (
        _signer("user_signer"),
        _mut("vault_account"),
        _ro("whirlpool_program_id"),
        _mut("position"),
        _signer("position_mint"),
        _mut("position_token_account"),
        _ro("whirlpool"),
        _ro("token_program"),
        _ro("system_program"),
        _ro("rent"),
        _ro("associated_token_program"),
    ),
    "close_position": (
        _signer("user_signer"),
        _mut("vault_account"),
        _ro("whirlpool_program_id"),
        _mut("position"),
        _mut("position_mint"),
        _mut("position_token_account"),
        _ro("token_program"),
    ),
    "deposit": _DEPOSIT_WITHDRAW,
    "withdraw": _DEPOSIT_WITHDRAW,
    "collect_fees": (
        _signer("user_signer"),
        _mut("vault_account"),
        _ro("whirlpool_program_id"),
        _mut("vault_input_token_a_account"),
        _mut("vault_input_token_b_account"),
    ) + _POSITION + (
        _mut("whirlpool_token_vault_a"),
        _mut("whirlpool_token_vault_b"),
        _ro("token_program"),
    ),
    "collect_rewards": (
        _signer("user_signer"),
        _mut("vault_account"),
        _ro("whirlpool_program_id"),
        _mut("vault_rewards_token_account"),
        _mut("whirlpool_rewards_token_vault"),
    ) + _POSITION + (
        _ro("token_program"),
    ),
    "swap_rewards": (
        _signer("user_signer"),
        _mut("vault_account"),
        _mut("vault_rewards_token_account"),
        _mut("vault_destination_token_account"),
        _ro("token_program"),
        _ro("swap_program"),
    ),
    "reinvest": (
        _signer("user_signer"),
        _mut("vault_account"),
        _ro("whirlpool_program_id"),
        _mut("vault_input_token_a_account"),
        _mut("vault_input_token_b_account"),
    ) + _POSITION + (
        _mut("whirlpool_token_vault_a"),
        _mut("whirlpool_token_vault_b"),
        _ro("token_program"),
        _mut("tick_array_0"),
        _mut("tick_array_1"),
        _mut("tick_array_2"),
        _ro("oracle"),
    ),
    "rebalance": (
        _signer("user_signer"),
        _mut("vault_account"),
        _ro("whirlpool_program_id"),
        _mut("vault_input_token_a_account"),
        _mut("vault_input_token_b_account"),
        _mut("whirlpool"),
        _mut("whirlpool_token_vault_a"),
        _mut("whirlpool_token_vault_b"),
        _ro("token_program"),
        _mut("current_position"),
        _ro("current_position_token_account"),
        _mut("current_tick_array_lower"),
        _mut("current_tick_array_upper"),
        _mut("new_position"),
        _ro("new_position_token_account"),
        _mut("new_tick_array_lower"),
        _mut("new_tick_array_upper"),
    ),
    "set_vault_fee": (
        _signer("user_signer"),
        _mut("vault_account"),
    ),
    "set_vault_pause_status": (
        _signer("user_signer"),
        _mut("vault_account"),
    ),
    "set_market_rewards": (
        _signer("user_signer"),
        _mut("vault_account"),
        _ro("rewards_mint"),
        _ro("destination_token_account"),
    ),
}


def encode_instruction(
    program_id: Pubkey,
    name: str,
    accounts: Mapping[str, Pubkey],
    args: bytes = b"",
    remaining_accounts: Optional[Sequence[AccountMeta]] = None,
) -> Instruction:
    """
    Encode a vault program instruction

    Args:
        program_id: Vault program ID
        name: Instruction name (snake_case, as declared by the program)
        accounts: Account addresses keyed by declared account name
        args: Borsh-encoded instruction arguments
        remaining_accounts: Extra accounts appended after the declared ones

    Returns:
        Instruction

    Raises:
        ConfigurationError: Unknown instruction name, a declared account is
            missing or an unknown one is given
    """
    specs = INSTRUCTION_ACCOUNTS.get(name)
    if specs is None:
        raise ConfigurationError.invalid("instruction", f"unknown instruction {name}")

    declared = {spec.name for spec in specs}
    missing = [spec.name for spec in specs if spec.name not in accounts]
    unexpected = sorted(set(accounts) - declared)
    if missing:
        raise ConfigurationError.invalid("accounts", f"{name}: missing accounts {missing}")
    if unexpected:
        raise ConfigurationError.invalid("accounts", f"{name}: unexpected accounts {unexpected}")

    metas = [
        AccountMeta(accounts[spec.name], is_signer=spec.is_signer, is_writable=spec.is_writable)
        for spec in specs
    ]
    if remaining_accounts:
        metas.extend(remaining_accounts)

    data = DISCRIMINATORS[name] + args
    return Instruction(program_id, data, metas)


# Borsh argument helpers

def pack_u8(value: int) -> bytes:
    return struct.pack("<B", value)


def pack_bool(value: bool) -> bytes:
    return struct.pack("<?", value)


def pack_i32(value: int) -> bytes:
    return struct.pack("<i", value)


def pack_u64(value: int) -> bytes:
    return struct.pack("<Q", value)

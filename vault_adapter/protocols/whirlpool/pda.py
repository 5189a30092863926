"""
Orca Whirlpool address derivation and helper instructions
"""

import struct
from typing import Optional, Tuple

from solders.instruction import Instruction, AccountMeta
from solders.pubkey import Pubkey

from .constants import (
    WHIRLPOOL_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
    ASSOCIATED_TOKEN_PROGRAM_ID,
    SYSTEM_PROGRAM_ID,
    DISCRIMINATORS,
)


def get_associated_token_address(
    owner: Pubkey,
    mint: Pubkey,
    token_program: Optional[Pubkey] = None,
) -> Pubkey:
    """
    Get associated token account address.

    Off-curve owners (PDAs such as the vault account) are allowed.

    Args:
        owner: Wallet or PDA owner
        mint: Token mint
        token_program: Token program (defaults to Tokenkeg)

    Returns:
        ATA address
    """
    ata_program = Pubkey.from_string(ASSOCIATED_TOKEN_PROGRAM_ID)
    if token_program is None:
        token_program = Pubkey.from_string(TOKEN_PROGRAM_ID)

    seeds = [
        bytes(owner),
        bytes(token_program),
        bytes(mint),
    ]

    address, _ = Pubkey.find_program_address(seeds, ata_program)
    return address


def derive_tick_array(
    whirlpool: Pubkey,
    start_tick_index: int,
    program_id: Optional[Pubkey] = None,
) -> Pubkey:
    """
    Derive tick array PDA.

    Note: Whirlpool seeds the start index as its decimal string, not as bytes.

    Args:
        whirlpool: Pool address
        start_tick_index: Start tick of the array
        program_id: Program ID (defaults to WHIRLPOOL_PROGRAM_ID)

    Returns:
        Tick array address
    """
    if program_id is None:
        program_id = Pubkey.from_string(WHIRLPOOL_PROGRAM_ID)

    seeds = [
        b"tick_array",
        bytes(whirlpool),
        str(start_tick_index).encode("utf-8"),
    ]

    address, _ = Pubkey.find_program_address(seeds, program_id)
    return address


def derive_position(
    position_mint: Pubkey,
    program_id: Optional[Pubkey] = None,
) -> Tuple[Pubkey, int]:
    """
    Derive position PDA from its mint.

    Returns:
        (position address, bump)
    """
    if program_id is None:
        program_id = Pubkey.from_string(WHIRLPOOL_PROGRAM_ID)

    return Pubkey.find_program_address([b"position", bytes(position_mint)], program_id)


def derive_oracle(
    whirlpool: Pubkey,
    program_id: Optional[Pubkey] = None,
) -> Pubkey:
    """Derive the oracle PDA consumed by swaps"""
    if program_id is None:
        program_id = Pubkey.from_string(WHIRLPOOL_PROGRAM_ID)

    address, _ = Pubkey.find_program_address([b"oracle", bytes(whirlpool)], program_id)
    return address


def build_create_ata_idempotent_instruction(
    payer: Pubkey,
    owner: Pubkey,
    mint: Pubkey,
    token_program: Optional[Pubkey] = None,
) -> Instruction:
    """
    Build create_associated_token_account_idempotent instruction.

    This creates the ATA if it doesn't exist, or does nothing if it does.
    """
    ata_program = Pubkey.from_string(ASSOCIATED_TOKEN_PROGRAM_ID)
    system_program = Pubkey.from_string(SYSTEM_PROGRAM_ID)

    if token_program is None:
        token_program = Pubkey.from_string(TOKEN_PROGRAM_ID)

    ata_address = get_associated_token_address(owner, mint, token_program)

    accounts = [
        AccountMeta(payer, is_signer=True, is_writable=True),
        AccountMeta(ata_address, is_signer=False, is_writable=True),
        AccountMeta(owner, is_signer=False, is_writable=False),
        AccountMeta(mint, is_signer=False, is_writable=False),
        AccountMeta(system_program, is_signer=False, is_writable=False),
        AccountMeta(token_program, is_signer=False, is_writable=False),
    ]

    # Instruction data: single byte 1 for idempotent create
    return Instruction(ata_program, bytes([1]), accounts)


def build_initialize_tick_array_instruction(
    whirlpool: Pubkey,
    funder: Pubkey,
    start_tick_index: int,
    program_id: Optional[Pubkey] = None,
) -> Instruction:
    """
    Build Whirlpool initialize_tick_array instruction.

    Fails on-chain if the tick array already exists, callers should only
    include it for missing arrays.
    """
    if program_id is None:
        program_id = Pubkey.from_string(WHIRLPOOL_PROGRAM_ID)

    tick_array = derive_tick_array(whirlpool, start_tick_index, program_id)

    data = bytearray(DISCRIMINATORS["initialize_tick_array"])
    data.extend(struct.pack("<i", start_tick_index))

    accounts = [
        AccountMeta(whirlpool, is_signer=False, is_writable=False),
        AccountMeta(funder, is_signer=True, is_writable=True),
        AccountMeta(tick_array, is_signer=False, is_writable=True),
        AccountMeta(Pubkey.from_string(SYSTEM_PROGRAM_ID), is_signer=False, is_writable=False),
    ]

    return Instruction(program_id, bytes(data), accounts)

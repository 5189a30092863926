"""
Orca Whirlpool Account Parsers

Parses whirlpool, position, SPL mint and SPL token account data. Each parser raises
ValueError (or struct.error) on malformed input instead of returning a
partial view; the account cache turns these into DecodeError.
"""

import struct

from solders.pubkey import Pubkey

from ...types import WhirlpoolView, PositionView, MintView, TokenAccountView, RewardInfoView
from .constants import (
    ACCOUNT_DISCRIMINATORS,
    WHIRLPOOL_ACCOUNT_SIZE,
    POSITION_ACCOUNT_SIZE,
    MINT_ACCOUNT_SIZE,
    TOKEN_ACCOUNT_SIZE,
    NUM_REWARDS,
)

REWARD_INFO_SIZE = 128


def parse_whirlpool(address: Pubkey, account_data: bytes) -> WhirlpoolView:
    """
    Parse Whirlpool account

    Layout:
    - blob(8): discriminator
    - publicKey(32): whirlpoolsConfig
    - u8: whirlpoolBump
    - u16: tickSpacing
    - [u8; 2]: tickSpacingSeed
    - u16: feeRate
    - u16: protocolFeeRate
    - u128: liquidity
    - u128: sqrtPrice
    - i32: tickCurrentIndex
    - u64: protocolFeeOwedA
    - u64: protocolFeeOwedB
    - publicKey(32): tokenMintA
    - publicKey(32): tokenVaultA
    - u128: feeGrowthGlobalA
    - publicKey(32): tokenMintB
    - publicKey(32): tokenVaultB
    - u128: feeGrowthGlobalB
    - u64: rewardLastUpdatedTimestamp
    - RewardInfo[3]: rewardInfos (128 bytes each)

    Args:
        address: Account address
        account_data: Raw account data bytes

    Returns:
        WhirlpoolView
    """
    _check_account(account_data, "Whirlpool", WHIRLPOOL_ACCOUNT_SIZE)

    offset = 8

    whirlpools_config = _pubkey_at(account_data, offset)
    offset += 32

    # whirlpoolBump
    offset += 1

    tick_spacing = struct.unpack_from("<H", account_data, offset)[0]
    offset += 2

    # tickSpacingSeed
    offset += 2

    fee_rate = struct.unpack_from("<H", account_data, offset)[0]
    offset += 2

    protocol_fee_rate = struct.unpack_from("<H", account_data, offset)[0]
    offset += 2

    liquidity = _u128_at(account_data, offset)
    offset += 16

    sqrt_price = _u128_at(account_data, offset)
    offset += 16

    tick_current_index = struct.unpack_from("<i", account_data, offset)[0]
    offset += 4

    # protocolFeeOwedA, protocolFeeOwedB
    offset += 16

    token_mint_a = _pubkey_at(account_data, offset)
    offset += 32

    token_vault_a = _pubkey_at(account_data, offset)
    offset += 32

    # feeGrowthGlobalA
    offset += 16

    token_mint_b = _pubkey_at(account_data, offset)
    offset += 32

    token_vault_b = _pubkey_at(account_data, offset)
    offset += 32

    # feeGrowthGlobalB, rewardLastUpdatedTimestamp
    offset += 16 + 8

    reward_infos = []
    for _ in range(NUM_REWARDS):
        reward_infos.append(_parse_reward_info(account_data, offset))
        offset += REWARD_INFO_SIZE

    if tick_spacing == 0:
        raise ValueError("tick spacing is zero")

    return WhirlpoolView(
        address=address,
        whirlpools_config=whirlpools_config,
        tick_spacing=tick_spacing,
        fee_rate=fee_rate,
        protocol_fee_rate=protocol_fee_rate,
        liquidity=liquidity,
        sqrt_price=sqrt_price,
        tick_current_index=tick_current_index,
        token_mint_a=token_mint_a,
        token_vault_a=token_vault_a,
        token_mint_b=token_mint_b,
        token_vault_b=token_vault_b,
        reward_infos=tuple(reward_infos),
    )


def parse_position(address: Pubkey, account_data: bytes) -> PositionView:
    """
    Parse Whirlpool position account

    Layout:
    - blob(8): discriminator
    - publicKey(32): whirlpool
    - publicKey(32): positionMint
    - u128: liquidity
    - i32: tickLowerIndex
    - i32: tickUpperIndex
    - u128: feeGrowthCheckpointA
    - u64: feeOwedA
    - u128: feeGrowthCheckpointB
    - u64: feeOwedB
    - PositionRewardInfo[3] (24 bytes each)
    """
    _check_account(account_data, "Position", POSITION_ACCOUNT_SIZE)

    offset = 8

    whirlpool = _pubkey_at(account_data, offset)
    offset += 32

    position_mint = _pubkey_at(account_data, offset)
    offset += 32

    liquidity = _u128_at(account_data, offset)
    offset += 16

    tick_lower_index, tick_upper_index = struct.unpack_from("<ii", account_data, offset)
    offset += 8

    # feeGrowthCheckpointA
    offset += 16
    fee_owed_a = struct.unpack_from("<Q", account_data, offset)[0]
    offset += 8

    # feeGrowthCheckpointB
    offset += 16
    fee_owed_b = struct.unpack_from("<Q", account_data, offset)[0]

    if tick_lower_index >= tick_upper_index:
        raise ValueError(f"tick bounds out of order ({tick_lower_index} >= {tick_upper_index})")

    return PositionView(
        address=address,
        whirlpool=whirlpool,
        position_mint=position_mint,
        liquidity=liquidity,
        tick_lower_index=tick_lower_index,
        tick_upper_index=tick_upper_index,
        fee_owed_a=fee_owed_a,
        fee_owed_b=fee_owed_b,
    )


def parse_mint(address: Pubkey, account_data: bytes) -> MintView:
    """
    Parse SPL token mint account (82 bytes, no discriminator)

    Layout:
    - u32: mintAuthorityOption
    - publicKey(32): mintAuthority
    - u64: supply
    - u8: decimals
    - u8: isInitialized
    - u32: freezeAuthorityOption
    - publicKey(32): freezeAuthority
    """
    if len(account_data) < MINT_ACCOUNT_SIZE:
        raise ValueError(f"expected at least {MINT_ACCOUNT_SIZE} bytes, got {len(account_data)}")

    mint_authority_option = struct.unpack_from("<I", account_data, 0)[0]
    mint_authority = _pubkey_at(account_data, 4) if mint_authority_option else None
    supply = struct.unpack_from("<Q", account_data, 36)[0]
    decimals = account_data[44]
    is_initialized = account_data[45]
    freeze_authority_option = struct.unpack_from("<I", account_data, 46)[0]
    freeze_authority = _pubkey_at(account_data, 50) if freeze_authority_option else None

    if is_initialized not in (0, 1):
        raise ValueError(f"invalid isInitialized flag {is_initialized}")

    return MintView(
        address=address,
        supply=supply,
        decimals=decimals,
        is_initialized=bool(is_initialized),
        mint_authority=mint_authority,
        freeze_authority=freeze_authority,
    )


def parse_token_account(address: Pubkey, account_data: bytes) -> TokenAccountView:
    """
    Parse SPL token account (165 bytes, no discriminator)

    Layout:
    - publicKey(32): mint
    - publicKey(32): owner
    - u64: amount
    - ...delegate, state, isNative, delegatedAmount, closeAuthority
    """
    if len(account_data) < TOKEN_ACCOUNT_SIZE:
        raise ValueError(f"expected at least {TOKEN_ACCOUNT_SIZE} bytes, got {len(account_data)}")

    state = account_data[108]
    if state == 0:
        raise ValueError("token account is uninitialized")

    return TokenAccountView(
        address=address,
        mint=_pubkey_at(account_data, 0),
        owner=_pubkey_at(account_data, 32),
        amount=struct.unpack_from("<Q", account_data, 64)[0],
    )


def _parse_reward_info(account_data: bytes, offset: int) -> RewardInfoView:
    """
    Parse WhirlpoolRewardInfo struct (128 bytes)

    Layout:
    - mint: Pubkey (32 bytes)
    - vault: Pubkey (32 bytes)
    - authority: Pubkey (32 bytes)
    - emissions_per_second_x64: u128 (16 bytes)
    - growth_global_x64: u128 (16 bytes)
    """
    return RewardInfoView(
        mint=_pubkey_at(account_data, offset),
        vault=_pubkey_at(account_data, offset + 32),
        authority=_pubkey_at(account_data, offset + 64),
        emissions_per_second_x64=_u128_at(account_data, offset + 96),
        growth_global_x64=_u128_at(account_data, offset + 112),
    )


def _check_account(account_data: bytes, name: str, size: int):
    if len(account_data) < size:
        raise ValueError(f"expected at least {size} bytes, got {len(account_data)}")
    if account_data[:8] != ACCOUNT_DISCRIMINATORS[name]:
        raise ValueError(f"discriminator {account_data[:8].hex()} is not a {name} account")


def _pubkey_at(data: bytes, offset: int) -> Pubkey:
    return Pubkey.from_bytes(data[offset:offset + 32])


def _u128_at(data: bytes, offset: int) -> int:
    return int.from_bytes(data[offset:offset + 16], "little")

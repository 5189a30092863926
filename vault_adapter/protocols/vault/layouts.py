"""
Vault Account Parser

Parses the vault program's VaultAccount (Borsh encoded).
"""

import struct

from solders.pubkey import Pubkey

from ...types import VaultView, PositionInfo, MarketRewardsInfo
from .constants import ACCOUNT_DISCRIMINATORS

POSITION_INFO_SIZE = 40
MARKET_REWARDS_INFO_SIZE = 73


def parse_vault(address: Pubkey, account_data: bytes) -> VaultView:
    """
    Parse vault account

    Layout:
    - blob(8): discriminator
    - u8: version
    - u8: bump
    - u8: id
    - publicKey(32): whirlpoolId
    - publicKey(32): inputTokenAMintPubkey
    - publicKey(32): inputTokenBMintPubkey
    - u64: fee
    - bool: isPaused
    - Vec<PositionInfo>: positions
        - publicKey(32): pubkey
        - i32: lowerTick
        - i32: upperTick
    - Vec<MarketRewardsInfo>: marketRewards
        - publicKey(32): rewardsMint
        - publicKey(32): destinationTokenAccount
        - u8: id (SwapRoute)
        - u64: minAmountOut

    Args:
        address: Account address
        account_data: Raw account data bytes

    Returns:
        VaultView
    """
    if account_data[:8] != ACCOUNT_DISCRIMINATORS["VaultAccount"]:
        raise ValueError(f"discriminator {account_data[:8].hex()} is not a VaultAccount")

    offset = 8

    version, bump, vault_id = struct.unpack_from("<BBB", account_data, offset)
    offset += 3

    whirlpool = _pubkey_at(account_data, offset)
    offset += 32

    input_token_a_mint = _pubkey_at(account_data, offset)
    offset += 32

    input_token_b_mint = _pubkey_at(account_data, offset)
    offset += 32

    fee, paused = struct.unpack_from("<QB", account_data, offset)
    offset += 9

    positions_len = _vec_len(account_data, offset, POSITION_INFO_SIZE)
    offset += 4
    positions = []
    for _ in range(positions_len):
        pubkey = _pubkey_at(account_data, offset)
        lower_tick, upper_tick = struct.unpack_from("<ii", account_data, offset + 32)
        positions.append(PositionInfo(pubkey=pubkey, lower_tick=lower_tick, upper_tick=upper_tick))
        offset += POSITION_INFO_SIZE

    rewards_len = _vec_len(account_data, offset, MARKET_REWARDS_INFO_SIZE)
    offset += 4
    market_rewards = []
    for _ in range(rewards_len):
        rewards_mint = _pubkey_at(account_data, offset)
        destination = _pubkey_at(account_data, offset + 32)
        route_id, min_amount_out = struct.unpack_from("<BQ", account_data, offset + 64)
        market_rewards.append(MarketRewardsInfo(
            rewards_mint=rewards_mint,
            destination_token_account=destination,
            route_id=route_id,
            min_amount_out=min_amount_out,
        ))
        offset += MARKET_REWARDS_INFO_SIZE

    if paused not in (0, 1):
        raise ValueError(f"invalid isPaused flag {paused}")

    return VaultView(
        address=address,
        version=version,
        bump=bump,
        id=vault_id,
        whirlpool=whirlpool,
        input_token_a_mint=input_token_a_mint,
        input_token_b_mint=input_token_b_mint,
        fee=fee,
        paused=bool(paused),
        positions=tuple(positions),
        market_rewards=tuple(market_rewards),
    )


def _vec_len(data: bytes, offset: int, item_size: int) -> int:
    """Read a Borsh vec length and check the items fit in the buffer"""
    length = struct.unpack_from("<I", data, offset)[0]
    available = len(data) - offset - 4
    if length * item_size > available:
        raise ValueError(f"vec of {length} items does not fit in {available} bytes")
    return length


def _pubkey_at(data: bytes, offset: int) -> Pubkey:
    if offset + 32 > len(data):
        raise ValueError(f"truncated pubkey at offset {offset}")
    return Pubkey.from_bytes(data[offset:offset + 32])

"""
Shared helpers for unit tests.

Builds raw account bytes in the on-chain layouts and provides an in-memory
account reader that records every batch it serves.
"""

import asyncio
import struct
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from solders.pubkey import Pubkey

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from vault_adapter.protocols.vault.constants import ACCOUNT_DISCRIMINATORS as VAULT_DISCRIMINATORS
from vault_adapter.protocols.whirlpool.constants import ACCOUNT_DISCRIMINATORS as WHIRLPOOL_DISCRIMINATORS
from vault_adapter.types import AccountBlob, VaultKey


def key(n: int) -> Pubkey:
    """Deterministic test address"""
    return Pubkey.from_bytes(bytes([n]) * 32)


PROGRAM_ID = key(200)
WHIRLPOOL = key(1)
MINT_A = key(2)
MINT_B = key(3)
TOKEN_VAULT_A = key(4)
TOKEN_VAULT_B = key(5)
REWARD_MINT = key(6)
REWARD_VAULT = key(7)
POSITION = key(10)
POSITION_MINT = key(11)
USER = key(50)

Q64 = 2 ** 64


def run(coro):
    """Drive a coroutine to completion"""
    return asyncio.run(coro)


def _u128(value: int) -> bytes:
    return value.to_bytes(16, "little")


def whirlpool_bytes(
    tick_spacing: int = 64,
    tick_current_index: int = 1000,
    sqrt_price: int = Q64,
    liquidity: int = 10 ** 12,
    token_mint_a: Pubkey = MINT_A,
    token_vault_a: Pubkey = TOKEN_VAULT_A,
    token_mint_b: Pubkey = MINT_B,
    token_vault_b: Pubkey = TOKEN_VAULT_B,
    rewards: Sequence[tuple] = (),
) -> bytes:
    """Whirlpool account (653 bytes); rewards are (mint, vault) pairs"""
    data = bytearray(WHIRLPOOL_DISCRIMINATORS["Whirlpool"])
    data += bytes(key(99))                          # whirlpoolsConfig
    data += struct.pack("<BH", 255, tick_spacing)    # bump, tickSpacing
    data += struct.pack("<H", tick_spacing)          # tickSpacingSeed
    data += struct.pack("<HH", 3000, 300)            # feeRate, protocolFeeRate
    data += _u128(liquidity)
    data += _u128(sqrt_price)
    data += struct.pack("<i", tick_current_index)
    data += struct.pack("<QQ", 0, 0)                 # protocol fees owed
    data += bytes(token_mint_a) + bytes(token_vault_a) + _u128(0)
    data += bytes(token_mint_b) + bytes(token_vault_b) + _u128(0)
    data += struct.pack("<Q", 0)                     # rewardLastUpdatedTimestamp
    for i in range(3):
        if i < len(rewards):
            mint, vault = rewards[i]
            data += bytes(mint) + bytes(vault) + bytes(key(98)) + _u128(Q64) + _u128(0)
        else:
            data += bytes(128)
    assert len(data) == 653
    return bytes(data)


def position_bytes(
    whirlpool: Pubkey = WHIRLPOOL,
    position_mint: Pubkey = POSITION_MINT,
    liquidity: int = 10 ** 9,
    tick_lower_index: int = -1280,
    tick_upper_index: int = 2560,
) -> bytes:
    """Whirlpool position account (216 bytes)"""
    data = bytearray(WHIRLPOOL_DISCRIMINATORS["Position"])
    data += bytes(whirlpool) + bytes(position_mint)
    data += _u128(liquidity)
    data += struct.pack("<ii", tick_lower_index, tick_upper_index)
    data += _u128(0) + struct.pack("<Q", 11)        # fee checkpoint A, feeOwedA
    data += _u128(0) + struct.pack("<Q", 22)        # fee checkpoint B, feeOwedB
    data += bytes(72)                                # reward infos
    assert len(data) == 216
    return bytes(data)


def mint_bytes(decimals: int = 6, supply: int = 10 ** 15) -> bytes:
    """SPL mint account (82 bytes)"""
    data = struct.pack("<I", 0) + bytes(32)
    data += struct.pack("<Q", supply)
    data += struct.pack("<BB", decimals, 1)
    data += struct.pack("<I", 0) + bytes(32)
    assert len(data) == 82
    return data


def token_account_bytes(mint: Pubkey, owner: Pubkey, amount: int) -> bytes:
    """SPL token account (165 bytes)"""
    data = bytes(mint) + bytes(owner) + struct.pack("<Q", amount)
    data += struct.pack("<I", 0) + bytes(32)        # delegate
    data += bytes([1])                               # state: initialized
    data += struct.pack("<IQ", 0, 0)                 # isNative
    data += struct.pack("<Q", 0)                     # delegatedAmount
    data += struct.pack("<I", 0) + bytes(32)        # closeAuthority
    assert len(data) == 165
    return data


def vault_bytes(
    whirlpool: Pubkey = WHIRLPOOL,
    vault_id: int = 0,
    positions: Sequence[tuple] = (),
    market_rewards: Sequence[tuple] = (),
    fee: int = 10,
    paused: bool = False,
    input_token_a_mint: Pubkey = MINT_A,
    input_token_b_mint: Pubkey = MINT_B,
) -> bytes:
    """
    Vault account

    positions are (pubkey, lower_tick, upper_tick); market_rewards are
    (rewards_mint, destination, route_id, min_amount_out).
    """
    data = bytearray(VAULT_DISCRIMINATORS["VaultAccount"])
    data += struct.pack("<BBB", 1, 254, vault_id)
    data += bytes(whirlpool) + bytes(input_token_a_mint) + bytes(input_token_b_mint)
    data += struct.pack("<QB", fee, int(paused))
    data += struct.pack("<I", len(positions))
    for pubkey, lower, upper in positions:
        data += bytes(pubkey) + struct.pack("<ii", lower, upper)
    data += struct.pack("<I", len(market_rewards))
    for mint, destination, route_id, min_amount_out in market_rewards:
        data += bytes(mint) + bytes(destination) + struct.pack("<BQ", route_id, min_amount_out)
    return bytes(data)


class FakeReader:
    """In-memory AccountReader that records each batch it serves"""

    def __init__(self, accounts: Optional[Dict[Pubkey, bytes]] = None):
        self.accounts: Dict[str, bytes] = {}
        self.calls: List[List[Pubkey]] = []
        for address, data in (accounts or {}).items():
            self.put(address, data)

    def put(self, address: Pubkey, data: bytes):
        self.accounts[str(address)] = data

    def remove(self, address: Pubkey):
        self.accounts.pop(str(address), None)

    async def batch_get(self, addresses: Sequence[Pubkey]) -> List[Optional[AccountBlob]]:
        self.calls.append(list(addresses))
        result = []
        for address in addresses:
            data = self.accounts.get(str(address))
            result.append(AccountBlob(address=address, data=data) if data is not None else None)
        return result

    @property
    def call_count(self) -> int:
        return len(self.calls)


@dataclass
class VaultWorld:
    """A pool, its vault and an open position, served by a FakeReader"""
    reader: FakeReader
    vault_key: VaultKey
    vault_account: Pubkey
    tick_spacing: int
    positions: List[tuple] = field(default_factory=list)


def build_vault_world(
    vault_id: int = 0,
    tick_spacing: int = 64,
    tick_current_index: int = 1000,
    sqrt_price: Optional[int] = None,
    with_position: bool = True,
    idle_a: int = 1_000_000,
    idle_b: int = 1_000_000,
    rewards: Sequence[tuple] = ((REWARD_MINT, REWARD_VAULT),),
    market_rewards: Sequence[tuple] = (),
) -> VaultWorld:
    """Populate a FakeReader with a consistent pool/vault/position set"""
    from vault_adapter.protocols.vault import derive_vault_account
    from vault_adapter.protocols.whirlpool import get_associated_token_address
    from vault_adapter.protocols.whirlpool.math import tick_to_sqrt_price_x64

    if sqrt_price is None:
        sqrt_price = tick_to_sqrt_price_x64(tick_current_index)

    vault_key = VaultKey(WHIRLPOOL, vault_id)
    vault_account, _ = derive_vault_account(PROGRAM_ID, WHIRLPOOL, vault_id)
    positions = [(POSITION, -1280, 2560)] if with_position else []

    reader = FakeReader({
        WHIRLPOOL: whirlpool_bytes(
            tick_spacing=tick_spacing,
            tick_current_index=tick_current_index,
            sqrt_price=sqrt_price,
            rewards=rewards,
        ),
        vault_account: vault_bytes(
            vault_id=vault_id, positions=positions, market_rewards=market_rewards
        ),
        POSITION: position_bytes(),
        MINT_A: mint_bytes(decimals=9),
        MINT_B: mint_bytes(decimals=6),
        get_associated_token_address(vault_account, MINT_A): token_account_bytes(MINT_A, vault_account, idle_a),
        get_associated_token_address(vault_account, MINT_B): token_account_bytes(MINT_B, vault_account, idle_b),
    })
    return VaultWorld(
        reader=reader,
        vault_key=vault_key,
        vault_account=vault_account,
        tick_spacing=tick_spacing,
        positions=positions,
    )


def make_resolver(world: VaultWorld):
    """AccountCache + AddressResolver over the world's reader"""
    from vault_adapter.modules import AccountCache, AddressResolver

    cache = AccountCache(world.reader)
    return AddressResolver(cache, PROGRAM_ID)

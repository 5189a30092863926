"""
Address Resolver

Derives every program-owned address the vault program needs. Seed-only
addresses are pure functions of their inputs; anything that depends on
pool, position or vault state is resolved in explicit stages through the
AccountCache.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Tuple

from solders.pubkey import Pubkey

from ..errors import ConfigurationError
from ..protocols.vault import SwapRoute, derive_vault_account, derive_vault_lp_mint
from ..protocols.whirlpool import (
    WHIRLPOOL_PROGRAM_ID,
    get_associated_token_address,
    derive_tick_array,
)
from ..protocols.whirlpool.constants import TOKEN_PROGRAM_ID
from ..protocols.whirlpool.math import get_start_tick_index
from ..types import (
    VaultKey,
    VaultAddresses,
    PositionAddresses,
    DepositWithdrawAccounts,
    MarketRewardsInfo,
    WhirlpoolView,
)
from .account_cache import AccountCache

logger = logging.getLogger(__name__)


class AddressResolver:
    """
    Vault address resolver

    Usage:
        resolver = AddressResolver(cache, program_id)

        key = VaultKey(whirlpool, vault_id=0)
        addresses = await resolver.vault_addresses(key)
        position = await resolver.active_position(key)
        accounts = await resolver.deposit_withdraw_accounts(user, key)
    """

    def __init__(
        self,
        cache: AccountCache,
        program_id: Pubkey,
        whirlpool_program_id: Optional[Pubkey] = None,
    ):
        """
        Initialize resolver

        Args:
            cache: Account cache shared with the rest of the session
            program_id: Vault program ID
            whirlpool_program_id: Whirlpool program ID (defaults to mainnet)
        """
        self._cache = cache
        self._program_id = program_id
        self._whirlpool_program_id = whirlpool_program_id or Pubkey.from_string(WHIRLPOOL_PROGRAM_ID)
        self._token_program_id = Pubkey.from_string(TOKEN_PROGRAM_ID)
        self._vault_addresses: Dict[VaultKey, VaultAddresses] = {}

    @property
    def cache(self) -> AccountCache:
        return self._cache

    @property
    def program_id(self) -> Pubkey:
        return self._program_id

    @property
    def whirlpool_program_id(self) -> Pubkey:
        return self._whirlpool_program_id

    @property
    def token_program_id(self) -> Pubkey:
        return self._token_program_id

    # Seed-only derivations

    def vault_account(self, vault_key: VaultKey) -> Pubkey:
        """Vault account PDA (no network access)"""
        address, _ = derive_vault_account(self._program_id, vault_key.whirlpool, vault_key.vault_id)
        return address

    def vault_lp_token_mint(self, vault_account: Pubkey) -> Pubkey:
        """Vault LP mint PDA (no network access)"""
        address, _ = derive_vault_lp_mint(self._program_id, vault_account)
        return address

    def associated_token_account(self, owner: Pubkey, mint: Pubkey) -> Pubkey:
        return get_associated_token_address(owner, mint, self._token_program_id)

    def tick_array(self, whirlpool: Pubkey, start_tick_index: int) -> Pubkey:
        return derive_tick_array(whirlpool, start_tick_index, self._whirlpool_program_id)

    # State-dependent resolution

    async def vault_addresses(self, vault_key: VaultKey) -> VaultAddresses:
        """
        Resolve the vault's address bundle

        Memoized per key. The first call fetches the pool once to learn its
        token mints; later calls return the memoized bundle.

        Args:
            vault_key: Pool + vault id

        Returns:
            VaultAddresses
        """
        cached = self._vault_addresses.get(vault_key)
        if cached is not None:
            return cached

        vault_account = self.vault_account(vault_key)
        pool = await self._cache.get_whirlpool(vault_key.whirlpool)

        addresses = VaultAddresses(
            vault_account=vault_account,
            vault_lp_token_mint=self.vault_lp_token_mint(vault_account),
            vault_input_token_a_account=self.associated_token_account(vault_account, pool.token_mint_a),
            vault_input_token_b_account=self.associated_token_account(vault_account, pool.token_mint_b),
        )
        self._vault_addresses[vault_key] = addresses
        logger.debug(f"Resolved vault {vault_key}: account={vault_account}")
        return addresses

    async def position_addresses(self, position: Pubkey, vault_key: VaultKey) -> PositionAddresses:
        """
        Resolve the accounts of one Whirlpool position held by the vault

        Stages: position -> pool -> vault addresses. Tick arrays follow the
        pool's tick spacing, so the result is only valid for the pool
        snapshot it was computed from.

        Raises:
            ConfigurationError: Position belongs to a different pool
        """
        position_view = await self._cache.get_position(position)
        if position_view.whirlpool != vault_key.whirlpool:
            raise ConfigurationError.position_pool_mismatch(
                str(position), str(vault_key.whirlpool), str(position_view.whirlpool)
            )

        pool = await self._cache.get_whirlpool(position_view.whirlpool)
        vault = await self.vault_addresses(vault_key)

        lower_start = get_start_tick_index(position_view.tick_lower_index, pool.tick_spacing)
        upper_start = get_start_tick_index(position_view.tick_upper_index, pool.tick_spacing)

        return PositionAddresses(
            whirlpool=pool.address,
            position=position,
            position_token_account=self.associated_token_account(
                vault.vault_account, position_view.position_mint
            ),
            tick_array_lower=self.tick_array(pool.address, lower_start),
            tick_array_upper=self.tick_array(pool.address, upper_start),
        )

    async def active_position(self, vault_key: VaultKey) -> Pubkey:
        """
        Current open position of the vault

        Always re-reads the vault account; the tracked position list changes
        with every open/close/rebalance.

        Raises:
            ConfigurationError: Vault tracks no position
        """
        vault_account = self.vault_account(vault_key)
        vault = await self._cache.get_vault(vault_account, force_refresh=True)
        if not vault.positions:
            raise ConfigurationError.no_open_position(str(vault_account))
        return vault.positions[0].pubkey

    async def deposit_withdraw_accounts(
        self,
        user: Pubkey,
        vault_key: VaultKey,
        position: Optional[Pubkey] = None,
    ) -> DepositWithdrawAccounts:
        """
        Accounts for deposit and withdraw

        Args:
            user: User wallet (signer, owner of the user token accounts)
            vault_key: Pool + vault id
            position: Position to use (defaults to the vault's active position)

        Returns:
            DepositWithdrawAccounts
        """
        if position is None:
            vault, position = await asyncio.gather(
                self.vault_addresses(vault_key),
                self.active_position(vault_key),
            )
        else:
            vault = await self.vault_addresses(vault_key)

        position_accounts = await self.position_addresses(position, vault_key)
        pool = await self._cache.get_whirlpool(vault_key.whirlpool)
        user_lp, user_a, user_b = self.user_token_accounts(user, vault, pool)

        return DepositWithdrawAccounts(
            user_signer=user,
            vault_account=vault.vault_account,
            vault_lp_token_mint=vault.vault_lp_token_mint,
            vault_input_token_a_account=vault.vault_input_token_a_account,
            vault_input_token_b_account=vault.vault_input_token_b_account,
            user_lp_token_account=user_lp,
            user_token_a_account=user_a,
            user_token_b_account=user_b,
            whirlpool_program_id=self._whirlpool_program_id,
            position=position_accounts,
            whirlpool_token_vault_a=pool.token_vault_a,
            whirlpool_token_vault_b=pool.token_vault_b,
            token_program=self._token_program_id,
        )

    def user_token_accounts(
        self,
        user: Pubkey,
        vault: VaultAddresses,
        pool: WhirlpoolView,
    ) -> Tuple[Pubkey, Pubkey, Pubkey]:
        """User (LP, token A, token B) associated token accounts"""
        return (
            self.associated_token_account(user, vault.vault_lp_token_mint),
            self.associated_token_account(user, pool.token_mint_a),
            self.associated_token_account(user, pool.token_mint_b),
        )

    async def reward_accounts(self, vault_key: VaultKey) -> List[Tuple[int, Pubkey, Pubkey]]:
        """
        Vault-owned token accounts for the pool's reward mints

        Returns:
            (reward index, reward mint, vault reward token account) for each
            initialized reward slot, in slot order
        """
        vault = await self.vault_addresses(vault_key)
        pool = await self._cache.get_whirlpool(vault_key.whirlpool)
        return [
            (index, info.mint, self.associated_token_account(vault.vault_account, info.mint))
            for index, info in enumerate(pool.reward_infos)
            if info.initialized
        ]

    async def market_rewards(self, vault_key: VaultKey, rewards_mint: Pubkey) -> MarketRewardsInfo:
        """
        Swap route configured for a reward mint

        Raises:
            ConfigurationError: No route (or an unset route) for the mint
        """
        vault_account = self.vault_account(vault_key)
        vault = await self._cache.get_vault(vault_account, force_refresh=True)
        info = vault.market_rewards_for(rewards_mint)
        if info is None or info.route_id == SwapRoute.NOT_SET:
            raise ConfigurationError.no_swap_route(str(vault_account), str(rewards_mint))
        return info

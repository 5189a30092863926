"""
Instruction Assembler

Gathers the account set each vault program operation expects and hands it
to the instruction encoder. All instructions are returned unsigned; the
caller owns signing and submission.
"""

import asyncio
import logging
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Union

from solders.instruction import Instruction, AccountMeta
from solders.pubkey import Pubkey

from ..config import config as global_config
from ..errors import ConfigurationError
from ..protocols.vault import SwapRoute, encode_instruction
from ..protocols.vault.constants import MAX_VAULT_FEE_BPS
from ..protocols.vault.instructions import pack_u8, pack_bool, pack_i32, pack_u64
from ..protocols.whirlpool import MAX_SWAP_TICK_ARRAYS, derive_position, derive_oracle
from ..protocols.whirlpool.constants import (
    ASSOCIATED_TOKEN_PROGRAM_ID,
    SYSTEM_PROGRAM_ID,
    RENT_SYSVAR_ID,
)
from ..protocols.whirlpool.math import (
    price_to_tick_index,
    get_initializable_tick_index,
    get_start_tick_index,
)
from ..protocols.whirlpool.pda import (
    build_create_ata_idempotent_instruction,
    build_initialize_tick_array_instruction,
)
from ..types import VaultKey, PositionAddresses
from .resolver import AddressResolver
from .swap_direction import is_token_a_to_b
from .tick_window import tick_array_window

logger = logging.getLogger(__name__)

# Orca legacy token swap program, used by the ORCA swap route
ORCA_TOKEN_SWAP_PROGRAM_ID = "9W959DqEETiGZocYWCQPaJ6sBmUzgfxXfqGeTEdp3aQP"


def _position_accounts(position: PositionAddresses) -> Dict[str, Pubkey]:
    return {
        "whirlpool": position.whirlpool,
        "position": position.position,
        "position_token_account": position.position_token_account,
        "tick_array_lower": position.tick_array_lower,
        "tick_array_upper": position.tick_array_upper,
    }


def _pad_tick_arrays(tick_arrays: List[Pubkey]) -> List[Pubkey]:
    """Repeat the last array so a short window still fills every swap slot"""
    if not tick_arrays:
        raise ConfigurationError.invalid("tick_arrays", "swap window is empty")
    return tick_arrays + [tick_arrays[-1]] * (MAX_SWAP_TICK_ARRAYS - len(tick_arrays))


class InstructionAssembler:
    """
    Vault instruction assembler

    Usage:
        assembler = InstructionAssembler(resolver)

        key = VaultKey(whirlpool, vault_id=0)
        ix = await assembler.deposit(user, key, lp_amount, max_a, max_b)
        ix = await assembler.reinvest(user, key)
    """

    def __init__(
        self,
        resolver: AddressResolver,
        dao_treasury_owner: Optional[Pubkey] = None,
    ):
        """
        Initialize assembler

        Args:
            resolver: Address resolver (its cache is shared)
            dao_treasury_owner: Owner of the treasury LP account (defaults to config)
        """
        self._resolver = resolver
        self._cache = resolver.cache
        self._program_id = resolver.program_id
        self._dao_treasury_owner = dao_treasury_owner or Pubkey.from_string(global_config.vault.dao_treasury_owner)

    def _encode(
        self,
        name: str,
        accounts: Dict[str, Pubkey],
        args: bytes = b"",
        remaining_accounts: Optional[Sequence[AccountMeta]] = None,
    ) -> Instruction:
        ix = encode_instruction(self._program_id, name, accounts, args, remaining_accounts)
        logger.debug(f"Built {name} with {len(ix.accounts)} accounts")
        return ix

    async def _position_or_active(self, vault_key: VaultKey, position: Optional[Pubkey]) -> Pubkey:
        if position is not None:
            return position
        return await self._resolver.active_position(vault_key)

    # Vault lifecycle

    async def initialize_vault(
        self,
        user: Pubkey,
        vault_key: VaultKey,
        fee: int = 0,
    ) -> List[Instruction]:
        """
        Build initialize_vault plus idempotent creation of the vault's
        reward token accounts

        Args:
            user: Payer and signer
            vault_key: Pool + vault id
            fee: Vault fee in basis points

        Returns:
            [initialize_vault, create reward ATA...]
        """
        self._check_fee(fee)

        vault = await self._resolver.vault_addresses(vault_key)
        pool = await self._cache.get_whirlpool(vault_key.whirlpool)
        reward_accounts = await self._resolver.reward_accounts(vault_key)

        accounts = {
            "user_signer": user,
            "whirlpool": vault_key.whirlpool,
            "input_token_a_mint_address": pool.token_mint_a,
            "input_token_b_mint_address": pool.token_mint_b,
            "vault_account": vault.vault_account,
            "vault_lp_token_mint_pubkey": vault.vault_lp_token_mint,
            "vault_input_token_a_account": vault.vault_input_token_a_account,
            "vault_input_token_b_account": vault.vault_input_token_b_account,
            "dao_treasury_lp_token_account": self._resolver.associated_token_account(
                self._dao_treasury_owner, vault.vault_lp_token_mint
            ),
            "dao_treasury_owner": self._dao_treasury_owner,
            "system_program": Pubkey.from_string(SYSTEM_PROGRAM_ID),
            "associated_token_program": Pubkey.from_string(ASSOCIATED_TOKEN_PROGRAM_ID),
            "token_program": self._resolver.token_program_id,
            "rent": Pubkey.from_string(RENT_SYSVAR_ID),
        }
        args = pack_u8(vault_key.vault_id) + pack_u64(fee)

        instructions = [self._encode("initialize_vault", accounts, args)]
        for _, mint, _ in reward_accounts:
            instructions.append(build_create_ata_idempotent_instruction(
                user, vault.vault_account, mint, self._resolver.token_program_id
            ))
        return instructions

    async def open_position(
        self,
        user: Pubkey,
        vault_key: VaultKey,
        position_mint: Pubkey,
        lower_price: Union[Decimal, float],
        upper_price: Union[Decimal, float],
    ) -> List[Instruction]:
        """
        Build open_position, preceded by initialize_tick_array for any
        tick array that does not exist yet

        Prices are token B per token A in UI units; they are converted to
        the nearest initializable ticks.

        Args:
            user: Payer and signer
            vault_key: Pool + vault id
            position_mint: Fresh mint keypair's public key (must also sign)
            lower_price: Lower bound price
            upper_price: Upper bound price

        Returns:
            [initialize_tick_array..., open_position]
        """
        pool = await self._cache.get_whirlpool(vault_key.whirlpool)
        await self._cache.fetch_many([pool.token_mint_a, pool.token_mint_b])
        mint_a, mint_b, vault = await asyncio.gather(
            self._cache.get_mint(pool.token_mint_a),
            self._cache.get_mint(pool.token_mint_b),
            self._resolver.vault_addresses(vault_key),
        )

        tick_lower = get_initializable_tick_index(
            price_to_tick_index(lower_price, mint_a.decimals, mint_b.decimals), pool.tick_spacing
        )
        tick_upper = get_initializable_tick_index(
            price_to_tick_index(upper_price, mint_a.decimals, mint_b.decimals), pool.tick_spacing
        )
        if tick_lower >= tick_upper:
            raise ConfigurationError.invalid(
                "price range",
                f"lower tick {tick_lower} must be below upper tick {tick_upper}",
            )

        whirlpool_program_id = self._resolver.whirlpool_program_id
        position, position_bump = derive_position(position_mint, whirlpool_program_id)

        start_indices = []
        for tick in (tick_lower, tick_upper):
            start = get_start_tick_index(tick, pool.tick_spacing)
            if start not in start_indices:
                start_indices.append(start)
        tick_arrays = {self._resolver.tick_array(pool.address, start): start for start in start_indices}

        missing = await self._cache.missing(list(tick_arrays))
        instructions = [
            build_initialize_tick_array_instruction(pool.address, user, tick_arrays[address], whirlpool_program_id)
            for address in missing
        ]
        if missing:
            logger.info(f"Initializing {len(missing)} tick array(s) for {vault_key}")

        accounts = {
            "user_signer": user,
            "vault_account": vault.vault_account,
            "whirlpool_program_id": whirlpool_program_id,
            "position": position,
            "position_mint": position_mint,
            "position_token_account": self._resolver.associated_token_account(
                vault.vault_account, position_mint
            ),
            "whirlpool": pool.address,
            "token_program": self._resolver.token_program_id,
            "system_program": Pubkey.from_string(SYSTEM_PROGRAM_ID),
            "rent": Pubkey.from_string(RENT_SYSVAR_ID),
            "associated_token_program": Pubkey.from_string(ASSOCIATED_TOKEN_PROGRAM_ID),
        }
        args = pack_u8(position_bump) + pack_i32(tick_lower) + pack_i32(tick_upper)
        instructions.append(self._encode("open_position", accounts, args))
        return instructions

    async def close_position(
        self,
        user: Pubkey,
        vault_key: VaultKey,
        position: Optional[Pubkey] = None,
    ) -> Instruction:
        """Build close_position (defaults to the vault's active position)"""
        position = await self._position_or_active(vault_key, position)
        position_view = await self._cache.get_position(position)
        position_accounts = await self._resolver.position_addresses(position, vault_key)
        vault = await self._resolver.vault_addresses(vault_key)

        accounts = {
            "user_signer": user,
            "vault_account": vault.vault_account,
            "whirlpool_program_id": self._resolver.whirlpool_program_id,
            "position": position,
            "position_mint": position_view.position_mint,
            "position_token_account": position_accounts.position_token_account,
            "token_program": self._resolver.token_program_id,
        }
        return self._encode("close_position", accounts)

    # User flows

    async def deposit(
        self,
        user: Pubkey,
        vault_key: VaultKey,
        lp_amount: int,
        max_amount_a: int,
        max_amount_b: int,
        position: Optional[Pubkey] = None,
    ) -> Instruction:
        """Build deposit"""
        accounts = await self._deposit_withdraw_accounts(user, vault_key, position)
        args = pack_u64(lp_amount) + pack_u64(max_amount_a) + pack_u64(max_amount_b)
        return self._encode("deposit", accounts, args)

    async def withdraw(
        self,
        user: Pubkey,
        vault_key: VaultKey,
        lp_amount: int,
        min_amount_a: int,
        min_amount_b: int,
        position: Optional[Pubkey] = None,
    ) -> Instruction:
        """Build withdraw"""
        accounts = await self._deposit_withdraw_accounts(user, vault_key, position)
        args = pack_u64(lp_amount) + pack_u64(min_amount_a) + pack_u64(min_amount_b)
        return self._encode("withdraw", accounts, args)

    async def _deposit_withdraw_accounts(
        self,
        user: Pubkey,
        vault_key: VaultKey,
        position: Optional[Pubkey],
    ) -> Dict[str, Pubkey]:
        resolved = await self._resolver.deposit_withdraw_accounts(user, vault_key, position)
        accounts = {
            "user_signer": resolved.user_signer,
            "vault_account": resolved.vault_account,
            "vault_lp_token_mint_pubkey": resolved.vault_lp_token_mint,
            "vault_input_token_a_account": resolved.vault_input_token_a_account,
            "vault_input_token_b_account": resolved.vault_input_token_b_account,
            "user_lp_token_account": resolved.user_lp_token_account,
            "user_token_a_account": resolved.user_token_a_account,
            "user_token_b_account": resolved.user_token_b_account,
            "whirlpool_program_id": resolved.whirlpool_program_id,
            "whirlpool_token_vault_a": resolved.whirlpool_token_vault_a,
            "whirlpool_token_vault_b": resolved.whirlpool_token_vault_b,
            "token_program": resolved.token_program,
        }
        accounts.update(_position_accounts(resolved.position))
        return accounts

    # Bot flows

    async def collect_fees(
        self,
        user: Pubkey,
        vault_key: VaultKey,
        position: Optional[Pubkey] = None,
    ) -> Instruction:
        """Build collect_fees for a vault position"""
        position = await self._position_or_active(vault_key, position)
        vault, position_accounts = await asyncio.gather(
            self._resolver.vault_addresses(vault_key),
            self._resolver.position_addresses(position, vault_key),
        )
        pool = await self._cache.get_whirlpool(vault_key.whirlpool)

        accounts = {
            "user_signer": user,
            "vault_account": vault.vault_account,
            "whirlpool_program_id": self._resolver.whirlpool_program_id,
            "vault_input_token_a_account": vault.vault_input_token_a_account,
            "vault_input_token_b_account": vault.vault_input_token_b_account,
            "whirlpool_token_vault_a": pool.token_vault_a,
            "whirlpool_token_vault_b": pool.token_vault_b,
            "token_program": self._resolver.token_program_id,
        }
        accounts.update(_position_accounts(position_accounts))
        return self._encode("collect_fees", accounts)

    async def collect_rewards(
        self,
        user: Pubkey,
        vault_key: VaultKey,
        reward_index: int,
        position: Optional[Pubkey] = None,
    ) -> Instruction:
        """
        Build collect_rewards for one of the pool's reward slots

        Raises:
            ConfigurationError: Reward slot is not initialized
        """
        position = await self._position_or_active(vault_key, position)
        vault, position_accounts = await asyncio.gather(
            self._resolver.vault_addresses(vault_key),
            self._resolver.position_addresses(position, vault_key),
        )
        pool = await self._cache.get_whirlpool(vault_key.whirlpool)

        if not 0 <= reward_index < len(pool.reward_infos) or not pool.reward_infos[reward_index].initialized:
            raise ConfigurationError.invalid(
                "reward_index", f"reward slot {reward_index} of {pool.address} is not initialized"
            )
        reward = pool.reward_infos[reward_index]

        accounts = {
            "user_signer": user,
            "vault_account": vault.vault_account,
            "whirlpool_program_id": self._resolver.whirlpool_program_id,
            "vault_rewards_token_account": self._resolver.associated_token_account(
                vault.vault_account, reward.mint
            ),
            "whirlpool_rewards_token_vault": reward.vault,
            "token_program": self._resolver.token_program_id,
        }
        accounts.update(_position_accounts(position_accounts))
        return self._encode("collect_rewards", accounts, pack_u8(reward_index))

    async def swap_rewards(
        self,
        user: Pubkey,
        vault_key: VaultKey,
        rewards_mint: Pubkey,
        route_whirlpool: Optional[Pubkey] = None,
        route_accounts: Optional[Sequence[AccountMeta]] = None,
    ) -> Instruction:
        """
        Build swap_rewards along the route configured for a reward mint

        WHIRLPOOL routes resolve their swap accounts from route_whirlpool.
        ORCA routes take the legacy pool's accounts as route_accounts.

        Raises:
            ConfigurationError: No route configured, or route inputs missing
        """
        info = await self._resolver.market_rewards(vault_key, rewards_mint)
        vault = await self._resolver.vault_addresses(vault_key)

        if info.route_id == SwapRoute.WHIRLPOOL:
            if route_whirlpool is None:
                raise ConfigurationError.missing("route_whirlpool")
            swap_program = self._resolver.whirlpool_program_id
            remaining = await self._whirlpool_swap_accounts(route_whirlpool, rewards_mint)
        elif info.route_id == SwapRoute.ORCA:
            if not route_accounts:
                raise ConfigurationError.missing("route_accounts")
            swap_program = Pubkey.from_string(ORCA_TOKEN_SWAP_PROGRAM_ID)
            remaining = list(route_accounts)
        else:
            raise ConfigurationError.invalid("route_id", f"unknown swap route {info.route_id}")

        accounts = {
            "user_signer": user,
            "vault_account": vault.vault_account,
            "vault_rewards_token_account": self._resolver.associated_token_account(
                vault.vault_account, rewards_mint
            ),
            "vault_destination_token_account": info.destination_token_account,
            "token_program": self._resolver.token_program_id,
            "swap_program": swap_program,
        }
        return self._encode("swap_rewards", accounts, remaining_accounts=remaining)

    async def _whirlpool_swap_accounts(self, whirlpool: Pubkey, input_mint: Pubkey) -> List[AccountMeta]:
        pool = await self._cache.get_whirlpool(whirlpool, force_refresh=True)
        if input_mint == pool.token_mint_a:
            a_to_b = True
        elif input_mint == pool.token_mint_b:
            a_to_b = False
        else:
            raise ConfigurationError.invalid(
                "route_whirlpool", f"{whirlpool} does not trade {input_mint}"
            )

        tick_arrays = _pad_tick_arrays(tick_array_window(
            pool.tick_current_index, pool.tick_spacing, a_to_b, pool.address,
            self._resolver.whirlpool_program_id,
        ))
        writable = [pool.address, pool.token_vault_a, pool.token_vault_b] + tick_arrays
        metas = [AccountMeta(address, is_signer=False, is_writable=True) for address in writable]
        metas.append(AccountMeta(
            derive_oracle(pool.address, self._resolver.whirlpool_program_id),
            is_signer=False,
            is_writable=False,
        ))
        return metas

    async def reinvest(self, user: Pubkey, vault_key: VaultKey) -> Instruction:
        """
        Build reinvest

        Reads fresh pool, position and idle balances, decides the swap
        direction and selects the tick arrays the swap walks through.
        """
        position = await self._resolver.active_position(vault_key)
        vault, position_accounts = await asyncio.gather(
            self._resolver.vault_addresses(vault_key),
            self._resolver.position_addresses(position, vault_key),
        )
        await self._cache.fetch_many(
            [
                vault_key.whirlpool,
                position,
                vault.vault_input_token_a_account,
                vault.vault_input_token_b_account,
            ],
            force_refresh=True,
        )
        pool, position_view, idle_a, idle_b = await asyncio.gather(
            self._cache.get_whirlpool(vault_key.whirlpool),
            self._cache.get_position(position),
            self._cache.get_token_account(vault.vault_input_token_a_account),
            self._cache.get_token_account(vault.vault_input_token_b_account),
        )

        a_to_b = is_token_a_to_b(
            pool.sqrt_price,
            position_view.liquidity,
            position_view.tick_lower_index,
            position_view.tick_upper_index,
            idle_a.amount,
            idle_b.amount,
        )
        logger.info(
            f"Reinvest {vault_key}: idle=({idle_a.amount}, {idle_b.amount}), "
            f"swap {'A->B' if a_to_b else 'B->A'}"
        )

        whirlpool_program_id = self._resolver.whirlpool_program_id
        tick_arrays = _pad_tick_arrays(tick_array_window(
            pool.tick_current_index, pool.tick_spacing, a_to_b, pool.address, whirlpool_program_id,
        ))

        accounts = {
            "user_signer": user,
            "vault_account": vault.vault_account,
            "whirlpool_program_id": whirlpool_program_id,
            "vault_input_token_a_account": vault.vault_input_token_a_account,
            "vault_input_token_b_account": vault.vault_input_token_b_account,
            "whirlpool_token_vault_a": pool.token_vault_a,
            "whirlpool_token_vault_b": pool.token_vault_b,
            "token_program": self._resolver.token_program_id,
            "tick_array_0": tick_arrays[0],
            "tick_array_1": tick_arrays[1],
            "tick_array_2": tick_arrays[2],
            "oracle": derive_oracle(pool.address, whirlpool_program_id),
        }
        accounts.update(_position_accounts(position_accounts))
        return self._encode("reinvest", accounts)

    async def rebalance(self, user: Pubkey, vault_key: VaultKey, new_position: Pubkey) -> Instruction:
        """
        Build rebalance from the active position into new_position

        new_position must already be opened by the vault.
        """
        current = await self._resolver.active_position(vault_key)
        if current == new_position:
            raise ConfigurationError.invalid("new_position", f"{new_position} is already the active position")

        vault, current_accounts, new_accounts = await asyncio.gather(
            self._resolver.vault_addresses(vault_key),
            self._resolver.position_addresses(current, vault_key),
            self._resolver.position_addresses(new_position, vault_key),
        )
        pool = await self._cache.get_whirlpool(vault_key.whirlpool)

        accounts = {
            "user_signer": user,
            "vault_account": vault.vault_account,
            "whirlpool_program_id": self._resolver.whirlpool_program_id,
            "vault_input_token_a_account": vault.vault_input_token_a_account,
            "vault_input_token_b_account": vault.vault_input_token_b_account,
            "whirlpool": pool.address,
            "whirlpool_token_vault_a": pool.token_vault_a,
            "whirlpool_token_vault_b": pool.token_vault_b,
            "token_program": self._resolver.token_program_id,
            "current_position": current_accounts.position,
            "current_position_token_account": current_accounts.position_token_account,
            "current_tick_array_lower": current_accounts.tick_array_lower,
            "current_tick_array_upper": current_accounts.tick_array_upper,
            "new_position": new_accounts.position,
            "new_position_token_account": new_accounts.position_token_account,
            "new_tick_array_lower": new_accounts.tick_array_lower,
            "new_tick_array_upper": new_accounts.tick_array_upper,
        }
        return self._encode("rebalance", accounts)

    # Admin setters (seed-only, no network access)

    def set_vault_fee(self, user: Pubkey, vault_key: VaultKey, fee: int) -> Instruction:
        """Build set_vault_fee (fee in basis points)"""
        self._check_fee(fee)
        accounts = {
            "user_signer": user,
            "vault_account": self._resolver.vault_account(vault_key),
        }
        return self._encode("set_vault_fee", accounts, pack_u64(fee))

    def set_vault_pause_status(self, user: Pubkey, vault_key: VaultKey, is_paused: bool) -> Instruction:
        """Build set_vault_pause_status"""
        accounts = {
            "user_signer": user,
            "vault_account": self._resolver.vault_account(vault_key),
        }
        return self._encode("set_vault_pause_status", accounts, pack_bool(is_paused))

    def set_market_rewards(
        self,
        user: Pubkey,
        vault_key: VaultKey,
        rewards_mint: Pubkey,
        destination_mint: Pubkey,
        route: SwapRoute,
        min_amount_out: int,
    ) -> Instruction:
        """
        Build set_market_rewards

        Args:
            user: Vault admin
            vault_key: Pool + vault id
            rewards_mint: Reward token to sell
            destination_mint: Token the reward is sold for (received by the vault)
            route: Swap route
            min_amount_out: Minimum output accepted by the swap
        """
        vault_account = self._resolver.vault_account(vault_key)
        accounts = {
            "user_signer": user,
            "vault_account": vault_account,
            "rewards_mint": rewards_mint,
            "destination_token_account": self._resolver.associated_token_account(
                vault_account, destination_mint
            ),
        }
        try:
            route = SwapRoute(route)
        except ValueError:
            raise ConfigurationError.invalid("route", f"unknown swap route {route}")
        args = pack_u8(route) + pack_u64(min_amount_out)
        return self._encode("set_market_rewards", accounts, args)

    @staticmethod
    def _check_fee(fee: int):
        if not 0 <= fee <= MAX_VAULT_FEE_BPS:
            raise ConfigurationError.invalid("fee", f"must be in [0, {MAX_VAULT_FEE_BPS}] bps, got {fee}")

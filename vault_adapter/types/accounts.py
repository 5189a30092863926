"""
Decoded account views

Every view is an immutable snapshot of one fetch. A refresh produces a new
view, never an in-place update.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from solders.pubkey import Pubkey


@dataclass(frozen=True)
class AccountBlob:
    """
    Raw account bytes as returned by the remote reader

    Attributes:
        address: Address the bytes were fetched for
        data: Raw account data
        owner: Owning program, when the reader reports it
    """
    address: Pubkey
    data: bytes
    owner: Optional[Pubkey] = None

    def __repr__(self) -> str:
        return f"AccountBlob({self.address}, {len(self.data)} bytes)"


@dataclass(frozen=True)
class RewardInfoView:
    """Whirlpool reward emission slot"""
    mint: Pubkey
    vault: Pubkey
    authority: Pubkey
    emissions_per_second_x64: int
    growth_global_x64: int

    @property
    def initialized(self) -> bool:
        return self.mint != Pubkey.default()


@dataclass(frozen=True)
class WhirlpoolView:
    """
    Orca Whirlpool pool state

    Attributes:
        address: Pool address
        whirlpools_config: Config account the pool belongs to
        tick_spacing: Tick spacing
        fee_rate: Fee rate in hundredths of a basis point
        liquidity: Active liquidity
        sqrt_price: Current sqrt price (Q64.64)
        tick_current_index: Current tick index
        token_mint_a / token_mint_b: Token mints
        token_vault_a / token_vault_b: Pool token vaults
        reward_infos: Reward emission slots (always 3, possibly uninitialized)
    """
    address: Pubkey
    whirlpools_config: Pubkey
    tick_spacing: int
    fee_rate: int
    protocol_fee_rate: int
    liquidity: int
    sqrt_price: int
    tick_current_index: int
    token_mint_a: Pubkey
    token_vault_a: Pubkey
    token_mint_b: Pubkey
    token_vault_b: Pubkey
    reward_infos: Tuple[RewardInfoView, ...] = ()

    @property
    def initialized_reward_infos(self) -> Tuple[RewardInfoView, ...]:
        """Reward slots with a mint configured"""
        return tuple(info for info in self.reward_infos if info.initialized)

    def __repr__(self) -> str:
        return (
            f"WhirlpoolView({self.address}, tick={self.tick_current_index}, "
            f"spacing={self.tick_spacing})"
        )


@dataclass(frozen=True)
class PositionView:
    """
    Orca Whirlpool position state

    Many positions reference one whirlpool.
    """
    address: Pubkey
    whirlpool: Pubkey
    position_mint: Pubkey
    liquidity: int
    tick_lower_index: int
    tick_upper_index: int
    fee_owed_a: int = 0
    fee_owed_b: int = 0

    def is_in_range(self, tick_current_index: int) -> bool:
        return self.tick_lower_index <= tick_current_index < self.tick_upper_index


@dataclass(frozen=True)
class MintView:
    """SPL token mint"""
    address: Pubkey
    supply: int
    decimals: int
    is_initialized: bool
    mint_authority: Optional[Pubkey] = None
    freeze_authority: Optional[Pubkey] = None


@dataclass(frozen=True)
class PositionInfo:
    """Position tracked by a vault"""
    pubkey: Pubkey
    lower_tick: int
    upper_tick: int


@dataclass(frozen=True)
class MarketRewardsInfo:
    """
    Swap route configured for one reward mint

    Attributes:
        rewards_mint: Reward token being sold
        destination_token_account: Vault account receiving the swap output
        route_id: Swap route identifier (see protocols.vault.constants.SwapRoute)
        min_amount_out: Minimum output accepted by the swap
    """
    rewards_mint: Pubkey
    destination_token_account: Pubkey
    route_id: int
    min_amount_out: int


@dataclass(frozen=True)
class VaultView:
    """
    Vault account state

    Attributes:
        address: Vault account address
        version: Account layout version
        bump: PDA bump
        id: Vault id (seed)
        whirlpool: Pool the vault provides liquidity to
        input_token_a_mint / input_token_b_mint: Pool token mints
        fee: Vault fee in basis points
        paused: Whether deposits are paused
        positions: Tracked positions, the first entry is the open one
        market_rewards: Configured reward swap routes
    """
    address: Pubkey
    version: int
    bump: int
    id: int
    whirlpool: Pubkey
    input_token_a_mint: Pubkey
    input_token_b_mint: Pubkey
    fee: int
    paused: bool
    positions: Tuple[PositionInfo, ...] = ()
    market_rewards: Tuple[MarketRewardsInfo, ...] = ()

    def market_rewards_for(self, rewards_mint: Pubkey) -> Optional[MarketRewardsInfo]:
        for info in self.market_rewards:
            if info.rewards_mint == rewards_mint:
                return info
        return None


@dataclass(frozen=True)
class TokenAccountView:
    """SPL token account balance"""
    address: Pubkey
    mint: Pubkey
    owner: Pubkey
    amount: int

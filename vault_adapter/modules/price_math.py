"""
Price Math

Converts between vault LP amounts and pool token amounts using the live
pool price and the vault's active position range.
"""

import asyncio
import logging
from typing import Tuple

from ..protocols.whirlpool.math import (
    tick_to_sqrt_price_x64,
    get_amounts_from_liquidity,
    get_liquidity_from_amounts,
)
from ..types import VaultKey
from .resolver import AddressResolver

logger = logging.getLogger(__name__)


class PriceMath:
    """
    LP <-> token amount conversions

    Pool and position state are re-read on every call. The price is taken
    at the pool's current tick, matching how the program quotes deposits.

    Usage:
        price_math = PriceMath(resolver)

        lp = await price_math.lp_from_token_amounts(key, 1_000_000, 5_000_000)
        amount_a, amount_b = await price_math.token_amounts_from_lp(key, lp)
    """

    def __init__(self, resolver: AddressResolver):
        self._resolver = resolver
        self._cache = resolver.cache

    async def lp_from_token_amounts(self, vault_key: VaultKey, amount_a: int, amount_b: int) -> int:
        """
        Liquidity minted by depositing the given token amounts

        Args:
            vault_key: Pool + vault id
            amount_a: Raw token A amount
            amount_b: Raw token B amount

        Returns:
            Liquidity (LP amount)
        """
        sqrt_price, lower, upper = await self._price_and_range(vault_key)
        lp = get_liquidity_from_amounts(amount_a, amount_b, sqrt_price, lower, upper)
        logger.debug(f"{vault_key}: ({amount_a}, {amount_b}) -> lp {lp}")
        return lp

    async def token_amounts_from_lp(self, vault_key: VaultKey, lp_amount: int) -> Tuple[int, int]:
        """
        Token amounts backing an LP amount

        Returns:
            (amount_a, amount_b)
        """
        sqrt_price, lower, upper = await self._price_and_range(vault_key)
        return get_amounts_from_liquidity(lp_amount, sqrt_price, lower, upper, round_up=False)

    async def _price_and_range(self, vault_key: VaultKey) -> Tuple[int, int, int]:
        position_address = await self._resolver.active_position(vault_key)
        position, pool = await asyncio.gather(
            self._cache.get_position(position_address, force_refresh=True),
            self._cache.get_whirlpool(vault_key.whirlpool, force_refresh=True),
        )
        return (
            tick_to_sqrt_price_x64(pool.tick_current_index),
            tick_to_sqrt_price_x64(position.tick_lower_index),
            tick_to_sqrt_price_x64(position.tick_upper_index),
        )

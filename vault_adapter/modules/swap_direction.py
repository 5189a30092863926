"""
Swap Direction

Decides which idle token the vault sells before reinvesting.
"""

from ..protocols.whirlpool.constants import Q64
from ..protocols.whirlpool.math import tick_to_sqrt_price_x64, get_amounts_from_liquidity


def is_token_a_to_b(
    current_sqrt_price: int,
    position_liquidity: int,
    tick_lower_index: int,
    tick_upper_index: int,
    idle_balance_a: int,
    idle_balance_b: int,
) -> bool:
    """
    Whether the vault should swap token A into token B before reinvesting

    The position's token ratio at the current price is taken from the
    amounts one unit of liquidity (or the position's own liquidity) needs.
    Idle balances richer in A than that ratio are corrected by selling A,
    otherwise B is sold. Outside the range only one token is usable, so
    everything is swapped towards it.

    Args:
        current_sqrt_price: Pool sqrt price (Q64.64)
        position_liquidity: Position liquidity
        tick_lower_index: Position lower tick
        tick_upper_index: Position upper tick
        idle_balance_a: Vault idle token A
        idle_balance_b: Vault idle token B

    Returns:
        True to swap A to B, False to swap B to A
    """
    sqrt_price_lower = tick_to_sqrt_price_x64(tick_lower_index)
    sqrt_price_upper = tick_to_sqrt_price_x64(tick_upper_index)

    # Below range the position is all token A
    if current_sqrt_price <= sqrt_price_lower:
        return False
    # Above range the position is all token B
    if current_sqrt_price >= sqrt_price_upper:
        return True

    liquidity = position_liquidity or Q64
    required_a, required_b = get_amounts_from_liquidity(
        liquidity, current_sqrt_price, sqrt_price_lower, sqrt_price_upper, round_up=True
    )

    # idle_a / idle_b > required_a / required_b, cross-multiplied
    return idle_balance_a * required_b > idle_balance_b * required_a

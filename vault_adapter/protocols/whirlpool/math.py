"""
Orca Whirlpool Math Utilities

Provides tick/price conversion, tick array indexing and liquidity calculations.
"""

import math
from decimal import Decimal
from typing import Optional, Tuple

from .constants import Q64, MIN_TICK_INDEX, MAX_TICK_INDEX, TICK_ARRAY_SIZE
from ...errors import ConfigurationError


# Q128 multipliers for sqrt(1.0001)^-(2^i), used for negative ticks
_NEGATIVE_TICK_RATIOS = [
    0xfff97272373d413259a46990580e213a,
    0xfff2e50f5f656932ef12357cf3c7fdcc,
    0xffe5caca7e10e4e61c3624eaa0941cd0,
    0xffcb9843d60f6159c9db58835c926644,
    0xff973b41fa98c081472e6896dfb254c0,
    0xff2ea16466c96a3843ec78b326b52861,
    0xfe5dee046a99a2a811c461f1969c3053,
    0xfcbe86c7900a88aedcffc83b479aa3a4,
    0xf987a7253ac413176f2b074cf7815e54,
    0xf3392b0822b70005940c7a398e4b70f3,
    0xe7159475a2c29b7443b29c7fa6e889d9,
    0xd097f3bdfd2022b8845ad8f792aa5825,
    0xa9f746462d870fdf8a65dc1f90e061e5,
    0x70d869a156d2a1b890bb3df62baf32f7,
    0x31be135f97d08fd981231505542fcfa6,
    0x9aa508b5b7a84e1c677de54f3e99bc9,
    0x5d6af8dedb81196699c329225ee604,
    0x2216e584f5fa1ea926041bedfe98,
    0x48a170391f7dc42444e8fa2,
]
_NEGATIVE_ODD_TICK_RATIO = 0xfffcb933bd6fad37aa2d162d1a594001

# Q96 multipliers for sqrt(1.0001)^(2^i), used for positive ticks
_POSITIVE_TICK_RATIOS = [
    79236085330515764027303304731,
    79244008939048815603706035061,
    79259858533276714757314932305,
    79291567232598584799939703904,
    79355022692464371645785046466,
    79482085999252804386437311141,
    79736823300114093921829183326,
    80248749790819932309965073892,
    81282483887344747381513967011,
    83390072131320151908154831281,
    87770609709833776024991924138,
    97234110755111693312479820773,
    119332217159966728226237229890,
    179736315981702064433883588727,
    407748233172238350107850275304,
    2098478828474011932436660412517,
    55581415166113811149459800483533,
    38992368544603139932233054999993551,
]
_POSITIVE_ODD_TICK_RATIO = 79232123823359799118286999567


def tick_to_sqrt_price_x64(tick: int) -> int:
    """
    Convert tick to sqrt price in Q64.64 fixed-point format

    Args:
        tick: Tick index

    Returns:
        Sqrt price as X64 fixed-point integer
    """
    if tick < MIN_TICK_INDEX or tick > MAX_TICK_INDEX:
        raise ConfigurationError.invalid(
            "tick", f"tick must be in [{MIN_TICK_INDEX}, {MAX_TICK_INDEX}], got {tick}"
        )

    if tick >= 0:
        # ratio = 1.0001^(tick/2) in Q96
        ratio = _POSITIVE_ODD_TICK_RATIO if tick & 0x1 else 1 << 96
        for i, multiplier in enumerate(_POSITIVE_TICK_RATIOS, start=1):
            if tick & (1 << i):
                ratio = (ratio * multiplier) >> 96
        return ratio >> 32

    tick_abs = -tick

    # ratio = 1.0001^(-|tick|/2) in Q128
    ratio = _NEGATIVE_ODD_TICK_RATIO if tick_abs & 0x1 else 1 << 128
    for i, multiplier in enumerate(_NEGATIVE_TICK_RATIOS, start=1):
        if tick_abs & (1 << i):
            ratio = (ratio * multiplier) >> 128
    return ratio >> 64


def sqrt_price_x64_to_price(
    sqrt_price_x64: int,
    decimals_a: int,
    decimals_b: int,
) -> Decimal:
    """
    Convert sqrt price X64 to human-readable price

    Args:
        sqrt_price_x64: Sqrt price in X64 format
        decimals_a: Token A decimals
        decimals_b: Token B decimals

    Returns:
        Price of token A in terms of token B
    """
    sqrt_price = Decimal(sqrt_price_x64) / Decimal(Q64)
    price = sqrt_price * sqrt_price

    decimal_adjustment = Decimal(10) ** (decimals_a - decimals_b)
    return price * decimal_adjustment


def tick_to_price(
    tick: int,
    decimals_a: int,
    decimals_b: int,
) -> Decimal:
    """Convert tick to human-readable price of token A in token B"""
    return sqrt_price_x64_to_price(tick_to_sqrt_price_x64(tick), decimals_a, decimals_b)


def price_to_tick_index(
    price: Decimal,
    decimals_a: int,
    decimals_b: int,
) -> int:
    """
    Convert price to the tick whose price is at or below it

    Args:
        price: Price of token A in terms of token B
        decimals_a: Token A decimals
        decimals_b: Token B decimals

    Returns:
        Tick index clamped to the valid range
    """
    if price <= 0:
        raise ConfigurationError.invalid("price", f"price must be positive, got {price}")

    decimal_adjustment = Decimal(10) ** (decimals_a - decimals_b)
    adjusted_price = Decimal(price) / decimal_adjustment

    # floor() instead of int(): int() truncates toward 0, wrong for prices < 1
    tick = math.floor(math.log(float(adjusted_price)) / math.log(1.0001))

    return max(MIN_TICK_INDEX, min(MAX_TICK_INDEX, tick))


def get_initializable_tick_index(
    tick: int,
    tick_spacing: int,
    round_up: Optional[bool] = None,
) -> int:
    """
    Align a tick to the pool's tick spacing

    Args:
        tick: Tick index
        tick_spacing: Pool tick spacing
        round_up: True to round up, False to round down, None for nearest

    Returns:
        Tick index that is a multiple of tick_spacing
    """
    lower = (tick // tick_spacing) * tick_spacing
    if lower == tick:
        return tick
    upper = lower + tick_spacing

    if round_up is True:
        return upper
    if round_up is False:
        return lower
    # Ties round away from zero
    if tick - lower == upper - tick:
        return upper if tick > 0 else lower
    return lower if tick - lower < upper - tick else upper


def ticks_in_array(tick_spacing: int) -> int:
    """Number of ticks covered by one tick array"""
    return TICK_ARRAY_SIZE * tick_spacing


def start_tick_index_unchecked(tick: int, tick_spacing: int, offset: int = 0) -> int:
    """
    Start index of the tick array containing `tick`, moved `offset` arrays

    Python floor division already rounds towards negative infinity,
    which is correct for tick array indexing.
    """
    span = ticks_in_array(tick_spacing)
    return (tick // span + offset) * span


def is_valid_start_tick_index(start_tick_index: int, tick_spacing: int) -> bool:
    """Check that a tick array start index lies within the tick range"""
    span = ticks_in_array(tick_spacing)
    min_start = (MIN_TICK_INDEX // span) * span
    return min_start <= start_tick_index <= MAX_TICK_INDEX


def get_start_tick_index(tick: int, tick_spacing: int, offset: int = 0) -> int:
    """
    Calculate tick array start index for a given tick

    Args:
        tick: Tick index
        tick_spacing: Pool tick spacing
        offset: Number of tick arrays to move (negative moves down)

    Returns:
        Start tick of the tick array

    Raises:
        ConfigurationError: If the start index falls outside the tick range
    """
    start_tick_index = start_tick_index_unchecked(tick, tick_spacing, offset)
    if not is_valid_start_tick_index(start_tick_index, tick_spacing):
        raise ConfigurationError.invalid(
            "start_tick_index",
            f"{start_tick_index} is outside the tick range for spacing {tick_spacing}",
        )
    return start_tick_index


def get_token_amount_a_from_liquidity(
    liquidity: int,
    sqrt_price_x64_a: int,
    sqrt_price_x64_b: int,
    round_up: bool = False,
) -> int:
    """
    Calculate token A amount from liquidity

    Formula: liquidity * (sqrtPriceB - sqrtPriceA) * Q64 / (sqrtPriceA * sqrtPriceB)
    """
    if sqrt_price_x64_a > sqrt_price_x64_b:
        sqrt_price_x64_a, sqrt_price_x64_b = sqrt_price_x64_b, sqrt_price_x64_a

    if liquidity == 0 or sqrt_price_x64_a == sqrt_price_x64_b:
        return 0

    numerator = liquidity * (sqrt_price_x64_b - sqrt_price_x64_a) * Q64
    denominator = sqrt_price_x64_a * sqrt_price_x64_b

    if round_up:
        return -(-numerator // denominator)
    return numerator // denominator


def get_token_amount_b_from_liquidity(
    liquidity: int,
    sqrt_price_x64_a: int,
    sqrt_price_x64_b: int,
    round_up: bool = False,
) -> int:
    """
    Calculate token B amount from liquidity

    Formula: liquidity * (sqrtPriceB - sqrtPriceA) / 2^64
    """
    if sqrt_price_x64_a > sqrt_price_x64_b:
        sqrt_price_x64_a, sqrt_price_x64_b = sqrt_price_x64_b, sqrt_price_x64_a

    if liquidity == 0 or sqrt_price_x64_a == sqrt_price_x64_b:
        return 0

    numerator = liquidity * (sqrt_price_x64_b - sqrt_price_x64_a)
    if round_up:
        return -(-numerator // Q64)
    return numerator // Q64


def get_amounts_from_liquidity(
    liquidity: int,
    sqrt_price_current_x64: int,
    sqrt_price_x64_lower: int,
    sqrt_price_x64_upper: int,
    round_up: bool = False,
) -> Tuple[int, int]:
    """
    Calculate token amounts from liquidity and price range

    Args:
        liquidity: Liquidity amount
        sqrt_price_current_x64: Current sqrt price
        sqrt_price_x64_lower: Lower bound sqrt price
        sqrt_price_x64_upper: Upper bound sqrt price
        round_up: Round amounts up (amounts owed to the pool)

    Returns:
        (amount_a, amount_b) raw token amounts
    """
    if sqrt_price_x64_lower > sqrt_price_x64_upper:
        sqrt_price_x64_lower, sqrt_price_x64_upper = sqrt_price_x64_upper, sqrt_price_x64_lower

    if sqrt_price_current_x64 <= sqrt_price_x64_lower:
        # Below range: only token A
        amount_a = get_token_amount_a_from_liquidity(
            liquidity, sqrt_price_x64_lower, sqrt_price_x64_upper, round_up
        )
        amount_b = 0
    elif sqrt_price_current_x64 < sqrt_price_x64_upper:
        # In range: both tokens
        amount_a = get_token_amount_a_from_liquidity(
            liquidity, sqrt_price_current_x64, sqrt_price_x64_upper, round_up
        )
        amount_b = get_token_amount_b_from_liquidity(
            liquidity, sqrt_price_x64_lower, sqrt_price_current_x64, round_up
        )
    else:
        # Above range: only token B
        amount_a = 0
        amount_b = get_token_amount_b_from_liquidity(
            liquidity, sqrt_price_x64_lower, sqrt_price_x64_upper, round_up
        )

    return amount_a, amount_b


def get_liquidity_from_amount_a(
    amount_a: int,
    sqrt_price_x64_lower: int,
    sqrt_price_x64_upper: int,
) -> int:
    """
    Calculate liquidity from token A amount

    Formula: amount * sqrtPriceA * sqrtPriceB / ((sqrtPriceB - sqrtPriceA) * Q64)
    """
    if sqrt_price_x64_lower > sqrt_price_x64_upper:
        sqrt_price_x64_lower, sqrt_price_x64_upper = sqrt_price_x64_upper, sqrt_price_x64_lower

    if amount_a == 0 or sqrt_price_x64_lower == sqrt_price_x64_upper:
        return 0

    numerator = amount_a * sqrt_price_x64_lower * sqrt_price_x64_upper
    denominator = (sqrt_price_x64_upper - sqrt_price_x64_lower) * Q64

    return numerator // denominator


def get_liquidity_from_amount_b(
    amount_b: int,
    sqrt_price_x64_lower: int,
    sqrt_price_x64_upper: int,
) -> int:
    """
    Calculate liquidity from token B amount

    Formula: amount * 2^64 / (sqrtPriceB - sqrtPriceA)
    """
    if sqrt_price_x64_lower > sqrt_price_x64_upper:
        sqrt_price_x64_lower, sqrt_price_x64_upper = sqrt_price_x64_upper, sqrt_price_x64_lower

    if amount_b == 0 or sqrt_price_x64_lower == sqrt_price_x64_upper:
        return 0

    return (amount_b * Q64) // (sqrt_price_x64_upper - sqrt_price_x64_lower)


def get_liquidity_from_amounts(
    amount_a: int,
    amount_b: int,
    sqrt_price_current_x64: int,
    sqrt_price_x64_lower: int,
    sqrt_price_x64_upper: int,
) -> int:
    """
    Calculate liquidity from both token amounts

    Returns the maximum liquidity that can be created from the given amounts.
    """
    if sqrt_price_x64_lower > sqrt_price_x64_upper:
        sqrt_price_x64_lower, sqrt_price_x64_upper = sqrt_price_x64_upper, sqrt_price_x64_lower

    if sqrt_price_current_x64 <= sqrt_price_x64_lower:
        # Below range: only use token A
        return get_liquidity_from_amount_a(amount_a, sqrt_price_x64_lower, sqrt_price_x64_upper)
    elif sqrt_price_current_x64 < sqrt_price_x64_upper:
        # In range: use minimum of both
        liq_a = get_liquidity_from_amount_a(amount_a, sqrt_price_current_x64, sqrt_price_x64_upper)
        liq_b = get_liquidity_from_amount_b(amount_b, sqrt_price_x64_lower, sqrt_price_current_x64)
        return min(liq_a, liq_b)
    else:
        # Above range: only use token B
        return get_liquidity_from_amount_b(amount_b, sqrt_price_x64_lower, sqrt_price_x64_upper)

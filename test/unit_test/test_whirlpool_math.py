"""
Test Whirlpool Math Module

Tests for tick/price conversions, tick array indexing and liquidity
calculations.
"""

import sys
from decimal import Decimal
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))


def test_tick_to_sqrt_price_x64():
    """Test tick to sqrt price conversion"""
    from vault_adapter.protocols.whirlpool.math import tick_to_sqrt_price_x64
    from vault_adapter.protocols.whirlpool.constants import (
        MIN_TICK_INDEX,
        MAX_TICK_INDEX,
        MIN_SQRT_PRICE_X64,
        MAX_SQRT_PRICE_X64,
    )
    from vault_adapter.errors import ConfigurationError

    print("Testing tick_to_sqrt_price_x64...")

    # Tick 0 should give sqrt(1) * 2^64
    assert tick_to_sqrt_price_x64(0) == 2 ** 64

    assert tick_to_sqrt_price_x64(100) > tick_to_sqrt_price_x64(0)
    assert tick_to_sqrt_price_x64(-100) < tick_to_sqrt_price_x64(0)

    # 1.0001^(1000/2) ~= 1.051268
    ratio = tick_to_sqrt_price_x64(1000) / 2 ** 64
    assert abs(ratio - 1.0001 ** 500) < 1e-9, f"Unexpected sqrt price ratio {ratio}"

    # Exact values at the bounds and one tick either side of zero
    assert tick_to_sqrt_price_x64(MIN_TICK_INDEX) == MIN_SQRT_PRICE_X64 == 4295048016
    assert tick_to_sqrt_price_x64(MAX_TICK_INDEX) == MAX_SQRT_PRICE_X64 == 79226673515401279992447579055
    assert tick_to_sqrt_price_x64(1) == 18447666387855959850
    assert tick_to_sqrt_price_x64(-1) == 18445821805675392311

    for tick in (MIN_TICK_INDEX - 1, MAX_TICK_INDEX + 1):
        try:
            tick_to_sqrt_price_x64(tick)
            assert False, f"Should raise for tick {tick}"
        except ConfigurationError:
            pass

    print("  tick_to_sqrt_price_x64: PASSED")


def test_price_conversions():
    """Test sqrt price / tick to human price and back"""
    from vault_adapter.protocols.whirlpool.math import (
        sqrt_price_x64_to_price,
        tick_to_price,
        price_to_tick_index,
    )
    from vault_adapter.errors import ConfigurationError

    print("Testing price conversions...")

    Q64 = 2 ** 64
    assert abs(float(sqrt_price_x64_to_price(Q64, 6, 6)) - 1.0) < 1e-9

    # token A 9 decimals, token B 6 decimals: UI price scales by 10^3
    assert abs(float(sqrt_price_x64_to_price(Q64, 9, 6)) - 1000.0) < 1e-6

    price = tick_to_price(1000, 9, 6)
    assert price_to_tick_index(price, 9, 6) in (999, 1000)
    assert price_to_tick_index(Decimal("1"), 6, 6) == 0

    try:
        price_to_tick_index(Decimal("0"), 6, 6)
        assert False, "Should raise for zero price"
    except ConfigurationError:
        pass

    print("  Price conversions: PASSED")


def test_get_initializable_tick_index():
    """Test aligning ticks to tick spacing"""
    from vault_adapter.protocols.whirlpool.math import get_initializable_tick_index

    print("Testing get_initializable_tick_index...")

    assert get_initializable_tick_index(1024, 64) == 1024
    assert get_initializable_tick_index(1000, 64) == 1024
    assert get_initializable_tick_index(1000, 64, round_up=False) == 960
    assert get_initializable_tick_index(970, 64) == 960
    assert get_initializable_tick_index(-1000, 64) == -1024
    assert get_initializable_tick_index(-1000, 64, round_up=True) == -960

    print("  get_initializable_tick_index: PASSED")


def test_get_start_tick_index():
    """Test tick array start index calculation"""
    from vault_adapter.protocols.whirlpool.math import (
        get_start_tick_index,
        is_valid_start_tick_index,
        ticks_in_array,
    )
    from vault_adapter.protocols.whirlpool.constants import MAX_TICK_INDEX, MIN_TICK_INDEX
    from vault_adapter.errors import ConfigurationError

    print("Testing get_start_tick_index...")

    span = ticks_in_array(64)
    assert span == 5632

    assert get_start_tick_index(0, 64) == 0
    assert get_start_tick_index(1000, 64) == 0
    assert get_start_tick_index(5632, 64) == 5632
    # Negative ticks round towards negative infinity
    assert get_start_tick_index(-1, 64) == -5632
    assert get_start_tick_index(-1280, 64) == -5632
    assert get_start_tick_index(1000, 64, offset=1) == 5632
    assert get_start_tick_index(1000, 64, offset=-2) == -11264

    assert is_valid_start_tick_index(get_start_tick_index(MIN_TICK_INDEX, 64), 64)
    assert is_valid_start_tick_index(get_start_tick_index(MAX_TICK_INDEX, 64), 64)

    for offset in (1, 2):
        try:
            get_start_tick_index(MAX_TICK_INDEX, 64, offset=offset)
            assert False, "Should raise past the maximum tick"
        except ConfigurationError:
            pass

    try:
        get_start_tick_index(MIN_TICK_INDEX, 64, offset=-1)
        assert False, "Should raise past the minimum tick"
    except ConfigurationError:
        pass

    print("  get_start_tick_index: PASSED")


def test_amounts_from_liquidity():
    """Test token amounts for a position below, in and above range"""
    from vault_adapter.protocols.whirlpool.math import (
        tick_to_sqrt_price_x64,
        get_amounts_from_liquidity,
    )

    print("Testing get_amounts_from_liquidity...")

    lower = tick_to_sqrt_price_x64(-1280)
    upper = tick_to_sqrt_price_x64(2560)
    liquidity = 10 ** 9

    below_a, below_b = get_amounts_from_liquidity(liquidity, tick_to_sqrt_price_x64(-5000), lower, upper)
    assert below_a > 0 and below_b == 0

    above_a, above_b = get_amounts_from_liquidity(liquidity, tick_to_sqrt_price_x64(5000), lower, upper)
    assert above_a == 0 and above_b > 0

    in_a, in_b = get_amounts_from_liquidity(liquidity, tick_to_sqrt_price_x64(1000), lower, upper)
    assert in_a > 0 and in_b > 0
    assert in_a < below_a and in_b < above_b

    # Rounding up never gives less
    up_a, up_b = get_amounts_from_liquidity(liquidity, tick_to_sqrt_price_x64(1000), lower, upper, round_up=True)
    assert up_a >= in_a and up_b >= in_b

    assert get_amounts_from_liquidity(0, tick_to_sqrt_price_x64(1000), lower, upper) == (0, 0)

    print("  get_amounts_from_liquidity: PASSED")


def test_liquidity_from_amounts():
    """Test liquidity estimation from token amounts"""
    from vault_adapter.protocols.whirlpool.math import (
        tick_to_sqrt_price_x64,
        get_amounts_from_liquidity,
        get_liquidity_from_amounts,
    )

    print("Testing get_liquidity_from_amounts...")

    lower = tick_to_sqrt_price_x64(-1280)
    upper = tick_to_sqrt_price_x64(2560)
    current = tick_to_sqrt_price_x64(1000)

    liquidity = get_liquidity_from_amounts(1_000_000, 1_000_000, current, lower, upper)
    assert liquidity > 0

    # The liquidity never needs more than what was offered
    amount_a, amount_b = get_amounts_from_liquidity(liquidity, current, lower, upper)
    assert amount_a <= 1_000_000
    assert amount_b <= 1_000_000
    # One side is the binding constraint
    assert max(amount_a, amount_b) > 990_000

    # Out of range only one token counts
    below = get_liquidity_from_amounts(1_000_000, 0, tick_to_sqrt_price_x64(-5000), lower, upper)
    assert below > 0
    assert get_liquidity_from_amounts(0, 1_000_000, tick_to_sqrt_price_x64(-5000), lower, upper) == 0

    print("  get_liquidity_from_amounts: PASSED")


def main():
    """Run all Whirlpool math tests"""
    print("=" * 60)
    print("Whirlpool Math Tests")
    print("=" * 60)

    tests = [
        test_tick_to_sqrt_price_x64,
        test_price_conversions,
        test_get_initializable_tick_index,
        test_get_start_tick_index,
        test_amounts_from_liquidity,
        test_liquidity_from_amounts,
    ]

    passed = 0
    failed = 0

    for test in tests:
        try:
            test()
            passed += 1
        except Exception as e:
            print(f"  FAILED: {e}")
            failed += 1

    print("=" * 60)
    print(f"Results: {passed} passed, {failed} failed")
    print("=" * 60)

    return failed == 0


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)

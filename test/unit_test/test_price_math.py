"""
Test Price Math

Tests for LP <-> token amount conversions against live pool state.
"""

import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from conftest import build_vault_world, make_resolver, run, whirlpool_bytes, WHIRLPOOL, REWARD_MINT, REWARD_VAULT


def _price_math(world):
    from vault_adapter.modules import PriceMath
    return PriceMath(make_resolver(world))


def _vault_key():
    from vault_adapter.types import VaultKey
    return VaultKey(WHIRLPOOL, 0)


def test_lp_round_trip_bounds():
    """Test LP minted for amounts never needs more than offered"""
    print("Testing LP from token amounts...")

    price_math = _price_math(build_vault_world())

    lp = run(price_math.lp_from_token_amounts(_vault_key(), 1_000_000, 1_000_000))
    assert lp > 0

    amount_a, amount_b = run(price_math.token_amounts_from_lp(_vault_key(), lp))
    assert amount_a <= 1_000_000
    assert amount_b <= 1_000_000
    assert max(amount_a, amount_b) > 990_000

    assert run(price_math.lp_from_token_amounts(_vault_key(), 0, 0)) == 0
    assert run(price_math.token_amounts_from_lp(_vault_key(), 0)) == (0, 0)

    print("  LP from token amounts: PASSED")


def test_uses_pool_tick_price():
    """Test the quote follows the pool's current tick"""
    print("Testing pool tick price...")

    # Below the position range only token A backs liquidity
    below = _price_math(build_vault_world(tick_current_index=-5000))
    amount_a, amount_b = run(below.token_amounts_from_lp(_vault_key(), 10 ** 9))
    assert amount_a > 0 and amount_b == 0

    # Above the range only token B
    above = _price_math(build_vault_world(tick_current_index=5000))
    amount_a, amount_b = run(above.token_amounts_from_lp(_vault_key(), 10 ** 9))
    assert amount_a == 0 and amount_b > 0

    print("  Pool tick price: PASSED")


def test_reads_fresh_pool():
    """Test each conversion re-reads pool state"""
    print("Testing fresh pool reads...")

    world = build_vault_world()
    price_math = _price_math(world)

    in_range = run(price_math.token_amounts_from_lp(_vault_key(), 10 ** 9))
    assert in_range[0] > 0 and in_range[1] > 0

    world.reader.put(WHIRLPOOL, whirlpool_bytes(tick_current_index=5000, rewards=((REWARD_MINT, REWARD_VAULT),)))
    moved = run(price_math.token_amounts_from_lp(_vault_key(), 10 ** 9))
    assert moved[0] == 0

    print("  Fresh pool reads: PASSED")


def test_requires_open_position():
    """Test conversions fail for a vault without a position"""
    from vault_adapter.errors import ConfigurationError

    print("Testing vault without position...")

    price_math = _price_math(build_vault_world(with_position=False))
    try:
        run(price_math.lp_from_token_amounts(_vault_key(), 1, 1))
        assert False, "Should raise ConfigurationError"
    except ConfigurationError:
        pass

    print("  Vault without position: PASSED")


def main():
    """Run all price math tests"""
    print("=" * 60)
    print("Price Math Tests")
    print("=" * 60)

    tests = [
        test_lp_round_trip_bounds,
        test_uses_pool_tick_price,
        test_reads_fresh_pool,
        test_requires_open_position,
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

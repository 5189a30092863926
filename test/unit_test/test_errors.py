"""
Test Errors Module

Tests for vault_adapter.errors package.
"""

import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))


def test_error_code():
    """Test ErrorCode enum"""
    from vault_adapter.errors import ErrorCode

    print("Testing ErrorCode...")

    assert ErrorCode.RPC_CONNECTION_FAILED.value == "1001"
    assert ErrorCode.ACCOUNT_NOT_FOUND.value == "4001"
    assert ErrorCode.ACCOUNT_DECODE_FAILED.value == "4002"
    assert ErrorCode.NO_OPEN_POSITION.value == "9003"

    print("  ErrorCode: PASSED")


def test_vault_adapter_error():
    """Test VaultAdapterError base class"""
    from vault_adapter.errors import VaultAdapterError, ErrorCode

    print("Testing VaultAdapterError...")

    error = VaultAdapterError(
        message="Test error",
        code=ErrorCode.RPC_CONNECTION_FAILED,
        recoverable=True,
    )

    # __str__ returns "[code] message" format
    assert "[1001] Test error" == str(error)
    assert error.code == ErrorCode.RPC_CONNECTION_FAILED
    assert error.should_retry is True
    assert error.details == {}

    print("  VaultAdapterError: PASSED")


def test_rpc_error():
    """Test RpcError constructors"""
    from vault_adapter.errors import RpcError, ErrorCode

    print("Testing RpcError...")

    error1 = RpcError.connection_failed("https://rpc.example.com")
    assert error1.code == ErrorCode.RPC_CONNECTION_FAILED
    assert error1.recoverable is True
    assert error1.endpoint == "https://rpc.example.com"

    error2 = RpcError.timeout("https://rpc.example.com", 30)
    assert error2.code == ErrorCode.RPC_TIMEOUT
    assert "30" in error2.message

    error3 = RpcError.rate_limited("https://rpc.example.com")
    assert error3.code == ErrorCode.RPC_RATE_LIMITED

    error4 = RpcError.invalid_response("https://rpc.example.com", "bad json")
    assert error4.code == ErrorCode.RPC_INVALID_RESPONSE
    assert "bad json" in str(error4)

    print("  RpcError: PASSED")


def test_account_not_found_error():
    """Test AccountNotFoundError carries the address"""
    from vault_adapter.errors import AccountNotFoundError, ErrorCode

    print("Testing AccountNotFoundError...")

    error = AccountNotFoundError("So11111111111111111111111111111111111111112")
    assert error.code == ErrorCode.ACCOUNT_NOT_FOUND
    assert error.recoverable is False
    assert error.address == "So11111111111111111111111111111111111111112"
    assert error.details["address"] == error.address
    assert error.address in str(error)

    print("  AccountNotFoundError: PASSED")


def test_decode_error():
    """Test DecodeError carries address and kind"""
    from vault_adapter.errors import DecodeError, ErrorCode

    print("Testing DecodeError...")

    cause = ValueError("short buffer")
    error = DecodeError("Addr111", "Whirlpool", "short buffer", original_error=cause)
    assert error.code == ErrorCode.ACCOUNT_DECODE_FAILED
    assert error.kind == "Whirlpool"
    assert error.address == "Addr111"
    assert error.original_error is cause
    assert "Whirlpool" in str(error)

    print("  DecodeError: PASSED")


def test_configuration_error():
    """Test ConfigurationError constructors"""
    from vault_adapter.errors import ConfigurationError, ErrorCode

    print("Testing ConfigurationError...")

    missing = ConfigurationError.missing("VAULT_PROGRAM_ID")
    assert missing.code == ErrorCode.CONFIG_MISSING
    assert "VAULT_PROGRAM_ID" in missing.message

    invalid = ConfigurationError.invalid("fee", "too large")
    assert invalid.code == ErrorCode.CONFIG_INVALID

    no_position = ConfigurationError.no_open_position("Vault111")
    assert no_position.code == ErrorCode.NO_OPEN_POSITION
    assert no_position.details["vault_account"] == "Vault111"

    no_route = ConfigurationError.no_swap_route("Vault111", "Reward111")
    assert no_route.code == ErrorCode.NO_SWAP_ROUTE
    assert no_route.details["rewards_mint"] == "Reward111"

    mismatch = ConfigurationError.position_pool_mismatch("Pos111", "PoolA", "PoolB")
    assert mismatch.details == {"position": "Pos111", "expected": "PoolA", "actual": "PoolB"}

    print("  ConfigurationError: PASSED")


def test_error_inheritance():
    """Test every error derives from VaultAdapterError"""
    from vault_adapter.errors import (
        VaultAdapterError,
        RpcError,
        AccountNotFoundError,
        DecodeError,
        ConfigurationError,
    )

    print("Testing error inheritance...")

    for cls in (RpcError, AccountNotFoundError, DecodeError, ConfigurationError):
        assert issubclass(cls, VaultAdapterError)
        assert issubclass(cls, Exception)

    print("  Error inheritance: PASSED")


def main():
    """Run all error tests"""
    print("=" * 60)
    print("Vault Adapter Errors Tests")
    print("=" * 60)

    tests = [
        test_error_code,
        test_vault_adapter_error,
        test_rpc_error,
        test_account_not_found_error,
        test_decode_error,
        test_configuration_error,
        test_error_inheritance,
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

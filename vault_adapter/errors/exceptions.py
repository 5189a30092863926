"""
Exception definitions for Vault Adapter
"""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """
    Unified error codes for vault client operations

    1xxx - RPC errors
    4xxx - Account errors
    9xxx - Configuration errors
    """
    # RPC errors (recoverable)
    RPC_CONNECTION_FAILED = "1001"
    RPC_TIMEOUT = "1002"
    RPC_RATE_LIMITED = "1003"
    RPC_INVALID_RESPONSE = "1004"

    # Account errors
    ACCOUNT_NOT_FOUND = "4001"
    ACCOUNT_DECODE_FAILED = "4002"

    # Configuration errors
    CONFIG_INVALID = "9001"
    CONFIG_MISSING = "9002"
    NO_OPEN_POSITION = "9003"
    NO_SWAP_ROUTE = "9004"


class VaultAdapterError(Exception):
    """
    Base exception for all vault adapter errors

    Attributes:
        message: Human-readable error message
        code: Error code for programmatic handling
        recoverable: Whether the error might succeed on retry
        original_error: The underlying exception if any
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        recoverable: bool = False,
        original_error: Optional[Exception] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.recoverable = recoverable
        self.original_error = original_error
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"

    @property
    def should_retry(self) -> bool:
        """Indicate if the operation should be retried"""
        return self.recoverable


class RpcError(VaultAdapterError):
    """
    RPC-related errors - typically recoverable

    Raised when:
    - Connection to RPC endpoint fails
    - Request times out
    - Rate limit is hit
    - Invalid response received
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.RPC_CONNECTION_FAILED,
        original_error: Optional[Exception] = None,
        endpoint: Optional[str] = None,
    ):
        super().__init__(
            message,
            code,
            recoverable=True,
            original_error=original_error,
            details={"endpoint": endpoint} if endpoint else None,
        )
        self.endpoint = endpoint

    @classmethod
    def connection_failed(cls, endpoint: str, error: Exception = None) -> "RpcError":
        return cls(
            f"Failed to connect to RPC endpoint: {endpoint}",
            ErrorCode.RPC_CONNECTION_FAILED,
            original_error=error,
            endpoint=endpoint,
        )

    @classmethod
    def timeout(cls, endpoint: str, timeout_seconds: float) -> "RpcError":
        return cls(
            f"RPC request timed out after {timeout_seconds}s",
            ErrorCode.RPC_TIMEOUT,
            endpoint=endpoint,
        )

    @classmethod
    def rate_limited(cls, endpoint: str) -> "RpcError":
        return cls(
            "RPC rate limit exceeded",
            ErrorCode.RPC_RATE_LIMITED,
            endpoint=endpoint,
        )

    @classmethod
    def invalid_response(cls, endpoint: str, reason: str) -> "RpcError":
        return cls(
            f"Invalid RPC response: {reason}",
            ErrorCode.RPC_INVALID_RESPONSE,
            endpoint=endpoint,
        )


class AccountNotFoundError(VaultAdapterError):
    """
    Remote account does not exist - not recoverable

    Raised when a batched read returns no account for a requested address.
    Never retried locally and never replaced by a default value.
    """

    def __init__(self, address: str):
        super().__init__(
            f"Account not found: {address}",
            ErrorCode.ACCOUNT_NOT_FOUND,
            recoverable=False,
            details={"address": address},
        )
        self.address = address


class DecodeError(VaultAdapterError):
    """
    Account bytes do not match the expected layout - not recoverable

    Usually means the on-chain program version does not match the layout
    this client was built for.
    """

    def __init__(
        self,
        address: str,
        kind: str,
        reason: str,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            f"Cannot decode {address} as {kind}: {reason}",
            ErrorCode.ACCOUNT_DECODE_FAILED,
            recoverable=False,
            original_error=original_error,
            details={"address": address, "kind": kind},
        )
        self.address = address
        self.kind = kind


class ConfigurationError(VaultAdapterError):
    """
    Configuration-related errors

    Raised when:
    - Required configuration is missing
    - Configuration values are invalid
    - A vault precondition is unmet (no open position, no swap route)
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CONFIG_INVALID,
        details: Optional[dict] = None,
    ):
        super().__init__(message, code, recoverable=False, details=details)

    @classmethod
    def missing(cls, param: str) -> "ConfigurationError":
        return cls(f"Missing required configuration: {param}", ErrorCode.CONFIG_MISSING)

    @classmethod
    def invalid(cls, param: str, reason: str) -> "ConfigurationError":
        return cls(f"Invalid configuration '{param}': {reason}", ErrorCode.CONFIG_INVALID)

    @classmethod
    def no_open_position(cls, vault_account: str) -> "ConfigurationError":
        return cls(
            f"Vault {vault_account} has no open position",
            ErrorCode.NO_OPEN_POSITION,
            details={"vault_account": vault_account},
        )

    @classmethod
    def no_swap_route(cls, vault_account: str, rewards_mint: str) -> "ConfigurationError":
        return cls(
            f"Vault {vault_account} has no swap route configured for rewards mint {rewards_mint}",
            ErrorCode.NO_SWAP_ROUTE,
            details={"vault_account": vault_account, "rewards_mint": rewards_mint},
        )

    @classmethod
    def position_pool_mismatch(cls, position: str, expected: str, actual: str) -> "ConfigurationError":
        return cls(
            f"Position {position} belongs to whirlpool {actual}, expected {expected}",
            ErrorCode.CONFIG_INVALID,
            details={"position": position, "expected": expected, "actual": actual},
        )

"""
Error definitions for Vault Adapter
"""

from .exceptions import (
    ErrorCode,
    VaultAdapterError,
    RpcError,
    AccountNotFoundError,
    DecodeError,
    ConfigurationError,
)

__all__ = [
    "ErrorCode",
    "VaultAdapterError",
    "RpcError",
    "AccountNotFoundError",
    "DecodeError",
    "ConfigurationError",
]

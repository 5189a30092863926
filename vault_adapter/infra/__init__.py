"""
Infrastructure layer for Vault Adapter

Provides:
- RpcClient: Async Solana JSON-RPC client
- AccountReader: Remote account source protocol
"""

from .rpc import RpcClient, RpcClientConfig, AccountReader

__all__ = [
    "RpcClient",
    "RpcClientConfig",
    "AccountReader",
]

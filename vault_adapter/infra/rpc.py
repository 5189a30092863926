"""
Async RPC Client for Solana

Provides the remote account reader with:
- Multiple endpoint fallback
- Retry logic
- Rate limit handling
- Request timeout management
- Chunked getMultipleAccounts batches
"""

from __future__ import annotations

import asyncio
import base64
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence, Union

import httpx
from solders.pubkey import Pubkey

from ..errors import RpcError, ConfigurationError
from ..config import config as global_config
from ..types import AccountBlob

logger = logging.getLogger(__name__)


class AccountReader(Protocol):
    """
    Remote account source

    batch_get returns one entry per requested address, in request order,
    with None for addresses that have no account.
    """

    async def batch_get(self, addresses: Sequence[Pubkey]) -> List[Optional[AccountBlob]]:
        ...


@dataclass
class RpcClientConfig:
    """
    RPC client runtime configuration

    This is a runtime configuration class that allows per-client overrides
    while pulling defaults from the global config (vault_adapter.config.RpcConfig).

    Usage:
        # Use all defaults from environment
        client = RpcClient(endpoint)

        # Override specific settings
        config = RpcClientConfig(timeout_seconds=60, max_retries=5)
        client = RpcClient(endpoint, config=config)
    """
    timeout_seconds: float = None
    max_retries: int = None
    retry_delay_seconds: float = None
    commitment: str = None
    max_accounts_per_request: int = None

    def __post_init__(self):
        """Apply defaults from global config for any unset values"""
        if self.timeout_seconds is None:
            self.timeout_seconds = global_config.rpc.timeout_seconds
        if self.max_retries is None:
            self.max_retries = global_config.rpc.max_retries
        if self.retry_delay_seconds is None:
            self.retry_delay_seconds = global_config.rpc.retry_delay_seconds
        if self.commitment is None:
            self.commitment = global_config.rpc.commitment
        if self.max_accounts_per_request is None:
            self.max_accounts_per_request = global_config.rpc.max_accounts_per_request
        if self.max_accounts_per_request < 1:
            raise ConfigurationError.invalid(
                "max_accounts_per_request", f"must be positive, got {self.max_accounts_per_request}"
            )


class RpcClient:
    """
    Async Solana RPC client

    Supports:
    - Multiple RPC endpoints with automatic fallback
    - Retry logic for transient failures
    - Rate limit handling with backoff
    - Configurable timeouts

    Usage:
        async with RpcClient("https://api.mainnet-beta.solana.com") as rpc:
            blobs = await rpc.batch_get([address_a, address_b])

            # Custom RPC call
            slot = await rpc.call("getSlot", [])
    """

    def __init__(
        self,
        endpoint: Union[str, List[str]],
        config: Optional[RpcClientConfig] = None,
    ):
        """
        Initialize RPC client

        Args:
            endpoint: RPC endpoint URL or list of URLs (for fallback)
            config: RPC configuration options
        """
        self._endpoints = [endpoint] if isinstance(endpoint, str) else list(endpoint)
        if not self._endpoints or not all(self._endpoints):
            raise ConfigurationError.missing("RPC endpoint")

        self._config = config or RpcClientConfig()
        self._current_endpoint_idx = 0
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def endpoint(self) -> str:
        """Current active endpoint"""
        return self._endpoints[self._current_endpoint_idx]

    @property
    def commitment(self) -> str:
        """Default commitment level"""
        return self._config.commitment

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client (single event loop, no locking)"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._config.timeout_seconds,
                headers={"Content-Type": "application/json"},
            )
        return self._client

    def _rotate_endpoint(self):
        """Rotate to next endpoint on failure"""
        if len(self._endpoints) > 1:
            self._current_endpoint_idx = (self._current_endpoint_idx + 1) % len(self._endpoints)
            logger.info(f"Rotating to RPC endpoint: {self.endpoint}")

    async def call(
        self,
        method: str,
        params: List[Any],
        timeout: Optional[float] = None,
    ) -> Any:
        """
        Make JSON-RPC call

        Args:
            method: RPC method name
            params: RPC parameters
            timeout: Optional timeout override

        Returns:
            RPC result

        Raises:
            RpcError: On RPC failure
        """
        client = self._get_client()
        body = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": method,
            "params": params,
        }
        timeout_val = timeout or self._config.timeout_seconds

        last_error: Optional[Exception] = None
        endpoints_tried = 0
        max_endpoints = len(self._endpoints)

        while endpoints_tried < max_endpoints:
            for attempt in range(self._config.max_retries):
                try:
                    response = await client.post(
                        self.endpoint,
                        json=body,
                        timeout=timeout_val,
                    )

                    # Handle rate limiting
                    if response.status_code == 429:
                        logger.warning(f"Rate limited by {self.endpoint}")
                        last_error = RpcError.rate_limited(self.endpoint)
                        await asyncio.sleep(self._config.retry_delay_seconds * (attempt + 1))
                        continue

                    response.raise_for_status()
                    result = response.json()

                    # Check for RPC error
                    if "error" in result:
                        error = result["error"]
                        error_msg = error.get("message", str(error))
                        rpc_error = RpcError(
                            f"RPC error: {error_msg}",
                            endpoint=self.endpoint,
                        )
                        # Preserve RPC error code in details for debugging
                        rpc_error.details["rpc_error_code"] = error.get("code")
                        rpc_error.details["rpc_error_data"] = error.get("data")
                        raise rpc_error

                    return result.get("result")

                except httpx.TimeoutException:
                    last_error = RpcError.timeout(self.endpoint, timeout_val)
                    logger.warning(f"RPC timeout (attempt {attempt + 1}): {self.endpoint}")

                except httpx.HTTPStatusError as e:
                    last_error = RpcError(
                        f"HTTP error {e.response.status_code}",
                        endpoint=self.endpoint,
                        original_error=e,
                    )
                    logger.warning(f"RPC HTTP error (attempt {attempt + 1}): {e}")

                except httpx.RequestError as e:
                    last_error = RpcError.connection_failed(self.endpoint, e)
                    logger.warning(f"RPC connection error (attempt {attempt + 1}): {e}")

                except RpcError:
                    raise

                except ValueError as e:
                    last_error = RpcError.invalid_response(self.endpoint, str(e))
                    logger.warning(f"RPC invalid response (attempt {attempt + 1}): {e}")

                # Wait before retry
                if attempt < self._config.max_retries - 1:
                    await asyncio.sleep(self._config.retry_delay_seconds * (attempt + 1))

            # All retries failed, try next endpoint
            self._rotate_endpoint()
            endpoints_tried += 1

        # All endpoints failed
        raise last_error or RpcError("All RPC endpoints failed")

    async def get_multiple_accounts(
        self,
        addresses: List[str],
        encoding: str = "base64",
        commitment: Optional[str] = None,
    ) -> List[Optional[Dict[str, Any]]]:
        """
        Get multiple account information in one call

        Args:
            addresses: List of account addresses
            encoding: Data encoding
            commitment: Commitment level

        Returns:
            List of account info (None for accounts not found)
        """
        params = [
            addresses,
            {
                "encoding": encoding,
                "commitment": commitment or self.commitment,
            },
        ]
        result = await self.call("getMultipleAccounts", params)
        return result.get("value", []) if result else []

    async def batch_get(self, addresses: Sequence[Pubkey]) -> List[Optional[AccountBlob]]:
        """
        Read raw account bytes for many addresses

        Requests are chunked to the per-request key limit and issued
        concurrently; the result preserves the order of `addresses`.

        Args:
            addresses: Account addresses

        Returns:
            One AccountBlob (or None when the account does not exist) per address
        """
        if not addresses:
            return []

        size = self._config.max_accounts_per_request
        chunks = [list(addresses[i:i + size]) for i in range(0, len(addresses), size)]
        logger.debug(f"getMultipleAccounts: {len(addresses)} addresses in {len(chunks)} request(s)")

        responses = await asyncio.gather(*[
            self.get_multiple_accounts([str(address) for address in chunk])
            for chunk in chunks
        ])

        blobs: List[Optional[AccountBlob]] = []
        for chunk, values in zip(chunks, responses):
            if len(values) != len(chunk):
                raise RpcError.invalid_response(
                    self.endpoint,
                    f"requested {len(chunk)} accounts, got {len(values)}",
                )
            for address, value in zip(chunk, values):
                blobs.append(self._to_blob(address, value))
        return blobs

    def _to_blob(self, address: Pubkey, value: Optional[Dict[str, Any]]) -> Optional[AccountBlob]:
        if value is None:
            return None
        try:
            data = base64.b64decode(value["data"][0])
            owner = Pubkey.from_string(value["owner"]) if value.get("owner") else None
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise RpcError.invalid_response(self.endpoint, f"malformed account {address}: {e}")
        return AccountBlob(address=address, data=data, owner=owner)

    async def close(self):
        """Close HTTP client"""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

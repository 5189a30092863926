"""
Account Cache

Fetches and memoizes raw account bytes keyed by address, and decodes them
into typed views on demand. The cache is type-agnostic: decoding always
runs against the cached bytes, with the decoder chosen at the call site.
"""

import logging
import struct
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Iterable, List, Optional, TypeVar

from solders.pubkey import Pubkey

from ..errors import AccountNotFoundError, DecodeError, RpcError
from ..infra import AccountReader
from ..protocols.whirlpool import parse_whirlpool, parse_position, parse_mint, parse_token_account
from ..protocols.vault import parse_vault
from ..types import AccountBlob, WhirlpoolView, PositionView, MintView, TokenAccountView, VaultView

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class AccountDecoder(Generic[T]):
    """
    Typed decoder for one entity kind

    Attributes:
        kind: Entity name reported in DecodeError
        parse: (address, data) -> view, raising on malformed input
    """
    kind: str
    parse: Callable[[Pubkey, bytes], T]

    def decode(self, blob: AccountBlob) -> T:
        try:
            return self.parse(blob.address, blob.data)
        except (ValueError, IndexError, struct.error) as e:
            raise DecodeError(str(blob.address), self.kind, str(e), original_error=e) from e


WHIRLPOOL: AccountDecoder[WhirlpoolView] = AccountDecoder("Whirlpool", parse_whirlpool)
POSITION: AccountDecoder[PositionView] = AccountDecoder("Position", parse_position)
MINT: AccountDecoder[MintView] = AccountDecoder("Mint", parse_mint)
TOKEN_ACCOUNT: AccountDecoder[TokenAccountView] = AccountDecoder("TokenAccount", parse_token_account)
VAULT: AccountDecoder[VaultView] = AccountDecoder("VaultAccount", parse_vault)


class AccountCache:
    """
    Session-owned account cache

    One instance per session/connection, shared by every resolution in
    flight. Entries are inserted or replaced whole, never mutated, and
    never evicted.

    Usage:
        cache = AccountCache(rpc)

        pool = await cache.get_whirlpool(pool_address)
        await cache.fetch_many([position_a, position_b])
        vault = await cache.get_vault(vault_address, force_refresh=True)
    """

    def __init__(self, reader: AccountReader):
        """
        Initialize account cache

        Args:
            reader: Remote account source (batched, order-preserving)
        """
        self._reader = reader
        self._blobs: Dict[str, AccountBlob] = {}

    def __contains__(self, address: Pubkey) -> bool:
        return str(address) in self._blobs

    def __len__(self) -> int:
        return len(self._blobs)

    def cached(self, address: Pubkey) -> Optional[AccountBlob]:
        """Cached blob for address, without fetching"""
        return self._blobs.get(str(address))

    def clear(self):
        """Drop every cached blob"""
        self._blobs.clear()

    async def fetch_many(
        self,
        addresses: Iterable[Pubkey],
        force_refresh: bool = False,
    ) -> None:
        """
        Fetch accounts in a single batched read

        Only addresses not already cached are requested, unless
        force_refresh is set. Every returned blob is stored before a
        missing address is reported.

        Raises:
            AccountNotFoundError: First requested address with no account
        """
        missing = await self._fetch(addresses, force_refresh)
        if missing:
            raise AccountNotFoundError(str(missing[0]))

    async def missing(self, addresses: Iterable[Pubkey]) -> List[Pubkey]:
        """
        Addresses that have no on-chain account

        Cached addresses are known to exist and are not re-read. Found
        accounts are cached as a side effect.
        """
        return await self._fetch(addresses, force_refresh=False)

    async def get(
        self,
        address: Pubkey,
        decoder: AccountDecoder[T],
        force_refresh: bool = False,
    ) -> T:
        """
        Get decoded account view

        Args:
            address: Account address
            decoder: Decoder for the expected entity kind
            force_refresh: Re-read the account even if cached

        Returns:
            Decoded view

        Raises:
            AccountNotFoundError: Account does not exist
            DecodeError: Bytes do not match the decoder's layout
        """
        key = str(address)
        if force_refresh or key not in self._blobs:
            await self.fetch_many([address], force_refresh=force_refresh)
        else:
            logger.debug(f"Cache hit: {key}")
        return decoder.decode(self._blobs[key])

    async def get_whirlpool(self, address: Pubkey, force_refresh: bool = False) -> WhirlpoolView:
        return await self.get(address, WHIRLPOOL, force_refresh)

    async def get_position(self, address: Pubkey, force_refresh: bool = False) -> PositionView:
        return await self.get(address, POSITION, force_refresh)

    async def get_mint(self, address: Pubkey, force_refresh: bool = False) -> MintView:
        return await self.get(address, MINT, force_refresh)

    async def get_token_account(self, address: Pubkey, force_refresh: bool = False) -> TokenAccountView:
        return await self.get(address, TOKEN_ACCOUNT, force_refresh)

    async def get_vault(self, address: Pubkey, force_refresh: bool = False) -> VaultView:
        return await self.get(address, VAULT, force_refresh)

    async def _fetch(self, addresses: Iterable[Pubkey], force_refresh: bool) -> List[Pubkey]:
        """Batch-read addresses and store results, returning those not found"""
        # Keep first occurrence order, drop duplicates
        unique: Dict[str, Pubkey] = {}
        for address in addresses:
            unique.setdefault(str(address), address)

        if force_refresh:
            to_fetch = list(unique.values())
        else:
            to_fetch = [address for key, address in unique.items() if key not in self._blobs]

        if not to_fetch:
            return []

        logger.debug(f"Cache miss: fetching {len(to_fetch)} account(s)")
        blobs = await self._reader.batch_get(to_fetch)
        if len(blobs) != len(to_fetch):
            raise RpcError.invalid_response("account reader", f"requested {len(to_fetch)} accounts, got {len(blobs)}")

        not_found: List[Pubkey] = []
        for address, blob in zip(to_fetch, blobs):
            if blob is None:
                not_found.append(address)
                self._blobs.pop(str(address), None)
                continue
            if blob.address != address:
                blob = AccountBlob(address=address, data=blob.data, owner=blob.owner)
            self._blobs[str(address)] = blob

        if not_found:
            logger.debug(f"Accounts not found: {[str(a) for a in not_found]}")
        return not_found

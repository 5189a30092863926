"""
VaultClient - Entry point for vault operations

Wires the RPC reader, account cache, resolver and instruction assembler
for one session.
"""

from __future__ import annotations

from typing import Optional, Union, List, TYPE_CHECKING

from solders.pubkey import Pubkey

from .config import config as global_config
from .errors import ConfigurationError
from .infra import AccountReader, RpcClient, RpcClientConfig
from .modules.account_cache import AccountCache
from .modules.resolver import AddressResolver

if TYPE_CHECKING:
    from .modules.assembler import InstructionAssembler
    from .modules.price_math import PriceMath


class VaultClient:
    """
    Vault client

    Provides access to:
    - cache: Shared account cache
    - resolver: Address resolution
    - instructions: Unsigned instruction building
    - price_math: LP <-> token conversions

    Usage:
        async with VaultClient(rpc_url, program_id="Vault...") as client:
            key = VaultKey(Pubkey.from_string("Pool..."), vault_id=0)

            addresses = await client.resolver.vault_addresses(key)
            ix = await client.instructions.deposit(user, key, lp, max_a, max_b)
    """

    def __init__(
        self,
        rpc_url: Optional[Union[str, List[str]]] = None,
        program_id: Optional[Union[str, Pubkey]] = None,
        whirlpool_program_id: Optional[Union[str, Pubkey]] = None,
        rpc_config: Optional[RpcClientConfig] = None,
        reader: Optional[AccountReader] = None,
    ):
        """
        Initialize VaultClient

        Args:
            rpc_url: RPC endpoint URL or list of URLs (defaults to SOLANA_RPC_URL)
            program_id: Vault program ID (defaults to VAULT_PROGRAM_ID)
            whirlpool_program_id: Whirlpool program ID (defaults to WHIRLPOOL_PROGRAM_ID)
            rpc_config: Optional RPC configuration
            reader: Account reader to use instead of an RPC client
        """
        program_id = program_id or global_config.vault.program_id
        if not program_id:
            raise ConfigurationError.missing("VAULT_PROGRAM_ID")
        whirlpool_program_id = whirlpool_program_id or global_config.vault.whirlpool_program_id

        self._rpc: Optional[RpcClient] = None
        if reader is None:
            self._rpc = RpcClient(rpc_url or global_config.rpc.url, config=rpc_config)
            reader = self._rpc

        self._cache = AccountCache(reader)
        self._resolver = AddressResolver(
            self._cache,
            _to_pubkey(program_id),
            _to_pubkey(whirlpool_program_id),
        )

        # Lazy-loaded modules
        self._instructions: Optional["InstructionAssembler"] = None
        self._price_math: Optional["PriceMath"] = None

    @property
    def rpc(self) -> Optional[RpcClient]:
        """Access to RPC client (None when a custom reader is used)"""
        return self._rpc

    @property
    def cache(self) -> AccountCache:
        """Access to the session's account cache"""
        return self._cache

    @property
    def resolver(self) -> AddressResolver:
        """Access to address resolver"""
        return self._resolver

    @property
    def program_id(self) -> Pubkey:
        return self._resolver.program_id

    @property
    def instructions(self) -> "InstructionAssembler":
        """
        Instruction assembler

        Provides:
        - initialize_vault / open_position / close_position
        - deposit / withdraw
        - collect_fees / collect_rewards / swap_rewards / reinvest / rebalance
        - set_vault_fee / set_vault_pause_status / set_market_rewards
        """
        if self._instructions is None:
            from .modules.assembler import InstructionAssembler
            self._instructions = InstructionAssembler(self._resolver)
        return self._instructions

    @property
    def price_math(self) -> "PriceMath":
        """
        LP <-> token amount conversions

        Provides:
        - lp_from_token_amounts(key, amount_a, amount_b)
        - token_amounts_from_lp(key, lp_amount)
        """
        if self._price_math is None:
            from .modules.price_math import PriceMath
            self._price_math = PriceMath(self._resolver)
        return self._price_math

    async def close(self):
        """Close client connections and release resources"""
        if self._rpc is not None:
            await self._rpc.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def __repr__(self) -> str:
        endpoint = self._rpc.endpoint if self._rpc else "custom reader"
        return f"VaultClient(endpoint={endpoint}, program={self.program_id})"


def _to_pubkey(value: Union[str, Pubkey]) -> Pubkey:
    if isinstance(value, Pubkey):
        return value
    try:
        return Pubkey.from_string(value)
    except ValueError as e:
        raise ConfigurationError.invalid("program_id", f"{value!r} is not a valid address: {e}") from e

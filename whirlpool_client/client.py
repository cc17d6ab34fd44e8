"""
WhirlpoolClient - Unified entry point for Whirlpool swaps

Wires the RPC client, signer, transaction builder and protocol components
together and exposes the swap module.
"""

from __future__ import annotations

from typing import Optional, Union, List, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from solders.keypair import Keypair

from .infra import RpcClient, RpcClientConfig, TxBuilder, TxBuilderConfig, create_signer, Signer
from .types import Whirlpool, Percentage
from .errors import ConfigurationError
from .config import config
from .protocols.whirlpool import WhirlpoolFetcher, QuoteEngine, RpcLookupTableFetcher
from .routing import Router


class WhirlpoolClient:
    """
    Whirlpool swap client

    Provides:
    - swap: single-pool and routed swaps
    - fetcher: pool state reads
    - quote_engine: quotes against live pools

    Usage:
        # RPC URL and keypair from SOLANA_RPC_URL / SOLANA_KEYPAIR_PATH
        with WhirlpoolClient() as client:
            result = client.swap.execute_single_swap(identity, DEV_USDC, DEV_SAMO, 1_000_000, slippage)

        # Explicit settings
        client = WhirlpoolClient(
            rpc_url="https://api.devnet.solana.com",
            keypair_path="/path/to/keypair.json",
        )
    """

    def __init__(
        self,
        rpc_url: Union[str, List[str], None] = None,
        keypair: Optional["Keypair"] = None,
        keypair_path: Optional[str] = None,
        rpc_config: Optional[RpcClientConfig] = None,
        tx_config: Optional[TxBuilderConfig] = None,
        program_id: Optional[str] = None,
        lookup_tables: Optional[Sequence[str]] = None,
    ):
        """
        Initialize WhirlpoolClient

        Args:
            rpc_url: RPC endpoint URL or list of URLs for fallback (default: SOLANA_RPC_URL)
            keypair: Optional Keypair for local signing
            keypair_path: Optional path to keypair file (default: SOLANA_KEYPAIR_PATH)
            rpc_config: Optional RPC configuration
            tx_config: Optional transaction configuration
            program_id: Whirlpool program (default: WHIRLPOOL_PROGRAM_ID)
            lookup_tables: Lookup table accounts offered to the router (default: WHIRLPOOL_LOOKUP_TABLES)
        """
        rpc_url = rpc_url or config.rpc.url
        if not rpc_url:
            raise ConfigurationError.missing("SOLANA_RPC_URL (or ANCHOR_PROVIDER_URL)")

        self._rpc = RpcClient(rpc_url, config=rpc_config)
        self._signer = create_signer(keypair=keypair, keypair_path=keypair_path)
        self._tx_builder = TxBuilder(self._rpc, self._signer, config=tx_config)

        self._program_id = program_id or config.whirlpool.program_id
        self._fetcher = WhirlpoolFetcher(self._rpc, program_id=self._program_id)
        self._quote_engine = QuoteEngine(self._fetcher)

        table_addresses = list(lookup_tables) if lookup_tables is not None else config.whirlpool.lookup_tables
        self._lookup_table_fetcher = (
            RpcLookupTableFetcher(self._rpc, table_addresses) if table_addresses else None
        )

        # Lazy-loaded modules
        self._swap: Optional["SwapModule"] = None

    @property
    def rpc(self) -> RpcClient:
        """Access to RPC client"""
        return self._rpc

    @property
    def signer(self) -> Signer:
        """Access to signer"""
        return self._signer

    @property
    def tx_builder(self) -> TxBuilder:
        """Access to transaction builder"""
        return self._tx_builder

    @property
    def pubkey(self) -> str:
        """Owner's public key"""
        return self._signer.pubkey

    @property
    def program_id(self) -> str:
        return self._program_id

    @property
    def fetcher(self) -> WhirlpoolFetcher:
        return self._fetcher

    @property
    def quote_engine(self) -> QuoteEngine:
        return self._quote_engine

    @property
    def lookup_table_fetcher(self) -> Optional[RpcLookupTableFetcher]:
        """None when no lookup tables are configured (routes must fit as legacy)"""
        return self._lookup_table_fetcher

    @property
    def swap(self) -> "SwapModule":
        """
        Swap module

        Provides:
        - execute_single_swap(identity, input_token, output_token, amount, slippage)
        - execute_routed_swap(candidate_pools, trade, ...)
        - execute_routed_swap_for_config(config_id, trade, ...)
        """
        if self._swap is None:
            from .modules.swap import SwapModule
            self._swap = SwapModule(self)
        return self._swap

    def get_router(self, pools: Sequence[Whirlpool], slippage: Optional[Percentage] = None) -> Router:
        """Router over the given candidate pools"""
        return Router(
            self._fetcher,
            self._tx_builder,
            pools,
            lookup_table_fetcher=self._lookup_table_fetcher,
            slippage=slippage,
        )

    def close(self):
        """Close client connections and release resources"""
        self._rpc.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self) -> str:
        return f"WhirlpoolClient(endpoint={self._rpc.endpoint}, pubkey={self.pubkey[:8]}...)"


# Type hints for modules (resolved at runtime)
if TYPE_CHECKING:
    from .modules.swap import SwapModule

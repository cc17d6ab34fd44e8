"""
Orca Whirlpool Protocol

Provides:
- PDA derivation for pools, tick arrays, oracles and ATAs
- Whirlpool account parsing and fetching with an explicit cache policy
- Constant-liquidity quote math and the QuoteEngine
- swap / two_hop_swap instruction builders
- Address lookup table fetching
"""

from .constants import (
    WHIRLPOOL_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
    TOKEN_2022_PROGRAM_ID,
    ASSOCIATED_TOKEN_PROGRAM_ID,
    TICK_ARRAY_SIZE,
    MIN_SQRT_PRICE,
    MAX_SQRT_PRICE,
    WHIRLPOOL_ACCOUNT_SIZE,
)
from .pda import (
    derive_whirlpool_address,
    derive_tick_array_address,
    derive_oracle_address,
    get_associated_token_address,
    get_tick_array_start_index,
    get_tick_array_start_indexes,
)
from .pool_parser import parse_whirlpool, parse_whirlpool_account, decode_account_data
from .fetcher import WhirlpoolFetcher, AccountCache
from .math import compute_swap_step, SwapStep
from .quote import (
    QuoteEngine,
    compute_swap_quote,
    swap_quote_by_input_token,
    swap_quote_by_output_token,
)
from .instructions import (
    SwapInstructionBuilder,
    SwapInstructions,
    build_swap_instruction,
    build_two_hop_swap_instruction,
    build_create_ata_idempotent_instruction,
)
from .lookup_tables import LookupTableFetcher, RpcLookupTableFetcher

__all__ = [
    # Constants
    "WHIRLPOOL_PROGRAM_ID",
    "TOKEN_PROGRAM_ID",
    "TOKEN_2022_PROGRAM_ID",
    "ASSOCIATED_TOKEN_PROGRAM_ID",
    "TICK_ARRAY_SIZE",
    "MIN_SQRT_PRICE",
    "MAX_SQRT_PRICE",
    "WHIRLPOOL_ACCOUNT_SIZE",
    # PDAs
    "derive_whirlpool_address",
    "derive_tick_array_address",
    "derive_oracle_address",
    "get_associated_token_address",
    "get_tick_array_start_index",
    "get_tick_array_start_indexes",
    # Accounts
    "parse_whirlpool",
    "parse_whirlpool_account",
    "decode_account_data",
    "WhirlpoolFetcher",
    "AccountCache",
    # Quotes
    "compute_swap_step",
    "SwapStep",
    "QuoteEngine",
    "compute_swap_quote",
    "swap_quote_by_input_token",
    "swap_quote_by_output_token",
    # Instructions
    "SwapInstructionBuilder",
    "SwapInstructions",
    "build_swap_instruction",
    "build_two_hop_swap_instruction",
    "build_create_ata_idempotent_instruction",
    # Lookup tables
    "LookupTableFetcher",
    "RpcLookupTableFetcher",
]

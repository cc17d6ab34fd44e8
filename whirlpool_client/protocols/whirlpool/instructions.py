"""
Whirlpool Instruction Builders

Key features:
- swap for single-pool hops, two_hop_swap for two-pool paths
- Tick array resolution: missing arrays fall back to the previous existing one
- Idempotent ATA creation for every mint a route touches
"""

import logging
import struct
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from solders.instruction import Instruction, AccountMeta
from solders.pubkey import Pubkey

from ...infra import CancelToken
from ...types import Whirlpool, SwapQuote, TradeRoute, SubRoute
from ...errors import InvalidTradeError
from .constants import (
    TOKEN_PROGRAM_ID,
    ASSOCIATED_TOKEN_PROGRAM_ID,
    SYSTEM_PROGRAM_ID,
    SWAP_DISCRIMINATOR,
    TWO_HOP_SWAP_DISCRIMINATOR,
    MIN_SQRT_PRICE,
    MAX_SQRT_PRICE,
)
from .pda import get_associated_token_address, derive_oracle_address
from .fetcher import WhirlpoolFetcher

logger = logging.getLogger(__name__)


def _meta(address: str, is_signer: bool = False, is_writable: bool = False) -> AccountMeta:
    return AccountMeta(Pubkey.from_string(address), is_signer=is_signer, is_writable=is_writable)


def build_create_ata_idempotent_instruction(
    payer: str,
    owner: str,
    mint: str,
    token_program: Optional[str] = None,
) -> Instruction:
    """
    Build create_associated_token_account_idempotent instruction.

    This creates the ATA if it doesn't exist, or does nothing if it does.
    """
    token_program = token_program or TOKEN_PROGRAM_ID
    ata_address = get_associated_token_address(owner, mint, token_program)

    accounts = [
        _meta(payer, is_signer=True, is_writable=True),
        _meta(ata_address, is_writable=True),
        _meta(owner),
        _meta(mint),
        _meta(SYSTEM_PROGRAM_ID),
        _meta(token_program),
    ]

    # Instruction data: single byte 1 for idempotent create
    return Instruction(Pubkey.from_string(ASSOCIATED_TOKEN_PROGRAM_ID), bytes([1]), accounts)


def build_swap_instruction(
    pool: Whirlpool,
    owner: str,
    amount: int,
    other_amount_threshold: int,
    amount_specified_is_input: bool,
    a_to_b: bool,
    tick_arrays: Sequence[str],
    sqrt_price_limit: Optional[int] = None,
    token_program: str = TOKEN_PROGRAM_ID,
) -> Instruction:
    """
    Build Whirlpool `swap` instruction

    Data: discriminator | amount u64 | other_amount_threshold u64 |
    sqrt_price_limit u128 | amount_specified_is_input bool | a_to_b bool
    """
    if sqrt_price_limit is None:
        sqrt_price_limit = MIN_SQRT_PRICE if a_to_b else MAX_SQRT_PRICE

    data = (
        SWAP_DISCRIMINATOR
        + struct.pack("<QQ", amount, other_amount_threshold)
        + sqrt_price_limit.to_bytes(16, "little")
        + struct.pack("<??", amount_specified_is_input, a_to_b)
    )

    accounts = [
        _meta(token_program),
        _meta(owner, is_signer=True),
        _meta(pool.address, is_writable=True),
        _meta(get_associated_token_address(owner, pool.token_mint_a, token_program), is_writable=True),
        _meta(pool.token_vault_a, is_writable=True),
        _meta(get_associated_token_address(owner, pool.token_mint_b, token_program), is_writable=True),
        _meta(pool.token_vault_b, is_writable=True),
        _meta(tick_arrays[0], is_writable=True),
        _meta(tick_arrays[1], is_writable=True),
        _meta(tick_arrays[2], is_writable=True),
        _meta(derive_oracle_address(pool.address, pool.program_id), is_writable=True),
    ]

    return Instruction(Pubkey.from_string(pool.program_id), data, accounts)


def build_two_hop_swap_instruction(
    pool_one: Whirlpool,
    pool_two: Whirlpool,
    owner: str,
    amount: int,
    other_amount_threshold: int,
    amount_specified_is_input: bool,
    a_to_b_one: bool,
    a_to_b_two: bool,
    tick_arrays_one: Sequence[str],
    tick_arrays_two: Sequence[str],
    token_program: str = TOKEN_PROGRAM_ID,
) -> Instruction:
    """
    Build Whirlpool `two_hop_swap` instruction

    Data: discriminator | amount u64 | other_amount_threshold u64 |
    amount_specified_is_input bool | a_to_b_one bool | a_to_b_two bool |
    sqrt_price_limit_one u128 | sqrt_price_limit_two u128
    """
    sqrt_price_limit_one = MIN_SQRT_PRICE if a_to_b_one else MAX_SQRT_PRICE
    sqrt_price_limit_two = MIN_SQRT_PRICE if a_to_b_two else MAX_SQRT_PRICE

    data = (
        TWO_HOP_SWAP_DISCRIMINATOR
        + struct.pack("<QQ???", amount, other_amount_threshold, amount_specified_is_input, a_to_b_one, a_to_b_two)
        + sqrt_price_limit_one.to_bytes(16, "little")
        + sqrt_price_limit_two.to_bytes(16, "little")
    )

    def ata(mint: str) -> str:
        return get_associated_token_address(owner, mint, token_program)

    accounts = [
        _meta(token_program),
        _meta(owner, is_signer=True),
        _meta(pool_one.address, is_writable=True),
        _meta(pool_two.address, is_writable=True),
        _meta(ata(pool_one.token_mint_a), is_writable=True),
        _meta(pool_one.token_vault_a, is_writable=True),
        _meta(ata(pool_one.token_mint_b), is_writable=True),
        _meta(pool_one.token_vault_b, is_writable=True),
        _meta(ata(pool_two.token_mint_a), is_writable=True),
        _meta(pool_two.token_vault_a, is_writable=True),
        _meta(ata(pool_two.token_mint_b), is_writable=True),
        _meta(pool_two.token_vault_b, is_writable=True),
    ]
    accounts.extend(_meta(address, is_writable=True) for address in tick_arrays_one[:3])
    accounts.extend(_meta(address, is_writable=True) for address in tick_arrays_two[:3])
    accounts.append(_meta(derive_oracle_address(pool_one.address, pool_one.program_id), is_writable=True))
    accounts.append(_meta(derive_oracle_address(pool_two.address, pool_two.program_id), is_writable=True))

    return Instruction(Pubkey.from_string(pool_one.program_id), data, accounts)


def fill_missing_tick_arrays(tick_arrays: Sequence[str], exists: Dict[str, bool]) -> Tuple[str, ...]:
    """
    Replace arrays that do not exist on chain with the previous existing one

    The first array is kept as-is; the program rejects the swap if it is
    missing, which is the correct outcome.
    """
    resolved: List[str] = []
    for i, address in enumerate(tick_arrays):
        if i > 0 and not exists.get(address, False):
            resolved.append(resolved[-1])
        else:
            resolved.append(address)
    return tuple(resolved)


@dataclass
class SwapInstructions:
    """Instructions for one swap transaction, setup first"""
    setup: List[Instruction] = field(default_factory=list)
    swaps: List[Instruction] = field(default_factory=list)
    created_atas: List[str] = field(default_factory=list)

    @property
    def instructions(self) -> List[Instruction]:
        return self.setup + self.swaps


class SwapInstructionBuilder:
    """
    Builds swap instructions for quotes and routes on behalf of one wallet

    Usage:
        builder = SwapInstructionBuilder(fetcher, owner=wallet_pubkey)
        ixs = builder.build_quote_instructions(quote, pool, existing_atas)
    """

    def __init__(self, fetcher: WhirlpoolFetcher, owner: str):
        self._fetcher = fetcher
        self._owner = owner

    @property
    def owner(self) -> str:
        return self._owner

    def ata_address(self, mint: str) -> str:
        return get_associated_token_address(self._owner, mint)

    def existing_atas(
        self,
        mints: Iterable[str],
        use_cache: bool = False,
        cancel: Optional[CancelToken] = None,
    ) -> Set[str]:
        """Which of the owner's ATAs for these mints already exist"""
        addresses = [self.ata_address(mint) for mint in mints]
        exists = self._fetcher.accounts_exist(addresses, use_cache=use_cache, cancel=cancel)
        return {address for address, ok in exists.items() if ok}

    def _ata_setup(self, mints: Iterable[str], existing_atas: Set[str], result: SwapInstructions) -> None:
        for mint in dict.fromkeys(mints):
            address = self.ata_address(mint)
            if address in existing_atas or address in result.created_atas:
                continue
            result.setup.append(build_create_ata_idempotent_instruction(self._owner, self._owner, mint))
            result.created_atas.append(address)

    def _resolve_tick_arrays(
        self,
        groups: List[Sequence[str]],
        use_cache: bool,
        cancel: Optional[CancelToken],
    ) -> List[Tuple[str, ...]]:
        addresses = [address for group in groups for address in group]
        exists = self._fetcher.accounts_exist(addresses, use_cache=use_cache, cancel=cancel)
        return [fill_missing_tick_arrays(group, exists) for group in groups]

    def build_quote_instructions(
        self,
        quote: SwapQuote,
        pool: Whirlpool,
        existing_atas: Set[str],
        use_cache: bool = False,
        cancel: Optional[CancelToken] = None,
    ) -> SwapInstructions:
        """Instructions executing a single-pool quote"""
        result = SwapInstructions()
        self._ata_setup([quote.input_mint, quote.output_mint], existing_atas, result)

        (tick_arrays,) = self._resolve_tick_arrays([quote.tick_arrays], use_cache, cancel)
        result.swaps.append(build_swap_instruction(
            pool,
            self._owner,
            amount=quote.amount,
            other_amount_threshold=quote.other_amount_threshold,
            amount_specified_is_input=quote.amount_specified_is_input,
            a_to_b=quote.a_to_b,
            tick_arrays=tick_arrays,
            sqrt_price_limit=quote.sqrt_price_limit,
        ))
        return result

    def build_route_instructions(
        self,
        route: TradeRoute,
        pools: Dict[str, Whirlpool],
        existing_atas: Set[str],
        use_cache: bool = False,
        cancel: Optional[CancelToken] = None,
    ) -> SwapInstructions:
        """
        Instructions executing every sub-route of a route

        One `swap` per single-hop sub-route, one `two_hop_swap` per two-hop
        sub-route. Tick arrays of the whole route are checked in one call.
        """
        result = SwapInstructions()

        mints = [route.input_mint]
        for sub in route.sub_routes:
            mints.extend(edge.output_mint for edge in sub.path.edges)
        self._ata_setup(mints, existing_atas, result)

        groups = [quote.tick_arrays for sub in route.sub_routes for quote in sub.hop_quotes]
        resolved = iter(self._resolve_tick_arrays(groups, use_cache, cancel))

        for sub in route.sub_routes:
            hops = len(sub.path.edges)
            if hops != len(sub.hop_quotes):
                raise InvalidTradeError(f"Sub-route {sub.path} has {len(sub.hop_quotes)} quotes for {hops} hops")
            if hops == 1:
                result.swaps.append(self._single_hop(sub, pools, next(resolved)))
            elif hops == 2:
                result.swaps.append(self._two_hop(sub, pools, next(resolved), next(resolved)))
            else:
                raise InvalidTradeError(f"Paths of {hops} hops are not supported", field="max_hops")

        return result

    def _single_hop(self, sub: SubRoute, pools: Dict[str, Whirlpool], tick_arrays: Tuple[str, ...]) -> Instruction:
        quote = sub.hop_quotes[0]
        return build_swap_instruction(
            pools[quote.pool_address],
            self._owner,
            amount=quote.amount,
            other_amount_threshold=quote.other_amount_threshold,
            amount_specified_is_input=quote.amount_specified_is_input,
            a_to_b=quote.a_to_b,
            tick_arrays=tick_arrays,
            sqrt_price_limit=quote.sqrt_price_limit,
        )

    def _two_hop(
        self,
        sub: SubRoute,
        pools: Dict[str, Whirlpool],
        tick_arrays_one: Tuple[str, ...],
        tick_arrays_two: Tuple[str, ...],
    ) -> Instruction:
        quote_one, quote_two = sub.hop_quotes
        slippage = quote_one.slippage
        if quote_one.amount_specified_is_input:
            amount = sub.amount_in
            other_amount_threshold = slippage.adjust_down(sub.amount_out)
        else:
            amount = sub.amount_out
            other_amount_threshold = slippage.adjust_up(sub.amount_in)

        return build_two_hop_swap_instruction(
            pools[quote_one.pool_address],
            pools[quote_two.pool_address],
            self._owner,
            amount=amount,
            other_amount_threshold=other_amount_threshold,
            amount_specified_is_input=quote_one.amount_specified_is_input,
            a_to_b_one=quote_one.a_to_b,
            a_to_b_two=quote_two.a_to_b,
            tick_arrays_one=tick_arrays_one,
            tick_arrays_two=tick_arrays_two,
        )

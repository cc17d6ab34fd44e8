"""
Whirlpool Quote Engine

Turns a pool snapshot plus a trade amount into a SwapQuote with a
slippage-bounded threshold.
"""

import logging
from typing import Optional

from ...infra import CancelToken
from ...types import Whirlpool, SwapQuote, Percentage
from ...errors import QuoteUnavailableError, PoolNotFoundError, InvalidTradeError, RpcError
from .constants import MIN_SQRT_PRICE, MAX_SQRT_PRICE
from .math import compute_swap_step
from .pda import get_tick_array_start_indexes, derive_tick_array_address
from .fetcher import WhirlpoolFetcher

logger = logging.getLogger(__name__)


def tick_array_addresses_for_swap(pool: Whirlpool, a_to_b: bool):
    """The three tick array PDAs a swap in this direction traverses"""
    starts = get_tick_array_start_indexes(pool.tick_current_index, pool.tick_spacing, a_to_b)
    return tuple(derive_tick_array_address(pool.address, start, pool.program_id) for start in starts)


def compute_swap_quote(
    pool: Whirlpool,
    input_mint: str,
    amount: int,
    slippage: Percentage,
    amount_specified_is_input: bool = True,
) -> SwapQuote:
    """
    Quote a swap against a pool snapshot

    Args:
        pool: Pool state
        input_mint: Mint the caller pays
        amount: Input amount (exact input) or output amount (exact output)
        slippage: Tolerance applied to the non-specified side
        amount_specified_is_input: Exact input or exact output

    Returns:
        SwapQuote. For exact input, other_amount_threshold is the minimum
        output; for exact output, it is the maximum input.

    Raises:
        InvalidTradeError: Non-positive amount or mint not in the pool
        QuoteUnavailableError: Range cannot satisfy the amount
    """
    if amount <= 0:
        raise InvalidTradeError(f"Amount must be positive, got {amount}", field="amount")

    output_mint = pool.other_mint(input_mint)
    if output_mint is None:
        raise InvalidTradeError(
            f"Mint {input_mint} is not traded by pool {pool.address}", field="input_mint"
        )

    a_to_b = input_mint == pool.token_mint_a

    try:
        step = compute_swap_step(
            pool.sqrt_price,
            pool.liquidity,
            pool.fee_rate,
            amount,
            amount_specified_is_input,
            a_to_b,
        )
    except QuoteUnavailableError as e:
        raise QuoteUnavailableError(
            f"{e.message} (pool {pool.address})", pool_address=pool.address, code=e.code
        ) from e

    if amount_specified_is_input:
        other_amount_threshold = slippage.adjust_down(step.amount_out)
    else:
        other_amount_threshold = slippage.adjust_up(step.amount_in)

    return SwapQuote(
        pool_address=pool.address,
        input_mint=input_mint,
        output_mint=output_mint,
        a_to_b=a_to_b,
        amount_specified_is_input=amount_specified_is_input,
        amount=amount,
        other_amount_threshold=other_amount_threshold,
        estimated_amount_in=step.amount_in,
        estimated_amount_out=step.amount_out,
        estimated_fee_amount=step.fee_amount,
        estimated_end_sqrt_price=step.next_sqrt_price,
        sqrt_price_limit=MIN_SQRT_PRICE if a_to_b else MAX_SQRT_PRICE,
        slippage=slippage,
        tick_arrays=tick_array_addresses_for_swap(pool, a_to_b),
    )


def swap_quote_by_input_token(
    pool: Whirlpool,
    input_mint: str,
    amount: int,
    slippage: Percentage,
) -> SwapQuote:
    """Quote spending exactly `amount` of input_mint"""
    return compute_swap_quote(pool, input_mint, amount, slippage, amount_specified_is_input=True)


def swap_quote_by_output_token(
    pool: Whirlpool,
    output_mint: str,
    amount: int,
    slippage: Percentage,
) -> SwapQuote:
    """Quote receiving exactly `amount` of output_mint"""
    input_mint = pool.other_mint(output_mint)
    if input_mint is None:
        raise InvalidTradeError(
            f"Mint {output_mint} is not traded by pool {pool.address}", field="output_mint"
        )
    return compute_swap_quote(pool, input_mint, amount, slippage, amount_specified_is_input=False)


class QuoteEngine:
    """
    Quotes against live pool state

    Usage:
        engine = QuoteEngine(fetcher)
        quote = engine.quote(pool_address, DEV_USDC.mint, 1_000_000, Percentage.from_fraction(10, 1000))
    """

    def __init__(self, fetcher: WhirlpoolFetcher):
        self._fetcher = fetcher

    def quote(
        self,
        pool_address: str,
        input_mint: str,
        amount: int,
        slippage: Percentage,
        amount_specified_is_input: bool = True,
        use_cache: bool = False,
        cancel: Optional[CancelToken] = None,
    ) -> SwapQuote:
        """
        Fetch the pool (respecting use_cache) and quote against it

        Raises:
            QuoteUnavailableError: State fetch failed or range cannot satisfy the amount
            InvalidTradeError: Bad amount or mint
        """
        try:
            pool = self._fetcher.get_pool(pool_address, use_cache=use_cache, cancel=cancel)
        except (PoolNotFoundError, RpcError) as e:
            raise QuoteUnavailableError.fetch_failed(pool_address, e) from e

        quote = compute_swap_quote(pool, input_mint, amount, slippage, amount_specified_is_input)
        logger.debug(f"Quoted {pool_address}: {quote}")
        return quote

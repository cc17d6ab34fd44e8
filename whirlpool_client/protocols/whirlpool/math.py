"""
Whirlpool Swap Math

Single constant-liquidity swap step on Q64.64 sqrt prices.

The step uses the pool's current in-range liquidity only; it does not walk
initialized ticks. Rounding always favours the pool: input amounts round up,
output amounts round down.
"""

from dataclasses import dataclass

from .constants import (
    Q64,
    U64_MAX,
    MIN_SQRT_PRICE,
    MAX_SQRT_PRICE,
    FEE_RATE_DENOMINATOR,
)
from ...errors import QuoteUnavailableError


@dataclass(frozen=True)
class SwapStep:
    """
    Result of one swap step

    amount_in includes the fee.
    """
    amount_in: int
    amount_out: int
    fee_amount: int
    next_sqrt_price: int


def div_ceil(numerator: int, denominator: int) -> int:
    return -(-numerator // denominator)


def fee_on_input(amount: int, fee_rate: int) -> int:
    """Fee charged on an exact input amount (rounded up)"""
    return div_ceil(amount * fee_rate, FEE_RATE_DENOMINATOR)


def gross_up_for_fee(amount_net: int, fee_rate: int) -> int:
    """Input needed so that amount_net remains after the fee (rounded up)"""
    return div_ceil(amount_net * FEE_RATE_DENOMINATOR, FEE_RATE_DENOMINATOR - fee_rate)


def get_amount_delta_a(sqrt_price_0: int, sqrt_price_1: int, liquidity: int, round_up: bool) -> int:
    """Token A amount between two sqrt prices: L * (hi - lo) * Q64 / (hi * lo)"""
    lower, upper = sorted((sqrt_price_0, sqrt_price_1))
    numerator = liquidity * (upper - lower) * Q64
    denominator = upper * lower
    return div_ceil(numerator, denominator) if round_up else numerator // denominator


def get_amount_delta_b(sqrt_price_0: int, sqrt_price_1: int, liquidity: int, round_up: bool) -> int:
    """Token B amount between two sqrt prices: L * (hi - lo) / Q64"""
    lower, upper = sorted((sqrt_price_0, sqrt_price_1))
    numerator = liquidity * (upper - lower)
    return div_ceil(numerator, Q64) if round_up else numerator // Q64


def next_sqrt_price_from_input(sqrt_price: int, liquidity: int, amount: int, a_to_b: bool) -> int:
    """Sqrt price after adding `amount` of the input token"""
    if a_to_b:
        # Adding A lowers the price; round up so the pool never gives away extra B
        numerator = liquidity * sqrt_price * Q64
        denominator = liquidity * Q64 + amount * sqrt_price
        return div_ceil(numerator, denominator)
    return sqrt_price + (amount * Q64) // liquidity


def next_sqrt_price_from_output(sqrt_price: int, liquidity: int, amount: int, a_to_b: bool) -> int:
    """Sqrt price after removing `amount` of the output token"""
    if a_to_b:
        # Removing B lowers the price
        return sqrt_price - div_ceil(amount * Q64, liquidity)
    # Removing A raises the price
    denominator = liquidity * Q64 - amount * sqrt_price
    if denominator <= 0:
        raise QuoteUnavailableError.insufficient_liquidity(
            None, f"output {amount} exceeds token A held by the current range"
        )
    return div_ceil(liquidity * Q64 * sqrt_price, denominator)


def _check_sqrt_price(next_sqrt_price: int, a_to_b: bool) -> None:
    if a_to_b and next_sqrt_price < MIN_SQRT_PRICE:
        raise QuoteUnavailableError.insufficient_liquidity(
            None, "swap moves the price below the minimum sqrt price"
        )
    if not a_to_b and next_sqrt_price > MAX_SQRT_PRICE:
        raise QuoteUnavailableError.insufficient_liquidity(
            None, "swap moves the price above the maximum sqrt price"
        )


def compute_swap_step(
    sqrt_price: int,
    liquidity: int,
    fee_rate: int,
    amount: int,
    amount_specified_is_input: bool,
    a_to_b: bool,
) -> SwapStep:
    """
    Swap `amount` against a constant liquidity range

    Args:
        sqrt_price: Current sqrt price (Q64.64)
        liquidity: In-range liquidity
        fee_rate: Fee in hundredths of a basis point
        amount: Specified amount (input when amount_specified_is_input, else output)
        amount_specified_is_input: Exact input or exact output
        a_to_b: Swap direction

    Raises:
        QuoteUnavailableError: Zero liquidity, price bound crossed or u64 overflow
    """
    if liquidity <= 0:
        raise QuoteUnavailableError.insufficient_liquidity(None, "pool has no in-range liquidity")
    if amount <= 0:
        return SwapStep(0, 0, 0, sqrt_price)

    if amount_specified_is_input:
        fee_amount = fee_on_input(amount, fee_rate)
        amount_net = amount - fee_amount
        next_sqrt_price = next_sqrt_price_from_input(sqrt_price, liquidity, amount_net, a_to_b)
        _check_sqrt_price(next_sqrt_price, a_to_b)
        if a_to_b:
            amount_out = get_amount_delta_b(sqrt_price, next_sqrt_price, liquidity, round_up=False)
        else:
            amount_out = get_amount_delta_a(sqrt_price, next_sqrt_price, liquidity, round_up=False)
        amount_in = amount
    else:
        next_sqrt_price = next_sqrt_price_from_output(sqrt_price, liquidity, amount, a_to_b)
        if next_sqrt_price <= 0:
            raise QuoteUnavailableError.insufficient_liquidity(
                None, f"output {amount} exceeds token B held by the current range"
            )
        _check_sqrt_price(next_sqrt_price, a_to_b)
        if a_to_b:
            amount_net = get_amount_delta_a(sqrt_price, next_sqrt_price, liquidity, round_up=True)
        else:
            amount_net = get_amount_delta_b(sqrt_price, next_sqrt_price, liquidity, round_up=True)
        amount_in = gross_up_for_fee(amount_net, fee_rate)
        fee_amount = amount_in - amount_net
        amount_out = amount

    if amount_in > U64_MAX or amount_out > U64_MAX:
        raise QuoteUnavailableError.insufficient_liquidity(None, "swap amount overflows u64")

    return SwapStep(
        amount_in=amount_in,
        amount_out=amount_out,
        fee_amount=fee_amount,
        next_sqrt_price=next_sqrt_price,
    )

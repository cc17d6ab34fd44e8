"""
Test Whirlpool swap math and quotes

Pools use a single constant-liquidity range; amounts stay well inside it.
"""

import sys
from pathlib import Path

import pytest

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

Q64 = 1 << 64


def _one_percent():
    from whirlpool_client.types import Percentage
    return Percentage.from_fraction(10, 1000)


# ========== Swap step ==========

def test_swap_step_exact_input_fee():
    """Fee is taken from the input and rounded up"""
    from whirlpool_client.protocols.whirlpool import compute_swap_step

    print("Testing exact-input fee...")

    step = compute_swap_step(Q64, 10 ** 12, 3000, 1_000_000, amount_specified_is_input=True, a_to_b=True)
    assert step.amount_in == 1_000_000
    assert step.fee_amount == 3000
    assert 0 < step.amount_out < 1_000_000
    # a_to_b lowers the price
    assert step.next_sqrt_price < Q64

    step_b = compute_swap_step(Q64, 10 ** 12, 3000, 1_000_000, amount_specified_is_input=True, a_to_b=False)
    assert step_b.next_sqrt_price > Q64
    assert 0 < step_b.amount_out < 1_000_000

    # 1 unit at 0.3% still pays a fee of 1
    tiny = compute_swap_step(Q64, 10 ** 12, 3000, 1, amount_specified_is_input=True, a_to_b=True)
    assert tiny.fee_amount == 1
    assert tiny.amount_out == 0

    print("  exact-input fee: PASSED")


def test_swap_step_exact_output():
    """Exact output returns the requested amount and grosses up the input"""
    from whirlpool_client.protocols.whirlpool import compute_swap_step

    print("Testing exact-output step...")

    for a_to_b in (True, False):
        step = compute_swap_step(Q64, 10 ** 12, 3000, 1_000_000, amount_specified_is_input=False, a_to_b=a_to_b)
        assert step.amount_out == 1_000_000
        # Price near 1.0 plus the fee: input exceeds output
        assert step.amount_in > 1_000_000
        assert step.fee_amount > 0
        assert step.amount_in - step.fee_amount >= 1_000_000

    print("  exact-output step: PASSED")


def test_swap_step_monotonic():
    """More input never yields less output"""
    from whirlpool_client.protocols.whirlpool import compute_swap_step

    print("Testing output monotonicity...")

    outputs = [
        compute_swap_step(Q64, 10 ** 12, 3000, amount, True, True).amount_out
        for amount in (10_000, 100_000, 1_000_000, 10_000_000)
    ]
    assert outputs == sorted(outputs)
    assert len(set(outputs)) == len(outputs)

    print("  output monotonicity: PASSED")


def test_swap_step_errors():
    """Zero liquidity and exhausted ranges cannot be quoted"""
    from whirlpool_client.protocols.whirlpool import compute_swap_step
    from whirlpool_client.errors import QuoteUnavailableError, ErrorCode

    print("Testing swap step errors...")

    with pytest.raises(QuoteUnavailableError) as exc_info:
        compute_swap_step(Q64, 0, 3000, 1_000_000, True, True)
    assert exc_info.value.code == ErrorCode.LIQUIDITY_INSUFFICIENT

    # Range holds about 10^6 of token B at price 1.0; asking for far more B fails
    with pytest.raises(QuoteUnavailableError):
        compute_swap_step(Q64, 10 ** 6, 3000, 10 ** 9, amount_specified_is_input=False, a_to_b=True)

    # Same for token A in the other direction
    with pytest.raises(QuoteUnavailableError):
        compute_swap_step(Q64, 10 ** 6, 3000, 10 ** 9, amount_specified_is_input=False, a_to_b=False)

    zero = compute_swap_step(Q64, 10 ** 12, 3000, 0, True, True)
    assert zero.amount_in == 0 and zero.amount_out == 0
    assert zero.next_sqrt_price == Q64

    print("  swap step errors: PASSED")


# ========== Quotes ==========

def test_quote_one_unit_six_decimals(pool_factory):
    """1 devUSDC into devSAMO/devUSDC at 1% slippage: threshold within the estimate"""
    from whirlpool_client.protocols.whirlpool import swap_quote_by_input_token
    from whirlpool_client.types.devnet_tokens import DEV_SAMO, DEV_USDC

    print("Testing 1 devUSDC quote...")

    # 1 devSAMO ~ 0.01 devUSDC: raw price B/A = 1e-5, sqrt ~ 1/316
    pool = pool_factory(DEV_SAMO.mint, DEV_USDC.mint, liquidity=10 ** 12, sqrt_price=Q64 // 316)

    amount = DEV_USDC.raw_amount("1")
    quote = swap_quote_by_input_token(pool, DEV_USDC.mint, amount, _one_percent())

    assert quote.input_mint == DEV_USDC.mint
    assert quote.output_mint == DEV_SAMO.mint
    assert quote.a_to_b is False
    assert quote.amount_specified_is_input
    assert quote.estimated_amount_in == amount
    assert quote.estimated_amount_out > 0
    assert 0 <= quote.other_amount_threshold <= quote.estimated_amount_out
    assert quote.other_amount_threshold == quote.estimated_amount_out * 990 // 1000
    # Roughly 100 devSAMO
    assert 90 < DEV_SAMO.ui_amount(quote.estimated_amount_out) < 101
    assert len(quote.tick_arrays) == 3

    print(f"  estimatedAmountOut: {DEV_SAMO.ui_amount(quote.estimated_amount_out)} devSAMO")
    print("  1 devUSDC quote: PASSED")


def test_quote_threshold_bounds(pool_factory, mints):
    """Exact input: threshold <= output; exact output: threshold >= input"""
    from whirlpool_client.protocols.whirlpool import compute_swap_quote, swap_quote_by_output_token

    x, y, _ = mints

    print("Testing quote thresholds...")

    pool = pool_factory(x, y)
    slippage = _one_percent()

    for amount in (1, 999, 1_000_000, 50_000_000):
        for input_mint in (x, y):
            quote = compute_swap_quote(pool, input_mint, amount, slippage)
            assert 0 <= quote.other_amount_threshold <= quote.estimated_amount_out

    out_quote = swap_quote_by_output_token(pool, y, 1_000_000, slippage)
    assert out_quote.input_mint == x
    assert out_quote.a_to_b is True
    assert out_quote.estimated_amount_out == 1_000_000
    assert out_quote.other_amount_threshold >= out_quote.estimated_amount_in

    print("  quote thresholds: PASSED")


def test_quote_sqrt_price_limit(pool_factory, mints):
    """The limit is the price bound in the swap direction"""
    from whirlpool_client.protocols.whirlpool import compute_swap_quote, MIN_SQRT_PRICE, MAX_SQRT_PRICE

    x, y, _ = mints

    print("Testing sqrt price limit...")

    pool = pool_factory(x, y)
    assert compute_swap_quote(pool, x, 1000, _one_percent()).sqrt_price_limit == MIN_SQRT_PRICE
    assert compute_swap_quote(pool, y, 1000, _one_percent()).sqrt_price_limit == MAX_SQRT_PRICE

    print("  sqrt price limit: PASSED")


def test_quote_invalid_inputs(pool_factory, mints):
    """Non-positive amounts and foreign mints are rejected"""
    from whirlpool_client.protocols.whirlpool import compute_swap_quote, swap_quote_by_output_token
    from whirlpool_client.errors import InvalidTradeError, QuoteUnavailableError

    x, y, z = mints

    print("Testing invalid quote inputs...")

    pool = pool_factory(x, y)

    with pytest.raises(InvalidTradeError):
        compute_swap_quote(pool, x, 0, _one_percent())
    with pytest.raises(InvalidTradeError):
        compute_swap_quote(pool, z, 1000, _one_percent())
    with pytest.raises(InvalidTradeError):
        swap_quote_by_output_token(pool, z, 1000, _one_percent())

    empty = pool_factory(x, y, liquidity=0)
    with pytest.raises(QuoteUnavailableError) as exc_info:
        compute_swap_quote(empty, x, 1000, _one_percent())
    assert exc_info.value.pool_address == empty.address

    print("  invalid quote inputs: PASSED")


def test_quote_engine_fetch_failure(pool_factory, mints):
    """A pool that cannot be fetched surfaces as QuoteUnavailableError"""
    from unittest.mock import Mock
    from whirlpool_client.protocols.whirlpool import QuoteEngine
    from whirlpool_client.errors import PoolNotFoundError, QuoteUnavailableError

    x, y, _ = mints

    print("Testing QuoteEngine...")

    pool = pool_factory(x, y)
    fetcher = Mock()
    fetcher.get_pool.return_value = pool

    engine = QuoteEngine(fetcher)
    quote = engine.quote(pool.address, x, 1000, _one_percent(), use_cache=True)
    assert quote.pool_address == pool.address
    fetcher.get_pool.assert_called_once_with(pool.address, use_cache=True, cancel=None)

    fetcher.get_pool.side_effect = PoolNotFoundError.not_found(pool.address)
    with pytest.raises(QuoteUnavailableError) as exc_info:
        engine.quote(pool.address, x, 1000, _one_percent())
    assert isinstance(exc_info.value.original_error, PoolNotFoundError)

    print("  QuoteEngine: PASSED")

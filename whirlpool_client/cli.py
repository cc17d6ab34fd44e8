"""
Command line entry points for the devnet swap flows

Environment variables must be defined before running:
    SOLANA_RPC_URL=https://api.devnet.solana.com    (or ANCHOR_PROVIDER_URL)
    SOLANA_KEYPAIR_PATH=wallet.json                  (or ANCHOR_WALLET)

Commands:
    whirlpool-execute-swap               Swap 1 devUSDC for devSAMO in one pool
    whirlpool-execute-swap-with-router   Route 100 devSAMO to devTMAC across the devnet config
"""

import sys
from decimal import Decimal
from typing import List

from .client import WhirlpoolClient
from .config import config, setup_logging
from .errors import SwapClientError
from .types import (
    Percentage,
    PoolIdentity,
    Trade,
    RoutingOptions,
    RouteSelectOptions,
    AtaAccounts,
    SwapQuote,
    TradeRoute,
)
from .types.devnet_tokens import (
    DEV_USDC,
    DEV_SAMO,
    DEV_TMAC,
    DEVNET_WHIRLPOOLS_CONFIG,
    get_token_by_mint,
)

# 10/1000 = 1%
DEFAULT_SLIPPAGE = Percentage.from_fraction(10, 1000)
TICK_SPACING = 64


def _print_client(client: WhirlpoolClient) -> None:
    print("endpoint:", client.rpc.endpoint)
    print("wallet pubkey:", client.pubkey)


def _print_quote(quote: SwapQuote) -> None:
    token_in = get_token_by_mint(quote.input_mint)
    token_out = get_token_by_mint(quote.output_mint)
    print("estimatedAmountIn:", token_in.ui_amount(quote.estimated_amount_in), token_in.symbol)
    print("estimatedAmountOut:", token_out.ui_amount(quote.estimated_amount_out), token_out.symbol)
    print("otherAmountThreshold:", token_out.ui_amount(quote.other_amount_threshold), token_out.symbol)


def _print_route(route: TradeRoute, lookup_tables: List[str]) -> None:
    token_in = get_token_by_mint(route.input_mint)
    token_out = get_token_by_mint(route.output_mint)
    print("estimatedAmountIn:", token_in.ui_amount(route.total_amount_in))
    print("estimatedAmountOut:", token_out.ui_amount(route.total_amount_out))
    for i, sub in enumerate(route.sub_routes):
        print(f"subRoute[{i}] {sub.split_percent}%:", " - ".join(sub.path.pool_addresses))
    print("alts:", ", ".join(lookup_tables))


def execute_swap_main() -> int:
    """Swap 1 devUSDC for devSAMO through the devSAMO/devUSDC pool (tick spacing 64)"""
    setup_logging()

    try:
        with WhirlpoolClient() as client:
            _print_client(client)

            # Whirlpools are keyed by (program, config, mint A, mint B, tick spacing)
            identity = PoolIdentity(
                program_id=client.program_id,
                config_id=DEVNET_WHIRLPOOLS_CONFIG,
                mint_a=DEV_SAMO.mint,
                mint_b=DEV_USDC.mint,
                tick_spacing=TICK_SPACING,
            )
            print("whirlpool_key:", identity.address)

            amount_in = DEV_USDC.raw_amount(Decimal("1"))
            result = client.swap.execute_single_swap(
                identity, DEV_USDC, DEV_SAMO, amount_in, DEFAULT_SLIPPAGE, on_quote=_print_quote
            )
            print("signature:", result.signature)
            return 0

    except SwapClientError as e:
        print(f"Swap failed: {e}", file=sys.stderr)
        return 1


def execute_swap_with_router_main() -> int:
    """Trade 100 devSAMO for devTMAC across every liquid pool of the devnet config"""
    setup_logging()

    try:
        with WhirlpoolClient() as client:
            _print_client(client)

            config_id = config.whirlpool.config_id or DEVNET_WHIRLPOOLS_CONFIG
            pools = client.fetcher.get_all_pools_for_config(config_id)
            print("detected whirlpools:", len(pools))

            # Pools without in-range liquidity cannot carry any part of the trade
            liquid = [pool for pool in pools if pool.has_liquidity]
            print("liquid whirlpools:", len(liquid))

            trade = Trade(
                token_in=DEV_SAMO.mint,
                token_out=DEV_TMAC.mint,
                trade_amount=DEV_SAMO.raw_amount(Decimal("100")),
                amount_specified_is_input=True,
            )
            selection_options = RouteSelectOptions(
                max_supported_transaction_version=0,
                available_ata_accounts=AtaAccounts.unspecified(),
            )

            result = client.swap.execute_routed_swap(
                liquid,
                trade,
                routing_options=RoutingOptions(),
                selection_options=selection_options,
                slippage=DEFAULT_SLIPPAGE,
                on_route=_print_route,
            )
            if not result:
                print(result)
                return 0

            print("signature:", result.signature)
            return 0

    except SwapClientError as e:
        print(f"Routed swap failed: {e}", file=sys.stderr)
        return 1

"""
Swap Module

Quote-and-execute flows against Orca Whirlpools:
- Single-pool swap addressed by a PoolIdentity
- Routed swap split across up to max_splits paths of up to two pools
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Iterable, List, Optional, Union

if TYPE_CHECKING:
    from ..client import WhirlpoolClient

from ..infra import CancelToken, CorrelationContext, check_cancelled, log_with_correlation
from ..types import (
    LEGACY,
    Token,
    Percentage,
    PoolIdentity,
    Whirlpool,
    Trade,
    SwapQuote,
    TradeRoute,
    SwapResult,
    NoRouteFound,
    RoutingOptions,
    RouteSelectOptions,
)
from ..errors import PoolNotFoundError, InvalidTradeError, QuoteUnavailableError, RpcError
from ..config import config
from ..protocols.whirlpool import (
    SwapInstructionBuilder,
    swap_quote_by_input_token,
    swap_quote_by_output_token,
)
from ..routing import validate_trade

logger = logging.getLogger(__name__)


def _mint(token: Union[Token, str]) -> str:
    return token.mint if isinstance(token, Token) else token


class SwapModule:
    """
    Whirlpool swap module

    Usage:
        # Single pool
        result = client.swap.execute_single_swap(
            PoolIdentity(program_id, config_id, DEV_SAMO.mint, DEV_USDC.mint, 64),
            DEV_USDC, DEV_SAMO, 1_000_000, Percentage.from_fraction(10, 1000),
        )

        # Routed
        result = client.swap.execute_routed_swap_for_config(config_id, trade)
        if not result:
            print(result)   # No route found
    """

    def __init__(self, client: "WhirlpoolClient"):
        self._client = client

    def _default_slippage(self, slippage: Optional[Percentage]) -> Percentage:
        if slippage is not None:
            return slippage
        return Percentage.from_bps(config.trading.default_slippage_bps)

    # ========== Single pool ==========

    def resolve_pool(
        self,
        pool_identity: PoolIdentity,
        cancel: Optional[CancelToken] = None,
    ) -> Whirlpool:
        """
        Fetch the pool a PoolIdentity addresses, bypassing the cache

        Raises:
            PoolNotFoundError: Missing account, foreign layout, mismatched mints or no liquidity
            QuoteUnavailableError: The state fetch failed
        """
        address = pool_identity.address
        try:
            pool = self._client.fetcher.get_pool(address, use_cache=False, cancel=cancel)
        except RpcError as e:
            raise QuoteUnavailableError.fetch_failed(address, e) from e

        if (pool.token_mint_a, pool.token_mint_b) != (pool_identity.mint_a, pool_identity.mint_b):
            raise PoolNotFoundError.invalid_state(address, "pool mints do not match the identity")
        if pool.tick_spacing != pool_identity.tick_spacing:
            raise PoolNotFoundError.invalid_state(
                address, f"tick spacing {pool.tick_spacing} != {pool_identity.tick_spacing}"
            )
        if not pool.has_liquidity:
            raise PoolNotFoundError.no_liquidity(address)
        return pool

    def quote_single_swap(
        self,
        pool: Whirlpool,
        input_token: Union[Token, str],
        output_token: Union[Token, str],
        amount: int,
        slippage: Percentage,
        amount_specified_is_input: bool = True,
    ) -> SwapQuote:
        input_mint, output_mint = _mint(input_token), _mint(output_token)
        if pool.other_mint(input_mint) != output_mint:
            raise InvalidTradeError(
                f"Pool {pool.address} does not trade {input_mint} for {output_mint}", field="output_token"
            )
        if amount_specified_is_input:
            return swap_quote_by_input_token(pool, input_mint, amount, slippage)
        return swap_quote_by_output_token(pool, output_mint, amount, slippage)

    def execute_single_swap(
        self,
        pool_identity: PoolIdentity,
        input_token: Union[Token, str],
        output_token: Union[Token, str],
        amount: int,
        slippage: Optional[Percentage] = None,
        amount_specified_is_input: bool = True,
        cancel: Optional[CancelToken] = None,
        on_quote: Optional[Callable[[SwapQuote], None]] = None,
    ) -> SwapResult:
        """
        Swap through the pool addressed by pool_identity

        Args:
            pool_identity: Five-part pool key
            input_token: Token (or mint) paid
            output_token: Token (or mint) received
            amount: Raw amount; input when amount_specified_is_input, else output
            slippage: Tolerance (default from TradingConfig)
            amount_specified_is_input: Exact input or exact output
            cancel: Optional cancel token
            on_quote: Called with the quote before the transaction is sent

        Returns:
            SwapResult with the confirmed transaction and the executed quote

        Raises:
            PoolNotFoundError, QuoteUnavailableError, InvalidTradeError,
            TransactionSubmissionError, TransactionError, ConfirmationTimeoutError,
            OperationCancelled
        """
        slippage = self._default_slippage(slippage)
        op = "execute_single_swap"

        with CorrelationContext("swap"):
            check_cancelled(cancel, "pool fetch")
            pool = self.resolve_pool(pool_identity, cancel=cancel)
            log_with_correlation(logging.INFO, f"Resolved whirlpool {pool.address}", op, log=logger)

            quote = self.quote_single_swap(
                pool, input_token, output_token, amount, slippage, amount_specified_is_input
            )
            log_with_correlation(
                logging.INFO,
                f"Quote: estimatedAmountIn={quote.estimated_amount_in} "
                f"estimatedAmountOut={quote.estimated_amount_out} "
                f"otherAmountThreshold={quote.other_amount_threshold}",
                op,
                log=logger,
            )
            if on_quote is not None:
                on_quote(quote)

            check_cancelled(cancel, "instruction build")
            builder = SwapInstructionBuilder(self._client.fetcher, self._client.pubkey)
            existing = builder.existing_atas([quote.input_mint, quote.output_mint], cancel=cancel)
            built = builder.build_quote_instructions(quote, pool, existing, cancel=cancel)
            if built.created_atas:
                logger.info(f"Creating {len(built.created_atas)} associated token accounts")

            tx = self._client.tx_builder.build_and_send(built.instructions, version=LEGACY, cancel=cancel)
            log_with_correlation(logging.INFO, f"Swap confirmed: {tx.signature}", op, log=logger)
            return SwapResult(tx=tx, quote=quote)

    # ========== Routed ==========

    def liquid_pools_for_config(
        self,
        config_id: Optional[str] = None,
        cancel: Optional[CancelToken] = None,
    ) -> List[Whirlpool]:
        """All pools of a WhirlpoolsConfig with liquidity > 0"""
        config_id = config_id or config.whirlpool.config_id
        try:
            pools = self._client.fetcher.get_all_pools_for_config(config_id, use_cache=False, cancel=cancel)
        except RpcError as e:
            raise QuoteUnavailableError.fetch_failed(config_id, e) from e
        liquid = [pool for pool in pools if pool.has_liquidity]
        logger.info(f"Detected {len(pools)} whirlpools, {len(liquid)} liquid")
        return liquid

    def _resolve_candidates(
        self,
        candidate_pools: Iterable[Union[Whirlpool, str]],
        cancel: Optional[CancelToken],
    ) -> List[Whirlpool]:
        pools: List[Whirlpool] = []
        addresses: List[str] = []
        for candidate in candidate_pools:
            if isinstance(candidate, Whirlpool):
                pools.append(candidate)
            else:
                addresses.append(candidate)
        if addresses:
            try:
                fetched = self._client.fetcher.get_pools(addresses, use_cache=False, cancel=cancel)
            except RpcError as e:
                raise QuoteUnavailableError.fetch_failed(", ".join(addresses), e) from e
            pools.extend(fetched.values())
        return pools

    def execute_routed_swap(
        self,
        candidate_pools: Iterable[Union[Whirlpool, str]],
        trade: Trade,
        routing_options: Optional[RoutingOptions] = None,
        selection_options: Optional[RouteSelectOptions] = None,
        slippage: Optional[Percentage] = None,
        cancel: Optional[CancelToken] = None,
        on_route: Optional[Callable[[TradeRoute, List[str]], None]] = None,
    ) -> Union[SwapResult, NoRouteFound]:
        """
        Route a trade across candidate pools and execute the best route

        Args:
            candidate_pools: Whirlpools (or pool addresses) the router may use
            trade: Trade intent
            routing_options: Search parameters (defaults from RouterConfig)
            selection_options: Transaction version and known ATAs
            slippage: Tolerance (default from TradingConfig)
            cancel: Optional cancel token
            on_route: Called with the selected route and its lookup table
                addresses before the transaction is sent

        Returns:
            SwapResult, or NoRouteFound when no route exists

        Raises:
            InvalidTradeError: Bad trade or options
            QuoteUnavailableError: Candidate pool addresses could not be fetched
            TransactionSubmissionError, TransactionError, ConfirmationTimeoutError,
            OperationCancelled
        """
        routing_options = routing_options or RoutingOptions()
        selection_options = selection_options or RouteSelectOptions()
        slippage = self._default_slippage(slippage)
        op = "execute_routed_swap"

        with CorrelationContext("route"):
            validate_trade(trade, routing_options)

            pools = self._resolve_candidates(candidate_pools, cancel)
            if not pools:
                log_with_correlation(logging.INFO, "No candidate pools", op, log=logger)
                return NoRouteFound()

            router = self._client.get_router(pools, slippage=slippage)
            result = router.find_best_route(
                trade, routing_options, selection_options, use_cache=False, cancel=cancel
            )
            if not result:
                log_with_correlation(logging.INFO, str(result), op, log=logger)
                return result

            route, lookup_tables = result
            table_addresses = [str(table.key) for table in lookup_tables or []]
            log_with_correlation(
                logging.INFO,
                f"Route: estimatedAmountIn={route.total_amount_in} estimatedAmountOut={route.total_amount_out} "
                f"subRoutes={len(route.sub_routes)} lookupTables={table_addresses}",
                op,
                log=logger,
            )
            for i, sub in enumerate(route.sub_routes):
                logger.info(f"subRoute[{i}] {sub.split_percent}%: {' - '.join(sub.path.pool_addresses)}")
            if on_route is not None:
                on_route(route, table_addresses)

            # Rebuild from the state the router just read
            existing = router.resolve_existing_atas(selection_options, use_cache=True, cancel=cancel)
            built = router.instruction_builder.build_route_instructions(
                route, router.pools, existing, use_cache=True, cancel=cancel
            )

            tx = self._client.tx_builder.build_and_send(
                built.instructions,
                lookup_tables=lookup_tables,
                version=0 if lookup_tables else LEGACY,
                cancel=cancel,
            )
            log_with_correlation(logging.INFO, f"Routed swap confirmed: {tx.signature}", op, log=logger)
            return SwapResult(
                tx=tx,
                route=route,
                lookup_tables=table_addresses,
            )

    def execute_routed_swap_for_config(
        self,
        config_id: Optional[str],
        trade: Trade,
        routing_options: Optional[RoutingOptions] = None,
        selection_options: Optional[RouteSelectOptions] = None,
        slippage: Optional[Percentage] = None,
        cancel: Optional[CancelToken] = None,
        on_route: Optional[Callable[[TradeRoute, List[str]], None]] = None,
    ) -> Union[SwapResult, NoRouteFound]:
        """Route across every liquid pool of a WhirlpoolsConfig"""
        routing_options = routing_options or RoutingOptions()
        validate_trade(trade, routing_options)
        pools = self.liquid_pools_for_config(config_id, cancel=cancel)
        return self.execute_routed_swap(
            pools, trade, routing_options, selection_options, slippage=slippage, cancel=cancel, on_route=on_route
        )

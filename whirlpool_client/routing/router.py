"""
Whirlpool Router

Finds the best way to execute a trade across a set of candidate pools:

1. Enumerate paths of up to max_hops pools between the trade's mints
2. Quote every path at each percent increment of the trade amount
3. Combine disjoint paths (up to max_splits) whose percents sum to 100
4. Rank by total output (exact input) or total input (exact output)
5. Select the first ranked route whose transaction fits in one packet,
   falling back to a v0 transaction with lookup tables when allowed

Quotes use each pool's current in-range liquidity. Two paths never share a
pool, so their quotes stay independent.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple, Union

from solders.address_lookup_table_account import AddressLookupTableAccount

from ..infra import TxBuilder, CancelToken, check_cancelled, PACKET_DATA_SIZE
from ..types import (
    LEGACY,
    Whirlpool,
    Trade,
    Path,
    SwapQuote,
    SubRoute,
    TradeRoute,
    NoRouteFound,
    Percentage,
    RoutingOptions,
    RouteSelectOptions,
)
from ..errors import InvalidTradeError, QuoteUnavailableError
from ..config import config as global_config
from ..protocols.whirlpool import WhirlpoolFetcher, SwapInstructionBuilder, LookupTableFetcher, compute_swap_quote
from .pathfinding import TokenGraph

logger = logging.getLogger(__name__)

RouteSelection = Tuple[TradeRoute, Optional[List[AddressLookupTableAccount]]]


@dataclass
class PathQuote:
    """A path quoted for `percent` of the trade"""
    path: Path
    percent: int
    amount_in: int
    amount_out: int
    hop_quotes: List[SwapQuote] = field(default_factory=list)

    @property
    def pool_set(self) -> Set[str]:
        return set(self.path.pool_addresses)


def validate_trade(trade: Trade, options: RoutingOptions) -> None:
    """
    Raises:
        InvalidTradeError: Non-positive amount, identical mints or invalid options
    """
    if trade.trade_amount <= 0:
        raise InvalidTradeError(f"Trade amount must be positive, got {trade.trade_amount}", field="trade_amount")
    if trade.token_in == trade.token_out:
        raise InvalidTradeError("Input and output mints are identical", field="token_out")

    inc = options.percent_increment
    if not 1 <= inc <= 100 or 100 % inc != 0:
        raise InvalidTradeError(f"percent_increment must divide 100, got {inc}", field="percent_increment")
    if options.max_hops not in (1, 2):
        raise InvalidTradeError(f"max_hops must be 1 or 2, got {options.max_hops}", field="max_hops")
    for name in ("max_splits", "num_top_routes", "num_top_partial_quotes"):
        if getattr(options, name) < 1:
            raise InvalidTradeError(f"{name} must be at least 1", field=name)


class Router:
    """
    Route search and selection over a fixed candidate pool set

    Usage:
        router = Router(fetcher, tx_builder, pools, lookup_table_fetcher=alt_fetcher)
        result = router.find_best_route(trade, RoutingOptions(), RouteSelectOptions())
        if not result:
            print(result)            # NoRouteFound
        else:
            route, lookup_tables = result
    """

    def __init__(
        self,
        fetcher: WhirlpoolFetcher,
        tx_builder: TxBuilder,
        pools: Sequence[Whirlpool],
        lookup_table_fetcher: Optional[LookupTableFetcher] = None,
        slippage: Optional[Percentage] = None,
    ):
        self._fetcher = fetcher
        self._tx_builder = tx_builder
        self._pools: Dict[str, Whirlpool] = {pool.address: pool for pool in pools}
        self._lookup_table_fetcher = lookup_table_fetcher
        self._slippage = slippage or Percentage.from_bps(global_config.trading.default_slippage_bps)
        self._instruction_builder = SwapInstructionBuilder(fetcher, tx_builder.pubkey)

    @property
    def pools(self) -> Dict[str, Whirlpool]:
        return dict(self._pools)

    @property
    def slippage(self) -> Percentage:
        return self._slippage

    @property
    def instruction_builder(self) -> SwapInstructionBuilder:
        return self._instruction_builder

    # ========== Route search ==========

    def find_routes(
        self,
        trade: Trade,
        routing_options: Optional[RoutingOptions] = None,
        cancel: Optional[CancelToken] = None,
    ) -> List[TradeRoute]:
        """
        Ranked candidate routes, best first, at most num_top_routes

        Raises:
            InvalidTradeError: Bad trade or options
        """
        options = routing_options or RoutingOptions()
        validate_trade(trade, options)

        liquid = [pool for pool in self._pools.values() if pool.has_liquidity]
        if not liquid:
            logger.info("No liquid candidate pools")
            return []

        graph = TokenGraph.from_pools(liquid)
        paths = graph.find_paths(trade.token_in, trade.token_out, options.max_hops)
        logger.info(f"Found {len(paths)} paths from {trade.token_in} to {trade.token_out}")
        if not paths:
            return []

        check_cancelled(cancel, "route search")
        percents = list(range(options.percent_increment, 101, options.percent_increment))
        by_percent: Dict[int, List[PathQuote]] = {}
        for percent in percents:
            amount = trade.trade_amount * percent // 100
            quotes = []
            for path in paths:
                pq = self._quote_path(path, percent, amount, trade.amount_specified_is_input)
                if pq is not None:
                    quotes.append(pq)
            quotes.sort(key=lambda q: self._path_rank_key(q, trade.amount_specified_is_input))
            by_percent[percent] = quotes[:options.num_top_partial_quotes]

        check_cancelled(cancel, "route search")
        combos = self._combine(by_percent, percents, options.max_splits)
        routes = [self._to_route(trade, combo) for combo in combos]
        routes = [route for route in routes if route is not None]
        routes.sort(key=lambda r: self._route_rank_key(r, trade.amount_specified_is_input))
        routes = routes[:options.num_top_routes]

        logger.info(f"Ranked {len(routes)} routes from {len(combos)} split combinations")
        return routes

    def _quote_path(
        self,
        path: Path,
        percent: int,
        amount: int,
        amount_specified_is_input: bool,
    ) -> Optional[PathQuote]:
        """Quote a path hop by hop, None when any hop cannot be quoted"""
        if amount <= 0:
            return None

        try:
            if amount_specified_is_input:
                hop_quotes = []
                current = amount
                for edge in path.edges:
                    quote = compute_swap_quote(
                        self._pools[edge.pool_address], edge.input_mint, current, self._slippage, True
                    )
                    hop_quotes.append(quote)
                    current = quote.estimated_amount_out
                    if current <= 0:
                        return None
                return PathQuote(path, percent, amount, current, hop_quotes)

            # Exact output: walk backwards from the last hop
            hop_quotes = []
            current = amount
            for edge in reversed(path.edges):
                quote = compute_swap_quote(
                    self._pools[edge.pool_address], edge.input_mint, current, self._slippage, False
                )
                hop_quotes.insert(0, quote)
                current = quote.estimated_amount_in
            return PathQuote(path, percent, current, amount, hop_quotes)

        except (QuoteUnavailableError, InvalidTradeError) as e:
            logger.debug(f"Path {path} unquotable at {percent}%: {e.message}")
            return None

    @staticmethod
    def _path_rank_key(pq: PathQuote, exact_in: bool):
        return -pq.amount_out if exact_in else pq.amount_in

    @staticmethod
    def _route_rank_key(route: TradeRoute, exact_in: bool):
        primary = -route.total_amount_out if exact_in else route.total_amount_in
        return (primary, len(route.sub_routes))

    @staticmethod
    def _combine(
        by_percent: Dict[int, List[PathQuote]],
        percents: List[int],
        max_splits: int,
    ) -> List[List[PathQuote]]:
        """Pool-disjoint combinations of at most max_splits path quotes summing to 100%"""
        flat = [pq for percent in reversed(percents) for pq in by_percent.get(percent, [])]
        combos: List[List[PathQuote]] = []

        def walk(start: int, remaining: int, chosen: List[PathQuote], used: Set[str]):
            if remaining == 0:
                combos.append(list(chosen))
                return
            if len(chosen) == max_splits:
                return
            for i in range(start, len(flat)):
                pq = flat[i]
                if pq.percent > remaining or used & pq.pool_set:
                    continue
                chosen.append(pq)
                walk(i + 1, remaining - pq.percent, chosen, used | pq.pool_set)
                chosen.pop()

        walk(0, 100, [], set())
        return combos

    def _to_route(self, trade: Trade, combo: List[PathQuote]) -> Optional[TradeRoute]:
        """
        Build a TradeRoute from a combination

        Integer percent amounts can leave a remainder; it is added to the
        largest split, which is requoted.
        """
        combo = sorted(combo, key=lambda pq: -pq.percent)
        specified_total = sum(pq.amount_in if trade.amount_specified_is_input else pq.amount_out for pq in combo)
        remainder = trade.trade_amount - specified_total
        if remainder > 0:
            head = combo[0]
            specified = (head.amount_in if trade.amount_specified_is_input else head.amount_out) + remainder
            requoted = self._quote_path(head.path, head.percent, specified, trade.amount_specified_is_input)
            if requoted is None:
                return None
            combo = [requoted] + combo[1:]

        sub_routes = [
            SubRoute(
                path=pq.path,
                split_percent=pq.percent,
                amount_in=pq.amount_in,
                amount_out=pq.amount_out,
                hop_quotes=pq.hop_quotes,
            )
            for pq in combo
        ]
        return TradeRoute(
            input_mint=trade.token_in,
            output_mint=trade.token_out,
            amount_specified_is_input=trade.amount_specified_is_input,
            sub_routes=sub_routes,
            total_amount_in=sum(sub.amount_in for sub in sub_routes),
            total_amount_out=sum(sub.amount_out for sub in sub_routes),
        )

    # ========== Route selection ==========

    def resolve_existing_atas(
        self,
        select_options: RouteSelectOptions,
        use_cache: bool = False,
        cancel: Optional[CancelToken] = None,
    ) -> Set[str]:
        """ATAs to treat as initialized: the provided set, or the owner's accounts from the network"""
        atas = select_options.available_ata_accounts
        if atas.is_provided:
            return set(atas.accounts)
        return self._fetcher.get_owner_token_accounts(self._tx_builder.pubkey, use_cache=use_cache, cancel=cancel)

    def select_route(
        self,
        routes: Sequence[TradeRoute],
        select_options: Optional[RouteSelectOptions] = None,
        use_cache: bool = False,
        cancel: Optional[CancelToken] = None,
    ) -> Union[RouteSelection, NoRouteFound]:
        """First route (in rank order) whose transaction fits in one packet"""
        options = select_options or RouteSelectOptions()
        if not routes:
            return NoRouteFound()

        existing_atas = self.resolve_existing_atas(options, use_cache=use_cache, cancel=cancel)

        for rank, route in enumerate(routes):
            check_cancelled(cancel, "route selection")
            built = self._instruction_builder.build_route_instructions(
                route, self._pools, existing_atas, use_cache=use_cache, cancel=cancel
            )
            instructions = built.instructions

            size = self._tx_builder.estimate_size(instructions, version=LEGACY)
            if size <= PACKET_DATA_SIZE:
                logger.info(f"Selected route #{rank} as legacy transaction ({size} bytes): {route}")
                return route, None

            if not options.allows_versioned or self._lookup_table_fetcher is None:
                logger.debug(f"Route #{rank} too large ({size} bytes) and v0 not available, skipping")
                continue

            accounts = _instruction_accounts(instructions)
            tables = self._lookup_table_fetcher.get_lookup_tables(accounts, use_cache=use_cache)
            if not tables:
                logger.debug(f"Route #{rank} too large ({size} bytes) and no lookup table covers it, skipping")
                continue

            v0_size = self._tx_builder.estimate_size(instructions, lookup_tables=tables, version=0)
            if v0_size <= PACKET_DATA_SIZE:
                logger.info(
                    f"Selected route #{rank} as v0 transaction with {len(tables)} lookup tables "
                    f"({v0_size} bytes): {route}"
                )
                return route, tables

            logger.debug(f"Route #{rank} too large even with lookup tables ({v0_size} bytes), skipping")

        return NoRouteFound("No route fits in a single transaction")

    def find_best_route(
        self,
        trade: Trade,
        routing_options: Optional[RoutingOptions] = None,
        select_options: Optional[RouteSelectOptions] = None,
        use_cache: bool = False,
        cancel: Optional[CancelToken] = None,
    ) -> Union[RouteSelection, NoRouteFound]:
        """
        Search and select in one call

        Returns:
            (TradeRoute, lookup_tables or None), or NoRouteFound

        Raises:
            InvalidTradeError: Bad trade or options
        """
        routes = self.find_routes(trade, routing_options, cancel=cancel)
        if not routes:
            return NoRouteFound()
        return self.select_route(routes, select_options, use_cache=use_cache, cancel=cancel)


def _instruction_accounts(instructions) -> List[str]:
    """Non-signer accounts referenced by instructions, in first-seen order"""
    seen: Dict[str, None] = {}
    for ix in instructions:
        for meta in ix.accounts:
            if not meta.is_signer:
                seen.setdefault(str(meta.pubkey), None)
    return list(seen)

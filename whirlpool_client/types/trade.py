"""
Trade, quote and route type definitions
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List, Optional, Tuple, Union

from .common import Percentage
from ..config import config as global_config


LEGACY = "legacy"


@dataclass(frozen=True)
class Trade:
    """
    Trade intent

    Attributes:
        token_in: Input mint
        token_out: Output mint
        trade_amount: Raw amount (input amount when amount_specified_is_input, else output amount)
        amount_specified_is_input: Direction of the specified amount
    """
    token_in: str
    token_out: str
    trade_amount: int
    amount_specified_is_input: bool = True


@dataclass
class SwapQuote:
    """
    Single-pool swap quote

    other_amount_threshold is the minimum output for exact-input quotes and the
    maximum input for exact-output quotes. The program rejects the swap when the
    threshold is violated.
    """
    pool_address: str
    input_mint: str
    output_mint: str
    a_to_b: bool
    amount_specified_is_input: bool
    amount: int
    other_amount_threshold: int
    estimated_amount_in: int
    estimated_amount_out: int
    estimated_fee_amount: int
    estimated_end_sqrt_price: int
    sqrt_price_limit: int
    slippage: Percentage
    tick_arrays: Tuple[str, ...] = ()

    def __str__(self) -> str:
        return (
            f"Quote({self.estimated_amount_in} -> {self.estimated_amount_out}, "
            f"threshold={self.other_amount_threshold}, slippage={self.slippage})"
        )


@dataclass(frozen=True)
class PathEdge:
    """One hop through a pool"""
    pool_address: str
    input_mint: str
    output_mint: str
    a_to_b: bool


@dataclass(frozen=True)
class Path:
    """Ordered sequence of hops from input_mint to output_mint"""
    input_mint: str
    output_mint: str
    edges: Tuple[PathEdge, ...]

    @property
    def pool_addresses(self) -> Tuple[str, ...]:
        return tuple(edge.pool_address for edge in self.edges)

    def __str__(self) -> str:
        return " - ".join(self.pool_addresses)


@dataclass
class SubRoute:
    """A path carrying split_percent of the trade"""
    path: Path
    split_percent: int
    amount_in: int
    amount_out: int
    hop_quotes: List[SwapQuote] = field(default_factory=list)


@dataclass
class TradeRoute:
    """Trade decomposed across one or more paths; split percents sum to 100"""
    input_mint: str
    output_mint: str
    amount_specified_is_input: bool
    sub_routes: List[SubRoute]
    total_amount_in: int
    total_amount_out: int

    @property
    def split_percent_total(self) -> int:
        return sum(sub.split_percent for sub in self.sub_routes)

    @property
    def pool_addresses(self) -> List[str]:
        return [addr for sub in self.sub_routes for addr in sub.path.pool_addresses]

    def __str__(self) -> str:
        parts = ", ".join(f"{sub.split_percent}%: {sub.path}" for sub in self.sub_routes)
        return f"TradeRoute({self.total_amount_in} -> {self.total_amount_out}, [{parts}])"


@dataclass(frozen=True)
class NoRouteFound:
    """
    Valid negative result of a route search

    Falsy, so `if not result:` reads naturally at call sites.
    """
    reason: str = "No route found"

    def __bool__(self) -> bool:
        return False

    def __str__(self) -> str:
        return self.reason


@dataclass(frozen=True)
class AtaAccounts:
    """
    Already-initialized associated token accounts known to the caller

    AtaAccounts.unspecified() asks the router to fetch the owner's accounts.
    AtaAccounts.provided(...) is used as-is, even when empty.
    """
    accounts: Optional[FrozenSet[str]] = None

    @classmethod
    def unspecified(cls) -> "AtaAccounts":
        return cls(None)

    @classmethod
    def provided(cls, accounts: Iterable[str]) -> "AtaAccounts":
        return cls(frozenset(accounts))

    @property
    def is_provided(self) -> bool:
        return self.accounts is not None


@dataclass
class RoutingOptions:
    """
    Route search parameters

    Unset values are pulled from the global router config.

    Attributes:
        percent_increment: Granularity of split percentages (must divide 100)
        num_top_routes: Number of best routes kept for selection
        num_top_partial_quotes: Best path quotes kept per percentage
        max_splits: Maximum number of paths a trade is split across
        max_hops: Maximum pools per path (1 or 2)
    """
    percent_increment: int = None
    num_top_routes: int = None
    num_top_partial_quotes: int = None
    max_splits: int = None
    max_hops: int = None

    def __post_init__(self):
        defaults = global_config.router
        if self.percent_increment is None:
            self.percent_increment = defaults.percent_increment
        if self.num_top_routes is None:
            self.num_top_routes = defaults.num_top_routes
        if self.num_top_partial_quotes is None:
            self.num_top_partial_quotes = defaults.num_top_partial_quotes
        if self.max_splits is None:
            self.max_splits = defaults.max_splits
        if self.max_hops is None:
            self.max_hops = defaults.max_hops


@dataclass
class RouteSelectOptions:
    """
    Route selection parameters

    Attributes:
        max_supported_transaction_version: "legacy" or 0; 0 allows lookup-table compression
        available_ata_accounts: Known initialized ATAs (see AtaAccounts)
    """
    max_supported_transaction_version: Union[int, str] = 0
    available_ata_accounts: AtaAccounts = field(default_factory=AtaAccounts.unspecified)

    @property
    def allows_versioned(self) -> bool:
        return self.max_supported_transaction_version != LEGACY

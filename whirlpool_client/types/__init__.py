"""
Type definitions for the Whirlpool swap client
"""

from .common import Token, Percentage
from .pool import PoolIdentity, Whirlpool
from .trade import (
    LEGACY,
    Trade,
    SwapQuote,
    PathEdge,
    Path,
    SubRoute,
    TradeRoute,
    NoRouteFound,
    AtaAccounts,
    RoutingOptions,
    RouteSelectOptions,
)
from .result import TxResult, TxStatus, SwapResult

__all__ = [
    "Token",
    "Percentage",
    "PoolIdentity",
    "Whirlpool",
    "LEGACY",
    "Trade",
    "SwapQuote",
    "PathEdge",
    "Path",
    "SubRoute",
    "TradeRoute",
    "NoRouteFound",
    "AtaAccounts",
    "RoutingOptions",
    "RouteSelectOptions",
    "TxResult",
    "TxStatus",
    "SwapResult",
]

"""
Whirlpool Client - Quote-and-execute swaps against Orca Whirlpools

Provides:
- Single-pool swaps addressed by a five-part pool identity
- Routed swaps split across up to three paths of one or two pools
- Legacy and v0 (address lookup table) transactions
"""

from .client import WhirlpoolClient
from .types import (
    Token,
    Percentage,
    PoolIdentity,
    Whirlpool,
    Trade,
    SwapQuote,
    TradeRoute,
    NoRouteFound,
    AtaAccounts,
    RoutingOptions,
    RouteSelectOptions,
    TxResult,
    TxStatus,
    SwapResult,
)
from .errors import (
    ErrorCode,
    SwapClientError,
    RpcError,
    PoolNotFoundError,
    QuoteUnavailableError,
    InvalidTradeError,
    TransactionError,
    TransactionSubmissionError,
    ConfirmationTimeoutError,
)
from .infra import CancelToken
from .modules.swap import SwapModule
from .routing import Router

__all__ = [
    # Client
    "WhirlpoolClient",
    "SwapModule",
    "Router",
    "CancelToken",
    # Types
    "Token",
    "Percentage",
    "PoolIdentity",
    "Whirlpool",
    "Trade",
    "SwapQuote",
    "TradeRoute",
    "NoRouteFound",
    "AtaAccounts",
    "RoutingOptions",
    "RouteSelectOptions",
    "TxResult",
    "TxStatus",
    "SwapResult",
    # Errors
    "ErrorCode",
    "SwapClientError",
    "RpcError",
    "PoolNotFoundError",
    "QuoteUnavailableError",
    "InvalidTradeError",
    "TransactionError",
    "TransactionSubmissionError",
    "ConfirmationTimeoutError",
]

__version__ = "0.1.0"

"""
Routing layer

TokenGraph path enumeration and the split-route Router.
"""

from .pathfinding import TokenGraph
from .router import Router, PathQuote, RouteSelection, validate_trade

__all__ = [
    "TokenGraph",
    "Router",
    "PathQuote",
    "RouteSelection",
    "validate_trade",
]

"""
Functional modules

- SwapModule: single-pool and routed swaps
"""

from .swap import SwapModule

__all__ = ["SwapModule"]

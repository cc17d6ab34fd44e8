"""
Result type definitions for transactions and swaps
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from .trade import SwapQuote, TradeRoute


class TxStatus(Enum):
    """Transaction status"""
    SUCCESS = "success"
    PENDING = "pending"


@dataclass
class TxResult:
    """
    Transaction execution result

    Failures are raised as TransactionError subclasses, so a TxResult is
    either confirmed (SUCCESS) or sent without waiting (PENDING).

    Attributes:
        status: Transaction status
        signature: Transaction signature (base58)
        slot: Slot reported with the confirmation status
        confirmation_status: Commitment reached ("confirmed", "finalized")
        version: "legacy" or 0
    """
    status: TxStatus
    signature: str
    slot: Optional[int] = None
    confirmation_status: Optional[str] = None
    version: Union[int, str] = 0

    @property
    def is_success(self) -> bool:
        return self.status == TxStatus.SUCCESS

    @classmethod
    def success(cls, signature: str, **kwargs) -> "TxResult":
        """Create confirmed result"""
        return cls(status=TxStatus.SUCCESS, signature=signature, **kwargs)

    @classmethod
    def pending(cls, signature: str, **kwargs) -> "TxResult":
        """Create sent-but-unconfirmed result"""
        return cls(status=TxStatus.PENDING, signature=signature, **kwargs)

    def __str__(self) -> str:
        return f"TxResult({self.status.value}, {self.signature[:16]}...)"


@dataclass
class SwapResult:
    """
    Outcome of an executed swap

    Attributes:
        tx: Confirmed transaction result
        quote: Quote the single-pool swap executed (None for routed swaps)
        route: Route the routed swap executed (None for single-pool swaps)
        lookup_tables: Lookup table addresses used by a v0 transaction
    """
    tx: TxResult
    quote: Optional[SwapQuote] = None
    route: Optional[TradeRoute] = None
    lookup_tables: List[str] = field(default_factory=list)

    @property
    def signature(self) -> str:
        return self.tx.signature

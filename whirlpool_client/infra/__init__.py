"""
Infrastructure layer for the Whirlpool swap client

Provides:
- RpcClient: HTTP RPC wrapper with retry logic and endpoint fallback
- Signer: Transaction signing abstraction (local keypair)
- TxBuilder: Transaction assembly, sizing and sending
- CancelToken: Cooperative cancellation
- CorrelationContext: Correlation IDs for log tracing
"""

from .rpc import RpcClient, RpcClientConfig
from .solana_signer import (
    Signer,
    LocalSigner,
    create_signer,
)
from .tx_builder import TxBuilder, TxBuilderConfig, PACKET_DATA_SIZE
from .cancel import CancelToken, check_cancelled
from .tracing import (
    CorrelationContext,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
    log_with_correlation,
)

__all__ = [
    "RpcClient",
    "RpcClientConfig",
    "Signer",
    "LocalSigner",
    "create_signer",
    "TxBuilder",
    "TxBuilderConfig",
    "PACKET_DATA_SIZE",
    "CancelToken",
    "check_cancelled",
    "CorrelationContext",
    "generate_correlation_id",
    "get_correlation_id",
    "set_correlation_id",
    "log_with_correlation",
]

"""
Error definitions for the Whirlpool swap client
"""

from .exceptions import (
    ErrorCode,
    SwapClientError,
    RpcError,
    PoolNotFoundError,
    QuoteUnavailableError,
    InvalidTradeError,
    TransactionError,
    TransactionSubmissionError,
    ConfirmationTimeoutError,
    SignerError,
    ConfigurationError,
    OperationCancelled,
)

__all__ = [
    "ErrorCode",
    "SwapClientError",
    "RpcError",
    "PoolNotFoundError",
    "QuoteUnavailableError",
    "InvalidTradeError",
    "TransactionError",
    "TransactionSubmissionError",
    "ConfirmationTimeoutError",
    "SignerError",
    "ConfigurationError",
    "OperationCancelled",
]

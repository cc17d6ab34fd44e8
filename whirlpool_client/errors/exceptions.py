"""
Exception definitions for the Whirlpool swap client
"""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """
    Unified error codes for swap operations

    1xxx - RPC errors
    2xxx - Transaction errors
    3xxx - Quote/Route errors
    4xxx - Pool errors
    6xxx - Signer errors
    7xxx - Operation errors
    9xxx - Configuration errors
    """
    # RPC errors (recoverable)
    RPC_CONNECTION_FAILED = "1001"
    RPC_TIMEOUT = "1002"
    RPC_RATE_LIMITED = "1003"
    RPC_INVALID_RESPONSE = "1004"

    # Transaction errors
    TX_SEND_FAILED = "2002"
    TX_CONFIRMATION_FAILED = "2003"
    TX_CONFIRMATION_TIMEOUT = "2004"
    TX_BLOCKHASH_EXPIRED = "2005"
    TX_TOO_LARGE = "2006"

    # Quote/Route errors
    QUOTE_UNAVAILABLE = "3001"
    LIQUIDITY_INSUFFICIENT = "3002"
    INVALID_TRADE = "3003"

    # Pool errors
    POOL_NOT_FOUND = "4001"
    POOL_INVALID_STATE = "4002"
    POOL_NO_LIQUIDITY = "4003"

    # Signer errors
    SIGNER_NOT_CONFIGURED = "6001"
    SIGNER_FAILED = "6002"

    # Operation errors
    OPERATION_CANCELLED = "7001"

    # Configuration errors
    CONFIG_INVALID = "9001"
    CONFIG_MISSING = "9002"


class SwapClientError(Exception):
    """
    Base exception for all swap client errors

    Attributes:
        message: Human-readable error message
        code: Error code for programmatic handling
        recoverable: Whether the error might succeed on a later attempt
        original_error: The underlying exception if any
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        recoverable: bool = False,
        original_error: Optional[Exception] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.recoverable = recoverable
        self.original_error = original_error
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"


class RpcError(SwapClientError):
    """
    RPC-related errors - typically recoverable

    Raised when:
    - Connection to RPC endpoint fails
    - Request times out
    - Rate limit is hit
    - The node answers with a JSON-RPC error
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.RPC_CONNECTION_FAILED,
        original_error: Optional[Exception] = None,
        endpoint: Optional[str] = None,
    ):
        super().__init__(
            message,
            code,
            recoverable=True,
            original_error=original_error,
            details={"endpoint": endpoint} if endpoint else None,
        )
        self.endpoint = endpoint

    @classmethod
    def connection_failed(cls, endpoint: str, error: Exception = None) -> "RpcError":
        return cls(
            f"Failed to connect to RPC endpoint: {endpoint}",
            ErrorCode.RPC_CONNECTION_FAILED,
            original_error=error,
            endpoint=endpoint,
        )

    @classmethod
    def timeout(cls, endpoint: str, timeout_seconds: float) -> "RpcError":
        return cls(
            f"RPC request timed out after {timeout_seconds}s",
            ErrorCode.RPC_TIMEOUT,
            endpoint=endpoint,
        )

    @classmethod
    def rate_limited(cls, endpoint: str) -> "RpcError":
        return cls(
            "RPC rate limit exceeded",
            ErrorCode.RPC_RATE_LIMITED,
            endpoint=endpoint,
        )


class PoolNotFoundError(SwapClientError):
    """
    Pool identity does not resolve to a usable pool - not recoverable

    Raised when:
    - No account exists at the derived address
    - The account is not a Whirlpool (owner, size or discriminator mismatch)
    - The pool holds no liquidity and cannot be swapped against
    """

    def __init__(
        self,
        message: str,
        pool_address: Optional[str] = None,
        code: ErrorCode = ErrorCode.POOL_NOT_FOUND,
    ):
        super().__init__(
            message,
            code,
            recoverable=False,
            details={"pool_address": pool_address},
        )
        self.pool_address = pool_address

    @classmethod
    def not_found(cls, pool_address: str) -> "PoolNotFoundError":
        return cls(f"Pool not found: {pool_address}", pool_address=pool_address)

    @classmethod
    def invalid_state(cls, pool_address: str, reason: str) -> "PoolNotFoundError":
        return cls(
            f"Pool has invalid state: {reason}",
            pool_address=pool_address,
            code=ErrorCode.POOL_INVALID_STATE,
        )

    @classmethod
    def no_liquidity(cls, pool_address: str) -> "PoolNotFoundError":
        return cls(
            f"Pool has no liquidity: {pool_address}",
            pool_address=pool_address,
            code=ErrorCode.POOL_NO_LIQUIDITY,
        )


class QuoteUnavailableError(SwapClientError):
    """
    A quote could not be produced

    Raised when:
    - Pool state could not be fetched
    - The pool's in-range liquidity cannot satisfy the requested amount
    """

    def __init__(
        self,
        message: str,
        pool_address: Optional[str] = None,
        code: ErrorCode = ErrorCode.QUOTE_UNAVAILABLE,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message,
            code,
            recoverable=original_error is not None,
            original_error=original_error,
            details={"pool_address": pool_address},
        )
        self.pool_address = pool_address

    @classmethod
    def fetch_failed(cls, pool_address: str, error: Exception) -> "QuoteUnavailableError":
        return cls(
            f"Failed to fetch pool state for {pool_address}: {error}",
            pool_address=pool_address,
            original_error=error,
        )

    @classmethod
    def insufficient_liquidity(cls, pool_address: Optional[str], reason: str) -> "QuoteUnavailableError":
        return cls(
            f"Insufficient liquidity: {reason}",
            pool_address=pool_address,
            code=ErrorCode.LIQUIDITY_INSUFFICIENT,
        )


class InvalidTradeError(SwapClientError):
    """Route search input is malformed (non-positive amount, identical mints, bad options)"""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            message,
            ErrorCode.INVALID_TRADE,
            recoverable=False,
            details={"field": field},
        )
        self.field = field


class TransactionError(SwapClientError):
    """
    Transaction execution errors

    The base class covers a transaction that landed but failed on-chain.
    Submission and confirmation problems use the subclasses below.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.TX_CONFIRMATION_FAILED,
        signature: Optional[str] = None,
        logs: Optional[list] = None,
        recoverable: bool = False,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message,
            code,
            recoverable=recoverable,
            original_error=original_error,
            details={"signature": signature, "logs": logs},
        )
        self.signature = signature
        self.logs = logs or []

    @classmethod
    def failed_on_chain(cls, signature: str, error: object) -> "TransactionError":
        return cls(
            f"Transaction failed on-chain: {error}",
            signature=signature,
        )

    @classmethod
    def too_large(cls, size: int, limit: int) -> "TransactionError":
        return cls(
            f"Transaction too large: {size} bytes (limit {limit})",
            code=ErrorCode.TX_TOO_LARGE,
        )


class TransactionSubmissionError(TransactionError):
    """Signing or broadcast failed; nothing reached the ledger"""

    def __init__(
        self,
        message: str,
        original_error: Optional[Exception] = None,
        logs: Optional[list] = None,
    ):
        text = str(original_error or message).lower()
        super().__init__(
            message,
            code=ErrorCode.TX_SEND_FAILED,
            logs=logs,
            recoverable="blockhash" in text or "timeout" in text or "connection" in text,
            original_error=original_error,
        )

    @classmethod
    def send_failed(cls, error: object, original_error: Optional[Exception] = None) -> "TransactionSubmissionError":
        logs = None
        if isinstance(original_error, RpcError):
            data = original_error.details.get("rpc_error_data") or {}
            if isinstance(data, dict):
                logs = data.get("logs")
        return cls(
            f"Failed to send transaction: {error}",
            original_error=original_error,
            logs=logs,
        )


class ConfirmationTimeoutError(TransactionError):
    """The ledger never acknowledged the transaction within the expected window"""

    def __init__(self, message: str, signature: Optional[str] = None, code: ErrorCode = ErrorCode.TX_CONFIRMATION_TIMEOUT):
        super().__init__(message, code=code, signature=signature, recoverable=True)

    @classmethod
    def timed_out(cls, signature: str, timeout_seconds: float, last_status: Optional[str] = None) -> "ConfirmationTimeoutError":
        status = last_status or "never seen"
        return cls(
            f"Transaction {signature} not confirmed after {timeout_seconds}s (last status: {status})",
            signature=signature,
        )

    @classmethod
    def blockhash_expired(cls, signature: str, last_valid_block_height: int) -> "ConfirmationTimeoutError":
        return cls(
            f"Transaction {signature} expired: block height exceeded {last_valid_block_height}",
            signature=signature,
            code=ErrorCode.TX_BLOCKHASH_EXPIRED,
        )


class SignerError(SwapClientError):
    """
    Signing-related errors

    Raised when:
    - No signer configured
    - Signing operation fails
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.SIGNER_FAILED,
        recoverable: bool = False,
    ):
        super().__init__(message, code, recoverable=recoverable)

    @classmethod
    def not_configured(cls) -> "SignerError":
        return cls(
            "No signer configured. Provide a keypair or set SOLANA_KEYPAIR_PATH.",
            ErrorCode.SIGNER_NOT_CONFIGURED,
        )

    @classmethod
    def failed(cls, reason: str) -> "SignerError":
        return cls(f"Signing failed: {reason}", ErrorCode.SIGNER_FAILED)


class ConfigurationError(SwapClientError):
    """
    Configuration-related errors

    Raised when:
    - Required configuration is missing
    - Configuration values are invalid
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CONFIG_INVALID,
    ):
        super().__init__(message, code, recoverable=False)

    @classmethod
    def missing(cls, param: str) -> "ConfigurationError":
        return cls(f"Missing required configuration: {param}", ErrorCode.CONFIG_MISSING)

    @classmethod
    def invalid(cls, param: str, reason: str) -> "ConfigurationError":
        return cls(f"Invalid configuration '{param}': {reason}", ErrorCode.CONFIG_INVALID)


class OperationCancelled(SwapClientError):
    """The caller cancelled the operation through its CancelToken"""

    def __init__(self, stage: Optional[str] = None):
        message = f"Operation cancelled during {stage}" if stage else "Operation cancelled"
        super().__init__(
            message,
            ErrorCode.OPERATION_CANCELLED,
            recoverable=False,
            details={"stage": stage},
        )
        self.stage = stage

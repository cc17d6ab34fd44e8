"""
RPC Client for Solana

Provides unified JSON-RPC interface with:
- Multiple endpoint fallback
- Retry logic for reads
- Rate limit handling
- Request timeout management
- Confirmation polling bounded by timeout, blockhash expiry and cancellation
"""

from __future__ import annotations

import base64
import logging
import time
import threading
from typing import Any, Dict, List, Optional, Union
from dataclasses import dataclass

import httpx

from ..errors import ErrorCode, RpcError, ConfigurationError, ConfirmationTimeoutError
from ..config import config as global_config
from .cancel import CancelToken

logger = logging.getLogger(__name__)


@dataclass
class RpcClientConfig:
    """
    RPC client runtime configuration

    Allows per-client overrides while pulling defaults from the global
    config (whirlpool_client.config.RpcConfig).

    Usage:
        # Use all defaults from environment
        client = RpcClient(endpoint)

        # Override specific settings
        config = RpcClientConfig(timeout_seconds=60, max_retries=5)
        client = RpcClient(endpoint, config=config)
    """
    timeout_seconds: float = None
    max_retries: int = None
    retry_delay_seconds: float = None
    commitment: str = None

    def __post_init__(self):
        """Apply defaults from global config for any unset values"""
        if self.timeout_seconds is None:
            self.timeout_seconds = global_config.rpc.timeout_seconds
        if self.max_retries is None:
            self.max_retries = global_config.rpc.max_retries
        if self.retry_delay_seconds is None:
            self.retry_delay_seconds = global_config.rpc.retry_delay_seconds
        if self.commitment is None:
            self.commitment = global_config.rpc.commitment


class RpcClient:
    """
    Unified Solana RPC client

    One instance may be shared by concurrent swap flows; the underlying
    httpx.Client is created once under a lock.

    Usage:
        rpc = RpcClient("https://api.devnet.solana.com")

        # Multiple endpoints with fallback
        rpc = RpcClient([
            "https://primary-rpc.example.com",
            "https://backup-rpc.example.com",
        ])

        data = rpc.get_account_info("AccountAddress...")
        result = rpc.call("getSlot", [])
    """

    def __init__(
        self,
        endpoint: Union[str, List[str]],
        config: Optional[RpcClientConfig] = None,
    ):
        """
        Initialize RPC client

        Args:
            endpoint: RPC endpoint URL or list of URLs (for fallback)
            config: RPC configuration options
        """
        self._endpoints = [endpoint] if isinstance(endpoint, str) else list(endpoint)
        self._endpoints = [e for e in self._endpoints if e]
        if not self._endpoints:
            raise ConfigurationError.missing("RPC endpoint")

        self._config = config or RpcClientConfig()
        self._current_endpoint_idx = 0
        self._client: Optional[httpx.Client] = None
        self._client_lock = threading.Lock()
        self._request_id = 0

    @property
    def endpoint(self) -> str:
        """Current active endpoint"""
        return self._endpoints[self._current_endpoint_idx]

    @property
    def commitment(self) -> str:
        """Default commitment level"""
        return self._config.commitment

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client (thread-safe)"""
        if self._client is None:
            with self._client_lock:
                # Double-check after acquiring lock
                if self._client is None:
                    self._client = httpx.Client(
                        timeout=self._config.timeout_seconds,
                        headers={"Content-Type": "application/json"},
                    )
        return self._client

    def _next_request_id(self) -> int:
        with self._client_lock:
            self._request_id += 1
            return self._request_id

    def _rotate_endpoint(self):
        """Rotate to next endpoint on failure"""
        if len(self._endpoints) > 1:
            self._current_endpoint_idx = (self._current_endpoint_idx + 1) % len(self._endpoints)
            logger.info(f"Rotating to RPC endpoint: {self.endpoint}")

    def call(
        self,
        method: str,
        params: List[Any],
        timeout: Optional[float] = None,
        retry: bool = True,
    ) -> Any:
        """
        Make JSON-RPC call

        Args:
            method: RPC method name
            params: RPC parameters
            timeout: Optional timeout override
            retry: Retry transport failures and fall back across endpoints.
                   JSON-RPC errors reported by the node are never retried.

        Returns:
            RPC result

        Raises:
            RpcError: On RPC failure
        """
        client = self._get_client()
        body = {
            "jsonrpc": "2.0",
            "id": self._next_request_id(),
            "method": method,
            "params": params,
        }

        attempts = max(1, self._config.max_retries) if retry else 1
        max_endpoints = len(self._endpoints) if retry else 1
        timeout_val = timeout or self._config.timeout_seconds

        last_error: Optional[Exception] = None
        endpoints_tried = 0

        while endpoints_tried < max_endpoints:
            for attempt in range(attempts):
                try:
                    response = client.post(
                        self.endpoint,
                        json=body,
                        timeout=timeout_val,
                    )

                    if response.status_code == 429:
                        logger.warning(f"Rate limited by {self.endpoint}")
                        last_error = RpcError.rate_limited(self.endpoint)
                        if attempt < attempts - 1:
                            time.sleep(self._config.retry_delay_seconds * (attempt + 1))
                        continue

                    response.raise_for_status()
                    result = response.json()

                    if "error" in result:
                        error = result["error"]
                        error_msg = error.get("message", str(error))
                        rpc_error = RpcError(
                            f"RPC error: {error_msg}",
                            code=_classify_rpc_error_code(error_msg),
                            endpoint=self.endpoint,
                        )
                        # Preserve RPC error code and data (simulation logs) for debugging
                        rpc_error.details["rpc_error_code"] = error.get("code")
                        rpc_error.details["rpc_error_data"] = error.get("data")
                        raise rpc_error

                    return result.get("result")

                except httpx.TimeoutException:
                    last_error = RpcError.timeout(self.endpoint, timeout_val)
                    logger.warning(f"RPC timeout (attempt {attempt + 1}): {self.endpoint}")

                except httpx.HTTPStatusError as e:
                    last_error = RpcError(
                        f"HTTP error {e.response.status_code}",
                        endpoint=self.endpoint,
                        original_error=e,
                    )
                    logger.warning(f"RPC HTTP error (attempt {attempt + 1}): {e}")

                except httpx.RequestError as e:
                    last_error = RpcError.connection_failed(self.endpoint, e)
                    logger.warning(f"RPC connection error (attempt {attempt + 1}): {e}")

                except ValueError as e:
                    last_error = RpcError(
                        f"Invalid JSON response: {e}",
                        code=ErrorCode.RPC_INVALID_RESPONSE,
                        endpoint=self.endpoint,
                        original_error=e,
                    )
                    logger.warning(f"RPC invalid response (attempt {attempt + 1}): {e}")

                if attempt < attempts - 1:
                    time.sleep(self._config.retry_delay_seconds * (attempt + 1))

            self._rotate_endpoint()
            endpoints_tried += 1

        raise last_error or RpcError("All RPC endpoints failed")

    def get_account_info(
        self,
        address: str,
        encoding: str = "base64",
        commitment: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Get account information

        Returns:
            Account info or None if not found
        """
        params = [
            address,
            {
                "encoding": encoding,
                "commitment": commitment or self.commitment,
            },
        ]
        result = self.call("getAccountInfo", params)
        return result.get("value") if result else None

    def get_multiple_accounts(
        self,
        addresses: List[str],
        encoding: str = "base64",
        commitment: Optional[str] = None,
    ) -> List[Optional[Dict[str, Any]]]:
        """
        Get multiple account information in one call

        Returns:
            List of account info (None for accounts not found), same order as addresses
        """
        if not addresses:
            return []
        params = [
            addresses,
            {
                "encoding": encoding,
                "commitment": commitment or self.commitment,
            },
        ]
        result = self.call("getMultipleAccounts", params)
        return result.get("value", []) if result else []

    def get_program_accounts(
        self,
        program_id: str,
        filters: Optional[List[Dict[str, Any]]] = None,
        encoding: str = "base64",
        commitment: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Get all accounts owned by a program

        Example filters:
            [
                {"memcmp": {"offset": 8, "bytes": "base58_data"}},
                {"dataSize": 653}
            ]

        Returns:
            List of {"pubkey": ..., "account": {...}} dicts
        """
        config: Dict[str, Any] = {
            "encoding": encoding,
            "commitment": commitment or self.commitment,
        }
        if filters:
            config["filters"] = filters

        result = self.call("getProgramAccounts", [program_id, config])
        return result or []

    def get_token_accounts_by_owner(
        self,
        owner: str,
        program_id: str,
        encoding: str = "jsonParsed",
        commitment: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Get token accounts owned by address under one token program

        Returns:
            List of {"pubkey": ..., "account": {...}} dicts
        """
        params = [
            owner,
            {"programId": program_id},
            {
                "encoding": encoding,
                "commitment": commitment or self.commitment,
            },
        ]
        result = self.call("getTokenAccountsByOwner", params)
        return result.get("value", []) if result else []

    def get_latest_blockhash(
        self,
        commitment: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Get latest blockhash

        Returns:
            Dict with blockhash and lastValidBlockHeight
        """
        params = [{"commitment": commitment or self.commitment}]
        result = self.call("getLatestBlockhash", params)
        return result.get("value", {}) if result else {}

    def get_block_height(self, commitment: Optional[str] = None) -> int:
        """Get current block height"""
        params = [{"commitment": commitment or self.commitment}]
        return self.call("getBlockHeight", params)

    def send_transaction(
        self,
        transaction: bytes,
        skip_preflight: bool = False,
        preflight_commitment: Optional[str] = None,
        max_retries: Optional[int] = None,
    ) -> str:
        """
        Send signed transaction once

        Args:
            transaction: Signed transaction bytes
            skip_preflight: Skip preflight simulation
            preflight_commitment: Preflight commitment level
            max_retries: Rebroadcast attempts performed by the node

        Returns:
            Transaction signature (base58)
        """
        tx_data = base64.b64encode(transaction).decode("ascii")

        options: Dict[str, Any] = {
            "skipPreflight": skip_preflight,
            "preflightCommitment": preflight_commitment or self.commitment,
            "encoding": "base64",
        }
        if max_retries is not None:
            options["maxRetries"] = max_retries

        return self.call("sendTransaction", [tx_data, options], retry=False)

    def get_signature_statuses(self, signatures: List[str]) -> List[Optional[Dict[str, Any]]]:
        """Get statuses for signatures (None entries for unknown signatures)"""
        result = self.call("getSignatureStatuses", [signatures])
        return result.get("value", []) if result else []

    def confirm_transaction(
        self,
        signature: str,
        commitment: Optional[str] = None,
        timeout_seconds: float = 60.0,
        last_valid_block_height: Optional[int] = None,
        poll_interval: float = 1.0,
        cancel: Optional[CancelToken] = None,
    ) -> Dict[str, Any]:
        """
        Wait for transaction confirmation

        Args:
            signature: Transaction signature
            commitment: Commitment level to wait for ("confirmed" or "finalized")
            timeout_seconds: Max wait time
            last_valid_block_height: Stop once the chain passes this height
            poll_interval: Delay between status polls
            cancel: Optional cancel token

        Returns:
            Final signature status. Contains a non-null "err" if the
            transaction landed but failed on-chain.

        Raises:
            ConfirmationTimeoutError: Timeout or blockhash expiry
            OperationCancelled: Cancelled while waiting
        """
        target = commitment or self.commitment
        accepted = ("confirmed", "finalized") if target != "finalized" else ("finalized",)
        if target == "processed":
            accepted = ("processed", "confirmed", "finalized")

        start_time = time.monotonic()
        last_status: Optional[Dict[str, Any]] = None

        while True:
            if cancel is not None:
                cancel.check("confirmation")

            try:
                statuses = self.get_signature_statuses([signature])
                status = statuses[0] if statuses else None
                if status:
                    last_status = status
                    if status.get("err"):
                        logger.warning(f"Transaction {signature} failed on-chain: {status.get('err')}")
                        return status
                    if status.get("confirmationStatus") in accepted:
                        return status
                elif last_valid_block_height is not None:
                    if self.get_block_height() > last_valid_block_height:
                        logger.warning(f"Transaction {signature} was never seen on chain (blockhash expired)")
                        raise ConfirmationTimeoutError.blockhash_expired(signature, last_valid_block_height)
            except RpcError as e:
                logger.debug(f"Error checking transaction status: {e}")

            if time.monotonic() - start_time >= timeout_seconds:
                break

            if cancel is not None:
                cancel.wait(poll_interval)
            else:
                time.sleep(poll_interval)

        last = last_status.get("confirmationStatus") if last_status else None
        logger.warning(f"Transaction {signature} timeout. Last status: {last or 'never seen'}")
        raise ConfirmationTimeoutError.timed_out(signature, timeout_seconds, last)

    def close(self):
        """Close HTTP client"""
        if self._client:
            self._client.close()
            self._client = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def _classify_rpc_error_code(message: str) -> ErrorCode:
    """Timeouts and rate limits reported inside JSON-RPC errors keep their specific codes"""
    lowered = message.lower()
    if "timeout" in lowered or "timed out" in lowered:
        return ErrorCode.RPC_TIMEOUT
    if "rate limit" in lowered or "too many requests" in lowered:
        return ErrorCode.RPC_RATE_LIMITED
    return ErrorCode.RPC_INVALID_RESPONSE
"""
Test RPC Client with Mocks

Tests for RPC client behavior with mocked responses.
"""

import sys
from pathlib import Path
from unittest.mock import Mock, patch

import httpx
import pytest

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))


def _response(payload: dict, status_code: int = 200) -> Mock:
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload
    response.raise_for_status = Mock()
    return response


def _result(value) -> Mock:
    return _response({"jsonrpc": "2.0", "id": 1, "result": value})


def test_rpc_config_defaults():
    """Test RpcClientConfig default values from global config"""
    from whirlpool_client.infra.rpc import RpcClientConfig

    print("Testing RpcClientConfig defaults...")

    config = RpcClientConfig()

    assert config.timeout_seconds > 0, "Should have positive timeout"
    assert config.max_retries > 0, "Should have positive retries"
    assert config.commitment in ("processed", "confirmed", "finalized"), "Invalid commitment"

    print("  RpcClientConfig defaults: PASSED")


def test_rpc_config_override():
    """Test RpcClientConfig with overrides"""
    from whirlpool_client.infra.rpc import RpcClientConfig

    print("Testing RpcClientConfig override...")

    config = RpcClientConfig(
        timeout_seconds=60.0,
        max_retries=5,
        commitment="finalized",
    )

    assert config.timeout_seconds == 60.0, "Should use override timeout"
    assert config.max_retries == 5, "Should use override retries"
    assert config.commitment == "finalized", "Should use override commitment"

    print("  RpcClientConfig override: PASSED")


def test_rpc_client_init():
    """Test RpcClient initialization"""
    from whirlpool_client.infra.rpc import RpcClient
    from whirlpool_client.errors import ConfigurationError

    print("Testing RpcClient init...")

    client = RpcClient("https://api.devnet.solana.com")
    assert client.endpoint == "https://api.devnet.solana.com"

    client = RpcClient([
        "https://primary.example.com",
        "https://backup.example.com",
    ])
    assert client.endpoint == "https://primary.example.com"

    with pytest.raises(ConfigurationError):
        RpcClient([])
    with pytest.raises(ConfigurationError):
        RpcClient("")

    print("  RpcClient init: PASSED")


def test_rpc_call_success():
    """Test successful RPC call"""
    from whirlpool_client.infra.rpc import RpcClient

    print("Testing RPC call success...")

    mock_response = _result({"value": {"blockhash": "test_blockhash", "lastValidBlockHeight": 12345}})

    with patch.object(httpx.Client, "post", return_value=mock_response) as post:
        client = RpcClient("https://api.devnet.solana.com")
        info = client.get_latest_blockhash()

        assert info["blockhash"] == "test_blockhash"
        assert info["lastValidBlockHeight"] == 12345
        body = post.call_args.kwargs["json"]
        assert body["method"] == "getLatestBlockhash"
        assert body["jsonrpc"] == "2.0"

    print("  RPC call success: PASSED")


def test_rpc_call_error():
    """JSON-RPC errors keep the node's code and data"""
    from whirlpool_client.infra.rpc import RpcClient
    from whirlpool_client.errors import RpcError

    print("Testing RPC error handling...")

    mock_response = _response({
        "jsonrpc": "2.0",
        "id": 1,
        "error": {
            "code": -32002,
            "message": "Transaction simulation failed",
            "data": {"logs": ["Program log: slippage"]},
        },
    })

    with patch.object(httpx.Client, "post", return_value=mock_response) as post:
        client = RpcClient("https://api.devnet.solana.com")
        with pytest.raises(RpcError) as exc_info:
            client.call("sendTransaction", ["tx"])

        # Node errors are not retried
        assert post.call_count == 1

    error = exc_info.value
    assert "simulation failed" in error.message
    assert error.details["rpc_error_code"] == -32002
    assert error.details["rpc_error_data"]["logs"] == ["Program log: slippage"]

    print("  RPC error handling: PASSED")


def test_rpc_rate_limit_retry():
    """429 responses are retried, then reported as rate limited"""
    from whirlpool_client.infra.rpc import RpcClient, RpcClientConfig
    from whirlpool_client.errors import RpcError, ErrorCode

    print("Testing rate limit handling...")

    config = RpcClientConfig(max_retries=3, retry_delay_seconds=0)
    limited = _response({}, status_code=429)

    with patch("whirlpool_client.infra.rpc.time.sleep"):
        with patch.object(httpx.Client, "post", side_effect=[limited, _result(42)]):
            client = RpcClient("https://api.devnet.solana.com", config=config)
            assert client.get_block_height() == 42

        with patch.object(httpx.Client, "post", return_value=limited) as post:
            client = RpcClient("https://api.devnet.solana.com", config=config)
            with pytest.raises(RpcError) as exc_info:
                client.get_block_height()
            assert post.call_count == 3

    assert exc_info.value.code == ErrorCode.RPC_RATE_LIMITED

    print("  rate limit handling: PASSED")


def test_rpc_endpoint_fallback():
    """Connection failures rotate to the next endpoint"""
    from whirlpool_client.infra.rpc import RpcClient, RpcClientConfig

    print("Testing endpoint fallback...")

    def fake_post(url, json=None, timeout=None):
        if "primary" in url:
            raise httpx.ConnectError("connection refused")
        return _result({"context": {"slot": 1}, "value": None})

    config = RpcClientConfig(max_retries=1, retry_delay_seconds=0)
    with patch.object(httpx.Client, "post", side_effect=fake_post):
        client = RpcClient(["https://primary.example.com", "https://backup.example.com"], config=config)
        assert client.get_account_info("11111111111111111111111111111111") is None
        assert client.endpoint == "https://backup.example.com"

    print("  endpoint fallback: PASSED")


def test_send_transaction_is_not_retried():
    """sendTransaction goes out once even when the transport fails"""
    from whirlpool_client.infra.rpc import RpcClient, RpcClientConfig
    from whirlpool_client.errors import RpcError

    print("Testing single send...")

    config = RpcClientConfig(max_retries=3, retry_delay_seconds=0)
    with patch("whirlpool_client.infra.rpc.time.sleep"):
        with patch.object(httpx.Client, "post", side_effect=httpx.ReadTimeout("timed out")) as post:
            client = RpcClient(["https://primary.example.com", "https://backup.example.com"], config=config)
            with pytest.raises(RpcError):
                client.send_transaction(b"\x01\x02")
            assert post.call_count == 1

        sent = post.call_args.kwargs["json"]
        assert sent["method"] == "sendTransaction"
        assert sent["params"][1]["encoding"] == "base64"

    print("  single send: PASSED")


# ========== Confirmation ==========

def test_confirm_transaction_statuses():
    """Confirmed and failed statuses both end the wait"""
    from whirlpool_client.infra.rpc import RpcClient

    print("Testing confirmation statuses...")

    client = RpcClient("https://api.devnet.solana.com")

    confirmed = {"slot": 7, "confirmationStatus": "confirmed", "err": None}
    with patch.object(client, "get_signature_statuses", return_value=[confirmed]):
        assert client.confirm_transaction("sig", timeout_seconds=1) == confirmed

    failed = {"slot": 8, "confirmationStatus": "processed", "err": {"InstructionError": [2, {"Custom": 6000}]}}
    with patch.object(client, "get_signature_statuses", return_value=[failed]):
        assert client.confirm_transaction("sig", timeout_seconds=1)["err"] is not None

    # "processed" is not enough for a confirmed commitment
    processed = {"slot": 9, "confirmationStatus": "processed", "err": None}
    finalized = {"slot": 9, "confirmationStatus": "finalized", "err": None}
    with patch.object(client, "get_signature_statuses", side_effect=[[processed], [finalized]]):
        status = client.confirm_transaction("sig", timeout_seconds=5, poll_interval=0)
        assert status["confirmationStatus"] == "finalized"

    print("  confirmation statuses: PASSED")


def test_confirm_transaction_timeout():
    """An unseen signature times out"""
    from whirlpool_client.infra.rpc import RpcClient
    from whirlpool_client.errors import ConfirmationTimeoutError, ErrorCode

    print("Testing confirmation timeout...")

    client = RpcClient("https://api.devnet.solana.com")
    with patch.object(client, "get_signature_statuses", return_value=[None]):
        with pytest.raises(ConfirmationTimeoutError) as exc_info:
            client.confirm_transaction("sig", timeout_seconds=0)

    assert exc_info.value.code == ErrorCode.TX_CONFIRMATION_TIMEOUT
    assert exc_info.value.recoverable

    print("  confirmation timeout: PASSED")


def test_confirm_transaction_blockhash_expired():
    """Stop waiting once the chain passes lastValidBlockHeight"""
    from whirlpool_client.infra.rpc import RpcClient
    from whirlpool_client.errors import ConfirmationTimeoutError, ErrorCode

    print("Testing blockhash expiry...")

    client = RpcClient("https://api.devnet.solana.com")
    with patch.object(client, "get_signature_statuses", return_value=[None]), \
            patch.object(client, "get_block_height", return_value=101):
        with pytest.raises(ConfirmationTimeoutError) as exc_info:
            client.confirm_transaction("sig", timeout_seconds=30, last_valid_block_height=100)

    assert exc_info.value.code == ErrorCode.TX_BLOCKHASH_EXPIRED

    print("  blockhash expiry: PASSED")


def test_confirm_transaction_cancelled():
    """A cancelled token ends the poll"""
    from whirlpool_client.infra.rpc import RpcClient
    from whirlpool_client.infra import CancelToken
    from whirlpool_client.errors import OperationCancelled

    print("Testing cancelled confirmation...")

    client = RpcClient("https://api.devnet.solana.com")
    token = CancelToken()
    token.cancel()

    with patch.object(client, "get_signature_statuses") as statuses:
        with pytest.raises(OperationCancelled):
            client.confirm_transaction("sig", timeout_seconds=30, cancel=token)
        statuses.assert_not_called()

    print("  cancelled confirmation: PASSED")


def test_rpc_context_manager():
    """Closing drops the HTTP client"""
    from whirlpool_client.infra.rpc import RpcClient

    print("Testing context manager...")

    with RpcClient("https://api.devnet.solana.com") as client:
        client._get_client()
        assert client._client is not None
    assert client._client is None

    print("  context manager: PASSED")


if __name__ == "__main__":
    print("=" * 60)
    print("RPC Client Mock Tests")
    print("=" * 60)

    test_rpc_config_defaults()
    test_rpc_config_override()
    test_rpc_client_init()
    test_rpc_call_success()
    test_rpc_call_error()
    test_rpc_rate_limit_retry()
    test_rpc_endpoint_fallback()
    test_send_transaction_is_not_retried()
    test_confirm_transaction_statuses()
    test_confirm_transaction_timeout()
    test_confirm_transaction_blockhash_expired()
    test_confirm_transaction_cancelled()
    test_rpc_context_manager()

    print()
    print("=" * 60)
    print("All RPC mock tests passed!")
    print("=" * 60)

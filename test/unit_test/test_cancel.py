"""
Test cooperative cancellation
"""

import sys
import threading
import time
from pathlib import Path

import pytest

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))


def test_cancel_token():
    """cancel() flips the flag and check() raises"""
    from whirlpool_client.infra import CancelToken, check_cancelled
    from whirlpool_client.errors import OperationCancelled, ErrorCode

    print("Testing CancelToken...")

    token = CancelToken()
    assert not token.cancelled
    token.check("quote")
    check_cancelled(None, "quote")

    token.cancel()
    assert token.cancelled
    with pytest.raises(OperationCancelled) as exc_info:
        check_cancelled(token, "quote")
    assert exc_info.value.code == ErrorCode.OPERATION_CANCELLED
    assert "quote" in exc_info.value.message

    print("  CancelToken: PASSED")


def test_cancel_token_deadline():
    """A token cancels itself once its deadline passes"""
    from whirlpool_client.infra import CancelToken

    print("Testing CancelToken deadline...")

    token = CancelToken(timeout_seconds=0.05)
    assert not token.cancelled
    time.sleep(0.1)
    assert token.cancelled

    assert CancelToken(timeout_seconds=0).cancelled

    print("  CancelToken deadline: PASSED")


def test_cancel_token_wait_wakes_early():
    """wait() returns as soon as another thread cancels"""
    from whirlpool_client.infra import CancelToken

    print("Testing CancelToken wait...")

    token = CancelToken()
    timer = threading.Timer(0.05, token.cancel)
    timer.start()

    started = time.monotonic()
    assert token.wait(5.0) is True
    assert time.monotonic() - started < 2.0
    timer.join()

    # Uncancelled wait just sleeps
    assert CancelToken().wait(0.01) is False

    print("  CancelToken wait: PASSED")

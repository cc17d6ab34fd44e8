"""
Test Whirlpool account parsing
"""

import base64
import sys
from pathlib import Path

import pytest

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))


def _account(data: bytes, owner: str) -> dict:
    return {
        "data": [base64.b64encode(data).decode("ascii"), "base64"],
        "owner": owner,
        "lamports": 1,
        "executable": False,
    }


def test_parse_whirlpool_layout(pool_factory, mints):
    """Fields written at their layout offsets are read back"""
    from whirlpool_client.protocols.whirlpool import parse_whirlpool, WHIRLPOOL_ACCOUNT_SIZE
    from whirlpool_client.protocols.whirlpool.pool_parser import encode_whirlpool

    x, y, _ = mints

    print("Testing Whirlpool layout...")

    pool = pool_factory(
        x, y,
        liquidity=123_456_789_012_345,
        sqrt_price=(1 << 64) * 3 // 2,
        fee_rate=500,
        tick_current_index=-12345,
        tick_spacing=8,
    )
    data = encode_whirlpool(pool)
    assert len(data) == WHIRLPOOL_ACCOUNT_SIZE

    parsed = parse_whirlpool(pool.address, data)
    assert parsed.config == pool.config
    assert parsed.tick_spacing == 8
    assert parsed.fee_rate == 500
    assert parsed.protocol_fee_rate == pool.protocol_fee_rate
    assert parsed.liquidity == 123_456_789_012_345
    assert parsed.sqrt_price == (1 << 64) * 3 // 2
    # i32 keeps its sign
    assert parsed.tick_current_index == -12345
    assert parsed.token_mint_a == x
    assert parsed.token_mint_b == y
    assert parsed.token_vault_a == pool.token_vault_a
    assert parsed.token_vault_b == pool.token_vault_b
    assert parsed.metadata["bump"] == 255

    print("  Whirlpool layout: PASSED")


def test_parse_whirlpool_rejects_foreign_data(pool_factory, mints):
    """Short data or a wrong discriminator is not a Whirlpool"""
    from whirlpool_client.protocols.whirlpool import parse_whirlpool
    from whirlpool_client.protocols.whirlpool.pool_parser import encode_whirlpool
    from whirlpool_client.errors import PoolNotFoundError, ErrorCode

    x, y, _ = mints

    print("Testing foreign account data...")

    data = encode_whirlpool(pool_factory(x, y))

    with pytest.raises(PoolNotFoundError) as exc_info:
        parse_whirlpool("Pool111", data[:300])
    assert exc_info.value.code == ErrorCode.POOL_INVALID_STATE

    tampered = b"\x00" * 8 + data[8:]
    with pytest.raises(PoolNotFoundError) as exc_info:
        parse_whirlpool("Pool111", tampered)
    assert "discriminator" in exc_info.value.message

    print("  foreign account data: PASSED")


def test_parse_whirlpool_account(pool_factory, mints):
    """RPC account results are checked for existence and owner"""
    from whirlpool_client.protocols.whirlpool import parse_whirlpool_account, WHIRLPOOL_PROGRAM_ID
    from whirlpool_client.protocols.whirlpool.pool_parser import encode_whirlpool
    from whirlpool_client.errors import PoolNotFoundError, ErrorCode

    x, y, _ = mints

    print("Testing RPC account parsing...")

    pool = pool_factory(x, y)
    data = encode_whirlpool(pool)

    parsed = parse_whirlpool_account(pool.address, _account(data, WHIRLPOOL_PROGRAM_ID))
    assert parsed.address == pool.address
    assert parsed.program_id == WHIRLPOOL_PROGRAM_ID

    with pytest.raises(PoolNotFoundError) as exc_info:
        parse_whirlpool_account(pool.address, None)
    assert exc_info.value.code == ErrorCode.POOL_NOT_FOUND

    with pytest.raises(PoolNotFoundError) as exc_info:
        parse_whirlpool_account(pool.address, _account(data, "11111111111111111111111111111111"))
    assert exc_info.value.code == ErrorCode.POOL_INVALID_STATE

    print("  RPC account parsing: PASSED")


def test_decode_account_data():
    """Both the [data, encoding] pair and a bare string decode"""
    from whirlpool_client.protocols.whirlpool import decode_account_data

    print("Testing account data decoding...")

    encoded = base64.b64encode(b"whirlpool").decode("ascii")
    assert decode_account_data({"data": [encoded, "base64"]}) == b"whirlpool"
    assert decode_account_data({"data": encoded}) == b"whirlpool"
    assert decode_account_data(None) is None
    assert decode_account_data({"data": {"parsed": {}}}) is None

    print("  account data decoding: PASSED")

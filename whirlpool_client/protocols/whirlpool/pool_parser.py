"""
Whirlpool Account Parser

Parses Whirlpool account data fetched from chain.
"""

import base64
import struct
from typing import Any, Dict, Optional

from solders.pubkey import Pubkey

from ...types import Whirlpool
from ...errors import PoolNotFoundError
from .constants import (
    WHIRLPOOL_PROGRAM_ID,
    WHIRLPOOL_DISCRIMINATOR,
    WHIRLPOOL_ACCOUNT_SIZE,
)


def decode_account_data(account: Optional[Dict[str, Any]]) -> Optional[bytes]:
    """
    Raw bytes of an RPC account result

    Accepts the base64 ["<data>", "base64"] pair or a bare base64 string.
    """
    if not account:
        return None
    data = account.get("data")
    if isinstance(data, list) and len(data) > 0:
        return base64.b64decode(data[0])
    if isinstance(data, str):
        return base64.b64decode(data)
    return None


def _pubkey_from_bytes(data: bytes) -> str:
    return str(Pubkey.from_bytes(data))


def parse_whirlpool(address: str, account_data: bytes, program_id: str = WHIRLPOOL_PROGRAM_ID) -> Whirlpool:
    """
    Parse Whirlpool account

    Layout:
    - blob(8): discriminator
    - publicKey(32): whirlpools_config (offset 8)
    - u8: bump (offset 40)
    - u16: tick_spacing (offset 41)
    - [u8; 2]: tick_spacing_seed (offset 43)
    - u16: fee_rate (offset 45) - hundredths of a basis point
    - u16: protocol_fee_rate (offset 47) - basis points
    - u128: liquidity (offset 49)
    - u128: sqrt_price (offset 65) - Q64.64
    - i32: tick_current_index (offset 81)
    - u64: protocol_fee_owed_a (offset 85)
    - u64: protocol_fee_owed_b (offset 93)
    - publicKey(32): token_mint_a (offset 101)
    - publicKey(32): token_vault_a (offset 133)
    - u128: fee_growth_global_a (offset 165)
    - publicKey(32): token_mint_b (offset 181)
    - publicKey(32): token_vault_b (offset 213)
    - u128: fee_growth_global_b (offset 245)
    - u64: reward_last_updated_timestamp (offset 261)
    - reward_infos (offset 269, 3 x 128 bytes)

    Raises:
        PoolNotFoundError: Data is not a Whirlpool account
    """
    if len(account_data) < WHIRLPOOL_ACCOUNT_SIZE:
        raise PoolNotFoundError.invalid_state(
            address, f"account size {len(account_data)} < {WHIRLPOOL_ACCOUNT_SIZE}"
        )
    if account_data[:8] != WHIRLPOOL_DISCRIMINATOR:
        raise PoolNotFoundError.invalid_state(address, "account discriminator is not Whirlpool")

    tick_spacing = struct.unpack_from("<H", account_data, 41)[0]
    fee_rate = struct.unpack_from("<H", account_data, 45)[0]
    protocol_fee_rate = struct.unpack_from("<H", account_data, 47)[0]
    liquidity = int.from_bytes(account_data[49:65], "little")
    sqrt_price = int.from_bytes(account_data[65:81], "little")
    tick_current_index = struct.unpack_from("<i", account_data, 81)[0]

    return Whirlpool(
        address=address,
        program_id=program_id,
        config=_pubkey_from_bytes(account_data[8:40]),
        tick_spacing=tick_spacing,
        fee_rate=fee_rate,
        protocol_fee_rate=protocol_fee_rate,
        liquidity=liquidity,
        sqrt_price=sqrt_price,
        tick_current_index=tick_current_index,
        token_mint_a=_pubkey_from_bytes(account_data[101:133]),
        token_vault_a=_pubkey_from_bytes(account_data[133:165]),
        token_mint_b=_pubkey_from_bytes(account_data[181:213]),
        token_vault_b=_pubkey_from_bytes(account_data[213:245]),
        metadata={
            "bump": account_data[40],
            "protocol_fee_owed_a": struct.unpack_from("<Q", account_data, 85)[0],
            "protocol_fee_owed_b": struct.unpack_from("<Q", account_data, 93)[0],
        },
    )


def parse_whirlpool_account(
    address: str,
    account: Optional[Dict[str, Any]],
    program_id: str = WHIRLPOOL_PROGRAM_ID,
) -> Whirlpool:
    """
    Parse an RPC account result, checking existence and owner first

    Raises:
        PoolNotFoundError: Missing account, foreign owner or bad layout
    """
    if not account:
        raise PoolNotFoundError.not_found(address)

    owner = account.get("owner")
    if owner and owner != program_id:
        raise PoolNotFoundError.invalid_state(address, f"account owned by {owner}, not {program_id}")

    data = decode_account_data(account)
    if data is None:
        raise PoolNotFoundError.invalid_state(address, "account data is not base64 encoded")

    return parse_whirlpool(address, data, program_id)


def encode_whirlpool(pool: Whirlpool) -> bytes:
    """
    Serialize the fields parse_whirlpool reads back into account layout

    Fields this client does not track (fee growth, rewards) are zeroed.
    """
    data = bytearray(WHIRLPOOL_ACCOUNT_SIZE)
    data[0:8] = WHIRLPOOL_DISCRIMINATOR
    data[8:40] = bytes(Pubkey.from_string(pool.config))
    data[40] = pool.metadata.get("bump", 255)
    struct.pack_into("<H", data, 41, pool.tick_spacing)
    struct.pack_into("<H", data, 43, pool.tick_spacing)
    struct.pack_into("<H", data, 45, pool.fee_rate)
    struct.pack_into("<H", data, 47, pool.protocol_fee_rate)
    data[49:65] = pool.liquidity.to_bytes(16, "little")
    data[65:81] = pool.sqrt_price.to_bytes(16, "little")
    struct.pack_into("<i", data, 81, pool.tick_current_index)
    data[101:133] = bytes(Pubkey.from_string(pool.token_mint_a))
    data[133:165] = bytes(Pubkey.from_string(pool.token_vault_a))
    data[181:213] = bytes(Pubkey.from_string(pool.token_mint_b))
    data[213:245] = bytes(Pubkey.from_string(pool.token_vault_b))
    return bytes(data)

"""
Whirlpool PDA derivation

Pool, tick array, oracle and associated token account addresses. All helpers
take and return base58 strings.
"""

import struct
from typing import List, Optional

from solders.pubkey import Pubkey

from .constants import (
    WHIRLPOOL_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
    ASSOCIATED_TOKEN_PROGRAM_ID,
    TICK_ARRAY_SIZE,
    MIN_TICK,
    MAX_TICK,
)


def _pk(address) -> Pubkey:
    return address if isinstance(address, Pubkey) else Pubkey.from_string(address)


def derive_whirlpool_address(
    program_id: str,
    config_id: str,
    mint_a: str,
    mint_b: str,
    tick_spacing: int,
) -> str:
    """
    Derive Whirlpool PDA

    Seeds: ["whirlpool", config, mint_a, mint_b, u16_le(tick_spacing)]
    """
    seeds = [
        b"whirlpool",
        bytes(_pk(config_id)),
        bytes(_pk(mint_a)),
        bytes(_pk(mint_b)),
        struct.pack("<H", tick_spacing),
    ]
    address, _ = Pubkey.find_program_address(seeds, _pk(program_id))
    return str(address)


def get_tick_array_start_index(tick: int, tick_spacing: int) -> int:
    """Start tick of the array containing `tick` (floor aligned, also for negative ticks)"""
    ticks_in_array = TICK_ARRAY_SIZE * tick_spacing
    return (tick // ticks_in_array) * ticks_in_array


def get_tick_array_start_indexes(
    tick_current_index: int,
    tick_spacing: int,
    a_to_b: bool,
    count: int = 3,
) -> List[int]:
    """
    Start indexes of the tick arrays a swap traverses, in traversal order

    a_to_b moves the price down (decreasing ticks); b_to_a moves it up. For
    b_to_a the current tick is shifted by one spacing so a price sitting on an
    array boundary starts in the next array. Indexes past the tick bounds are
    dropped and the list is padded with its last entry.
    """
    ticks_in_array = TICK_ARRAY_SIZE * tick_spacing
    shift = 0 if a_to_b else tick_spacing
    start = get_tick_array_start_index(tick_current_index + shift, tick_spacing)
    step = -ticks_in_array if a_to_b else ticks_in_array

    indexes = []
    for i in range(count):
        index = start + step * i
        if index + ticks_in_array <= MIN_TICK or index > MAX_TICK:
            break
        indexes.append(index)

    if not indexes:
        indexes.append(start)
    while len(indexes) < count:
        indexes.append(indexes[-1])
    return indexes


def derive_tick_array_address(
    whirlpool: str,
    start_tick_index: int,
    program_id: str = WHIRLPOOL_PROGRAM_ID,
) -> str:
    """
    Derive tick array PDA

    Seeds: ["tick_array", whirlpool, str(start_tick_index)]
    """
    seeds = [
        b"tick_array",
        bytes(_pk(whirlpool)),
        str(start_tick_index).encode(),
    ]
    address, _ = Pubkey.find_program_address(seeds, _pk(program_id))
    return str(address)


def derive_oracle_address(
    whirlpool: str,
    program_id: str = WHIRLPOOL_PROGRAM_ID,
) -> str:
    """Derive oracle PDA (seeds: ["oracle", whirlpool])"""
    address, _ = Pubkey.find_program_address([b"oracle", bytes(_pk(whirlpool))], _pk(program_id))
    return str(address)


def get_associated_token_address(
    owner: str,
    mint: str,
    token_program: Optional[str] = None,
) -> str:
    """
    Get associated token account address

    Seeds: [owner, token_program, mint] under the associated token program
    """
    seeds = [
        bytes(_pk(owner)),
        bytes(_pk(token_program or TOKEN_PROGRAM_ID)),
        bytes(_pk(mint)),
    ]
    address, _ = Pubkey.find_program_address(seeds, _pk(ASSOCIATED_TOKEN_PROGRAM_ID))
    return str(address)

"""
Test Whirlpool PDA derivation

Tick array start indexes, tick array and oracle PDAs, ATAs and pool addresses.
"""

import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))


def test_whirlpool_address_matches_devnet_pool():
    """devSAMO/devUSDC with tick spacing 64 derives the known devnet pool"""
    from whirlpool_client.protocols.whirlpool import derive_whirlpool_address, WHIRLPOOL_PROGRAM_ID
    from whirlpool_client.types.devnet_tokens import DEV_SAMO, DEV_USDC, DEVNET_WHIRLPOOLS_CONFIG, DEVNET_POOLS

    print("Testing whirlpool address derivation...")

    address = derive_whirlpool_address(
        WHIRLPOOL_PROGRAM_ID, DEVNET_WHIRLPOOLS_CONFIG, DEV_SAMO.mint, DEV_USDC.mint, 64
    )
    assert address == DEVNET_POOLS["devSAMO/devUSDC"]

    print("  whirlpool address derivation: PASSED")


def test_whirlpool_address_depends_on_every_part():
    """Changing any identity part changes the address"""
    from whirlpool_client.protocols.whirlpool import derive_whirlpool_address, WHIRLPOOL_PROGRAM_ID
    from whirlpool_client.types.devnet_tokens import DEV_SAMO, DEV_USDC, DEV_TMAC, DEVNET_WHIRLPOOLS_CONFIG

    print("Testing whirlpool address inputs...")

    base = derive_whirlpool_address(WHIRLPOOL_PROGRAM_ID, DEVNET_WHIRLPOOLS_CONFIG, DEV_SAMO.mint, DEV_USDC.mint, 64)
    assert base == derive_whirlpool_address(
        WHIRLPOOL_PROGRAM_ID, DEVNET_WHIRLPOOLS_CONFIG, DEV_SAMO.mint, DEV_USDC.mint, 64
    )
    variants = [
        derive_whirlpool_address(WHIRLPOOL_PROGRAM_ID, DEVNET_WHIRLPOOLS_CONFIG, DEV_USDC.mint, DEV_SAMO.mint, 64),
        derive_whirlpool_address(WHIRLPOOL_PROGRAM_ID, DEVNET_WHIRLPOOLS_CONFIG, DEV_TMAC.mint, DEV_USDC.mint, 64),
        derive_whirlpool_address(WHIRLPOOL_PROGRAM_ID, DEVNET_WHIRLPOOLS_CONFIG, DEV_SAMO.mint, DEV_USDC.mint, 8),
    ]
    assert base not in variants
    assert len(set(variants)) == len(variants)

    print("  whirlpool address inputs: PASSED")


def test_tick_array_start_index():
    """Start indexes are floor aligned to 88 * tick_spacing"""
    from whirlpool_client.protocols.whirlpool import get_tick_array_start_index

    print("Testing tick array start index...")

    # 88 * 64 = 5632 ticks per array
    assert get_tick_array_start_index(0, 64) == 0
    assert get_tick_array_start_index(5631, 64) == 0
    assert get_tick_array_start_index(5632, 64) == 5632
    assert get_tick_array_start_index(-1, 64) == -5632
    assert get_tick_array_start_index(-5632, 64) == -5632
    assert get_tick_array_start_index(-5633, 64) == -11264
    # 88 * 1 = 88
    assert get_tick_array_start_index(100, 1) == 88

    print("  tick array start index: PASSED")


def test_tick_array_start_indexes_direction():
    """a_to_b walks down, b_to_a walks up (shifted by one spacing)"""
    from whirlpool_client.protocols.whirlpool import get_tick_array_start_indexes

    print("Testing tick array traversal...")

    assert get_tick_array_start_indexes(0, 64, a_to_b=True) == [0, -5632, -11264]
    assert get_tick_array_start_indexes(0, 64, a_to_b=False) == [0, 5632, 11264]

    # One spacing below a boundary: b_to_a starts in the next array
    assert get_tick_array_start_indexes(5568, 64, a_to_b=False) == [5632, 11264, 16896]
    assert get_tick_array_start_indexes(5568, 64, a_to_b=True) == [0, -5632, -11264]

    print("  tick array traversal: PASSED")


def test_tick_array_start_indexes_at_bounds():
    """Arrays past the tick bounds are dropped and the list padded"""
    from whirlpool_client.protocols.whirlpool import get_tick_array_start_indexes

    print("Testing tick array bounds...")

    upper = get_tick_array_start_indexes(443600, 64, a_to_b=False)
    assert upper == [439296, 439296, 439296]

    lower = get_tick_array_start_indexes(-443636, 64, a_to_b=True)
    assert lower == [-444928, -444928, -444928]

    print("  tick array bounds: PASSED")


def test_tick_array_and_oracle_addresses(address_factory):
    """Tick array PDAs are distinct per start index; oracle PDA per pool"""
    from whirlpool_client.protocols.whirlpool import derive_tick_array_address, derive_oracle_address

    print("Testing tick array and oracle PDAs...")

    pool = address_factory()
    other_pool = address_factory()

    a0 = derive_tick_array_address(pool, 0)
    a1 = derive_tick_array_address(pool, -5632)
    assert a0 != a1
    assert a0 == derive_tick_array_address(pool, 0)
    assert a0 != derive_tick_array_address(other_pool, 0)

    oracle = derive_oracle_address(pool)
    assert oracle == derive_oracle_address(pool)
    assert oracle != derive_oracle_address(other_pool)

    print("  tick array and oracle PDAs: PASSED")


def test_associated_token_address(address_factory):
    """ATA depends on owner, mint and token program"""
    from whirlpool_client.protocols.whirlpool import (
        get_associated_token_address,
        TOKEN_PROGRAM_ID,
        TOKEN_2022_PROGRAM_ID,
    )

    print("Testing associated token address...")

    owner = address_factory()
    mint = address_factory()

    ata = get_associated_token_address(owner, mint)
    assert ata == get_associated_token_address(owner, mint, TOKEN_PROGRAM_ID)
    assert ata != get_associated_token_address(owner, mint, TOKEN_2022_PROGRAM_ID)
    assert ata != get_associated_token_address(address_factory(), mint)

    print("  associated token address: PASSED")

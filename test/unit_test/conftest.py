"""
Shared fixtures for offline unit tests

Pools are built in memory; nothing here touches the network.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))


def new_address() -> str:
    from solders.pubkey import Pubkey
    return str(Pubkey.new_unique())


@pytest.fixture
def address_factory():
    """Fresh base58 addresses"""
    return new_address


@pytest.fixture
def pool_factory():
    """
    Build an in-memory Whirlpool

    Defaults: price 1.0 (sqrt_price = 2^64), liquidity 10^12, 0.3% fee, tick 0.
    """
    from whirlpool_client.types import Whirlpool
    from whirlpool_client.protocols.whirlpool.constants import WHIRLPOOL_PROGRAM_ID, Q64

    def make_pool(
        mint_a: str,
        mint_b: str,
        liquidity: int = 10 ** 12,
        sqrt_price: int = Q64,
        fee_rate: int = 3000,
        tick_current_index: int = 0,
        tick_spacing: int = 64,
        address: str = None,
        config: str = None,
    ) -> Whirlpool:
        return Whirlpool(
            address=address or new_address(),
            program_id=WHIRLPOOL_PROGRAM_ID,
            config=config or new_address(),
            tick_spacing=tick_spacing,
            fee_rate=fee_rate,
            protocol_fee_rate=300,
            liquidity=liquidity,
            sqrt_price=sqrt_price,
            tick_current_index=tick_current_index,
            token_mint_a=mint_a,
            token_vault_a=new_address(),
            token_mint_b=mint_b,
            token_vault_b=new_address(),
        )

    return make_pool


@pytest.fixture
def mints():
    """Three unrelated mints X, Y, Z"""
    return new_address(), new_address(), new_address()


@pytest.fixture
def local_signer():
    from solders.keypair import Keypair
    from whirlpool_client.infra import LocalSigner
    return LocalSigner(Keypair())


@pytest.fixture
def all_accounts_exist():
    """accounts_exist side effect reporting every account as initialized"""
    def accounts_exist(addresses, use_cache=False, cancel=None):
        return {address: True for address in addresses}
    return accounts_exist

"""
Shared configuration and fixtures for module integration tests.

WARNING: These tests execute real devnet transactions and spend devnet tokens!

Environment Variables:
    SOLANA_RPC_URL: RPC endpoint URL (required, or ANCHOR_PROVIDER_URL)
    SOLANA_PRIVATE_KEY: Base58 encoded private key (required if no keypair path)
    SOLANA_KEYPAIR_PATH: Path to keypair JSON file (alternative to private key, or ANCHOR_WALLET)
    WHIRLPOOL_LOOKUP_TABLES: Optional comma separated lookup tables for routed swaps
"""

import os
import sys
from pathlib import Path

import pytest
from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

# Load .env file
env_path = Path(__file__).parent.parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)


def get_env_or_fail(key: str, fallback_key: str = None) -> str:
    """Get required environment variable or raise error"""
    value = os.getenv(key) or (os.getenv(fallback_key) if fallback_key else None)
    if not value:
        raise EnvironmentError(
            f"Missing required environment variable: {key}\n"
            f"Please set {key} in your .env file or environment."
        )
    return value


def get_rpc_url() -> str:
    """Get Solana RPC URL from environment"""
    return get_env_or_fail("SOLANA_RPC_URL", fallback_key="ANCHOR_PROVIDER_URL")


def get_keypair():
    """
    Get Keypair from environment.

    Tries in order:
    1. SOLANA_PRIVATE_KEY - base58 encoded private key
    2. SOLANA_KEYPAIR_PATH (or ANCHOR_WALLET) - path to keypair JSON file
    """
    from whirlpool_client.infra import LocalSigner

    private_key = os.getenv("SOLANA_PRIVATE_KEY")
    if private_key:
        return LocalSigner.from_base58(private_key).keypair

    keypair_path = os.getenv("SOLANA_KEYPAIR_PATH") or os.getenv("ANCHOR_WALLET")
    if keypair_path:
        path = Path(keypair_path).expanduser()
        if not path.exists():
            raise FileNotFoundError(f"Keypair file not found: {keypair_path}")
        return LocalSigner.from_file(str(path)).keypair

    raise EnvironmentError(
        "No wallet configured. Set either:\n"
        "  SOLANA_PRIVATE_KEY - base58 encoded private key\n"
        "  SOLANA_KEYPAIR_PATH - path to keypair JSON file"
    )


def create_client():
    """Create WhirlpoolClient with live RPC and real wallet"""
    from whirlpool_client import WhirlpoolClient

    return WhirlpoolClient(rpc_url=get_rpc_url(), keypair=get_keypair())


def skip_if_no_config():
    """Check if required config is available, return skip message if not"""
    try:
        get_rpc_url()
        get_keypair()
        return None
    except (EnvironmentError, FileNotFoundError) as e:
        return str(e)


def get_token_balance(client, token):
    """UI balance of the wallet's ATA for token (0 when the ATA does not exist)"""
    from decimal import Decimal
    from whirlpool_client.protocols.whirlpool import get_associated_token_address

    ata = get_associated_token_address(client.pubkey, token.mint)
    if not client.rpc.get_account_info(ata):
        return Decimal(0)
    result = client.rpc.call("getTokenAccountBalance", [ata, {"commitment": "confirmed"}])
    if not result:
        return Decimal(0)
    return token.ui_amount(int(result["value"]["amount"]))


# Pytest fixtures
@pytest.fixture(scope="module")
def client():
    """Create WhirlpoolClient fixture for tests"""
    skip_msg = skip_if_no_config()
    if skip_msg:
        pytest.skip(skip_msg)
    client = create_client()
    yield client
    client.close()

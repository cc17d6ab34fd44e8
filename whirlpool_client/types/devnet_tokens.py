"""
Devnet token and pool registry

Tokens of the Orca devnet test ecosystem:
https://everlastingsong.github.io/nebula/
"""

from typing import Dict

from .common import Token


DEV_USDC = Token(mint="BRjpCHtyQLNCo8gqRUr8jtdAj5AjPYQaoqbvcZiHok1k", decimals=6, symbol="devUSDC")
DEV_SAMO = Token(mint="Jd4M8bfJG3sAkd82RsGWyEXoaBXQP7njFzBwEaCTuDa", decimals=9, symbol="devSAMO")
DEV_TMAC = Token(mint="Afn8YB1p4NsoZeS5XJBZ18LTfEy5NFPwN46wapZcBQr6", decimals=6, symbol="devTMAC")

DEVNET_TOKENS: Dict[str, Token] = {
    token.symbol: token for token in (DEV_USDC, DEV_SAMO, DEV_TMAC)
}

# WhirlpoolsConfig of the devnet ecosystem
DEVNET_WHIRLPOOLS_CONFIG = "FcrweFY1G9HJAHG5inkGB6pKg1HZ6x9UC2WioAfWrGkR"

# Pools a devSAMO -> devTMAC route is expected to traverse
DEVNET_POOLS: Dict[str, str] = {
    "devSAMO/devUSDC": "EgxU92G34jw6QDG9RuTX9StFg1PmHuDqkRKAE5kVEiZ4",
    "devTMAC/devUSDC": "H3xhLrSEyDFm6jjG42QezbvhSxF5YHW75VdGUnqeEg5y",
}


def get_token(symbol: str) -> Token:
    """Look up a devnet token by symbol"""
    try:
        return DEVNET_TOKENS[symbol]
    except KeyError:
        raise KeyError(f"Unknown devnet token: {symbol}. Known: {', '.join(DEVNET_TOKENS)}") from None


def get_token_by_mint(mint: str) -> Token:
    """Look up a devnet token by mint"""
    for token in DEVNET_TOKENS.values():
        if token.mint == mint:
            return token
    raise KeyError(f"Unknown devnet mint: {mint}")

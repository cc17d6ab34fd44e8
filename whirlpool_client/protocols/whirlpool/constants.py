"""
Orca Whirlpool constants
"""

import hashlib


def anchor_discriminator(namespace: str, name: str) -> bytes:
    """First 8 bytes of sha256("<namespace>:<name>"), as Anchor derives them"""
    return hashlib.sha256(f"{namespace}:{name}".encode()).digest()[:8]


# Program IDs
WHIRLPOOL_PROGRAM_ID = "whirLbMiicVdio4qvUfM5KAg6Ct8VwpYzGff3uctyCc"
TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
TOKEN_2022_PROGRAM_ID = "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb"
ASSOCIATED_TOKEN_PROGRAM_ID = "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL"
SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"
ADDRESS_LOOKUP_TABLE_PROGRAM_ID = "AddressLookupTab1e1111111111111111111111111"

# Account discriminators
WHIRLPOOL_DISCRIMINATOR = anchor_discriminator("account", "Whirlpool")
TICK_ARRAY_DISCRIMINATOR = anchor_discriminator("account", "TickArray")

# Instruction discriminators
SWAP_DISCRIMINATOR = anchor_discriminator("global", "swap")
TWO_HOP_SWAP_DISCRIMINATOR = anchor_discriminator("global", "two_hop_swap")

# Account sizes
WHIRLPOOL_ACCOUNT_SIZE = 653
# Offset of the whirlpools_config pubkey (after the discriminator)
WHIRLPOOL_CONFIG_OFFSET = 8

# Ticks
TICK_ARRAY_SIZE = 88
MIN_TICK = -443636
MAX_TICK = 443636

# Q64.64 sqrt price bounds enforced by the program
MIN_SQRT_PRICE = 4295048016
MAX_SQRT_PRICE = 79226673515401279992447579055

Q64 = 1 << 64
U64_MAX = (1 << 64) - 1
U128_MAX = (1 << 128) - 1

# fee_rate is expressed in hundredths of a basis point
FEE_RATE_DENOMINATOR = 1_000_000

# Address lookup table account header size
LOOKUP_TABLE_META_SIZE = 56

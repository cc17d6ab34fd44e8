"""
Pool type definitions
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class PoolIdentity:
    """
    Five-part key that addresses a Whirlpool

    Identical tuples always derive the same on-chain address.

    Attributes:
        program_id: Whirlpool program ID
        config_id: WhirlpoolsConfig account
        mint_a: First token mint (the pool's token A)
        mint_b: Second token mint (the pool's token B)
        tick_spacing: Pool tick spacing
    """
    program_id: str
    config_id: str
    mint_a: str
    mint_b: str
    tick_spacing: int

    @property
    def address(self) -> str:
        """Derived pool address (base58)"""
        from ..protocols.whirlpool.pda import derive_whirlpool_address
        return derive_whirlpool_address(
            self.program_id, self.config_id, self.mint_a, self.mint_b, self.tick_spacing
        )

    def __str__(self) -> str:
        return f"PoolIdentity({self.mint_a[:6]}/{self.mint_b[:6]}, ts={self.tick_spacing})"


@dataclass
class Whirlpool:
    """
    Whirlpool account state

    Attributes:
        address: Pool address (base58)
        program_id: Owning program
        config: WhirlpoolsConfig the pool belongs to
        tick_spacing: Tick spacing
        fee_rate: Fee rate in hundredths of a basis point (3000 = 0.3%)
        protocol_fee_rate: Protocol share of fees in basis points
        liquidity: Current in-range liquidity
        sqrt_price: Current sqrt price as Q64.64
        tick_current_index: Current tick
        token_mint_a / token_vault_a: Token A mint and pool vault
        token_mint_b / token_vault_b: Token B mint and pool vault
    """
    address: str
    program_id: str
    config: str
    tick_spacing: int
    fee_rate: int
    protocol_fee_rate: int
    liquidity: int
    sqrt_price: int
    tick_current_index: int
    token_mint_a: str
    token_vault_a: str
    token_mint_b: str
    token_vault_b: str
    metadata: dict = field(default_factory=dict)

    def __repr__(self) -> str:
        return f"Whirlpool({self.address[:8]}..., liquidity={self.liquidity})"

    @property
    def has_liquidity(self) -> bool:
        return self.liquidity > 0

    @property
    def fee_rate_decimal(self) -> Decimal:
        """Fee rate as a ratio (0.003 for 0.3%)"""
        return Decimal(self.fee_rate) / Decimal(1_000_000)

    def has_mint(self, mint: str) -> bool:
        return mint in (self.token_mint_a, self.token_mint_b)

    def other_mint(self, mint: str) -> Optional[str]:
        """Mint on the other side of the pool, None if mint is not in the pool"""
        if mint == self.token_mint_a:
            return self.token_mint_b
        if mint == self.token_mint_b:
            return self.token_mint_a
        return None

    def price(self, decimals_a: int, decimals_b: int) -> Decimal:
        """Price of token A in terms of token B"""
        sqrt_price = Decimal(self.sqrt_price) / Decimal(2 ** 64)
        return sqrt_price * sqrt_price * Decimal(10) ** (decimals_a - decimals_b)

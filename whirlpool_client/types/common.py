"""
Common type definitions
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_DOWN
from typing import Union

from ..errors import ConfigurationError


@dataclass(frozen=True)
class Token:
    """
    Token descriptor

    Attributes:
        mint: Token mint address (base58)
        decimals: Number of decimal places
        symbol: Token symbol (e.g., "devUSDC"), display only
    """
    mint: str
    decimals: int
    symbol: str = ""

    def __str__(self) -> str:
        return self.symbol or self.mint

    def __repr__(self) -> str:
        return f"Token({self.symbol or '?'}, {self.mint[:8]}...)"

    def ui_amount(self, raw_amount: int) -> Decimal:
        """
        Convert raw amount to UI amount with full precision

        Args:
            raw_amount: Raw token amount (smallest units)

        Returns:
            UI amount as Decimal for precision
        """
        return Decimal(raw_amount) / Decimal(10 ** self.decimals)

    def raw_amount(self, ui_amount: Union[Decimal, float, int, str]) -> int:
        """
        Convert UI amount to raw amount (truncating extra precision)

        Args:
            ui_amount: UI amount (can be Decimal, float, int, or str)

        Returns:
            Raw token amount (smallest units)
        """
        if not isinstance(ui_amount, Decimal):
            ui_amount = Decimal(str(ui_amount))
        scaled = ui_amount * Decimal(10 ** self.decimals)
        return int(scaled.to_integral_value(rounding=ROUND_DOWN))


@dataclass(frozen=True)
class Percentage:
    """
    Rational percentage, e.g. slippage tolerance

    Percentage.from_fraction(10, 1000) is 1%.
    """
    numerator: int
    denominator: int

    def __post_init__(self):
        if self.denominator <= 0:
            raise ConfigurationError.invalid("percentage", f"denominator must be positive, got {self.denominator}")
        if self.numerator < 0:
            raise ConfigurationError.invalid("percentage", f"numerator must be non-negative, got {self.numerator}")
        if self.numerator > self.denominator:
            raise ConfigurationError.invalid(
                "percentage", f"{self.numerator}/{self.denominator} exceeds 100%"
            )

    @classmethod
    def from_fraction(cls, numerator: int, denominator: int) -> "Percentage":
        return cls(int(numerator), int(denominator))

    @classmethod
    def from_bps(cls, bps: int) -> "Percentage":
        return cls(int(bps), 10_000)

    @property
    def is_zero(self) -> bool:
        return self.numerator == 0

    def to_decimal(self) -> Decimal:
        """Fraction as Decimal (0.01 for 1%)"""
        return Decimal(self.numerator) / Decimal(self.denominator)

    def to_bps(self) -> Decimal:
        return self.to_decimal() * 10_000

    def adjust_down(self, amount: int) -> int:
        """amount * (1 - pct), rounded down"""
        return amount * (self.denominator - self.numerator) // self.denominator

    def adjust_up(self, amount: int) -> int:
        """amount * (1 + pct), rounded up"""
        return -(-amount * (self.denominator + self.numerator) // self.denominator)

    def __str__(self) -> str:
        return f"{(self.to_decimal() * 100).normalize()}%"

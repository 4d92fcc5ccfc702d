"""Money primitives - integer cents, never float."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Hashable, Mapping, TypeVar, Union

CENT = Decimal("0.01")
DEFAULT_CURRENCY = "GHS"

K = TypeVar("K", bound=Hashable)

AmountLike = Union[Decimal, int, str]


def to_cents(value: AmountLike) -> int:
    """
    Convert a decimal amount to integer cents.

    Half-cent values are rounded away from zero. Floats are rejected
    outright; money that already went through binary floating point
    cannot be trusted to the cent.

    Args:
        value: Decimal, int or numeric string (e.g. "12.50")

    Returns:
        Amount in cents
    """
    if isinstance(value, (float, bool)):
        raise TypeError(f"Money must not be built from {type(value).__name__}: {value!r}")

    amount = value if isinstance(value, Decimal) else Decimal(str(value))
    return int(amount.quantize(CENT, rounding=ROUND_HALF_UP) * 100)


def from_cents(cents: int) -> Decimal:
    """Convert integer cents to a 2-place Decimal."""
    return (Decimal(cents) / 100).quantize(CENT)


def percent_of(cents: int, percent: AmountLike) -> int:
    """Return round(cents * percent / 100) in whole cents (half-up)."""
    rate = percent if isinstance(percent, Decimal) else Decimal(str(percent))
    raw = Decimal(cents) * rate / Decimal(100)
    return int(raw.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def allocate_proportionally(total_cents: int, weights: Mapping[K, int]) -> Dict[K, int]:
    """
    Split ``total_cents`` across keys in proportion to their weights.

    Every share is floored; the leftover cents go to the smallest key
    (sorted order) so the shares always sum to ``total_cents`` and the
    result does not depend on dict ordering.

    Args:
        total_cents: Amount to distribute
        weights: Non-negative weight per key (e.g. seller subtotal in cents)

    Returns:
        Mapping of key -> allocated cents
    """
    if not weights:
        return {}

    keys = sorted(weights)
    weight_sum = sum(weights[key] for key in keys)

    if weight_sum <= 0:
        shares = {key: 0 for key in keys}
        shares[keys[0]] = total_cents
        return shares

    shares = {key: (total_cents * weights[key]) // weight_sum for key in keys}
    remainder = total_cents - sum(shares.values())
    shares[keys[0]] += remainder
    return shares


@dataclass(frozen=True)
class Money:
    """
    Immutable monetary value stored as integer cents.

    CRITICAL: never construct from float. Use ``Money.of("12.50")`` or
    ``Money(1250)``.
    """

    cents: int
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self):
        if isinstance(self.cents, bool) or not isinstance(self.cents, int):
            raise TypeError(f"Money cents must be int, got: {self.cents!r}")

        if not isinstance(self.currency, str) or len(self.currency) != 3:
            raise ValueError(
                f"Currency must be 3-letter ISO code, got: {self.currency}"
            )

    @classmethod
    def of(cls, amount: AmountLike, currency: str = DEFAULT_CURRENCY) -> "Money":
        """Build from a decimal amount (e.g. Decimal("50.00"))."""
        return cls(cents=to_cents(amount), currency=currency)

    @classmethod
    def zero(cls, currency: str = DEFAULT_CURRENCY) -> "Money":
        return cls(cents=0, currency=currency)

    @property
    def amount(self) -> Decimal:
        """Decimal amount with two places."""
        return from_cents(self.cents)

    def __str__(self) -> str:
        return f"{self.amount} {self.currency}"

    def _check_currency(self, other: "Money", operation: str) -> None:
        if self.currency != other.currency:
            raise ValueError(
                f"Cannot {operation} different currencies: {self.currency} vs {other.currency}"
            )

    def __add__(self, other: "Money") -> "Money":
        self._check_currency(other, "add")
        return Money(cents=self.cents + other.cents, currency=self.currency)

    def __sub__(self, other: "Money") -> "Money":
        self._check_currency(other, "subtract")
        return Money(cents=self.cents - other.cents, currency=self.currency)

    def __neg__(self) -> "Money":
        return Money(cents=-self.cents, currency=self.currency)

    def __mul__(self, quantity: int) -> "Money":
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise TypeError("Money can only be multiplied by an integer quantity")
        return Money(cents=self.cents * quantity, currency=self.currency)

    def percent(self, rate: AmountLike) -> "Money":
        """Percentage of this amount, rounded half-up to the cent."""
        return Money(cents=percent_of(self.cents, rate), currency=self.currency)

    def min(self, other: "Money") -> "Money":
        self._check_currency(other, "compare")
        return self if self.cents <= other.cents else other

    def is_positive(self) -> bool:
        return self.cents > 0

    def is_negative(self) -> bool:
        return self.cents < 0

    def is_zero(self) -> bool:
        return self.cents == 0

    def within(self, other: "Money", tolerance_cents: int) -> bool:
        """True when both amounts differ by at most ``tolerance_cents``."""
        self._check_currency(other, "compare")
        return abs(self.cents - other.cents) <= tolerance_cents

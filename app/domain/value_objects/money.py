"""
Money value object for handling monetary amounts with currency.

Amounts are kept in integer minor units (cents), which is how the
payment provider represents them on the wire.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Money:
    """
    Immutable value object representing a monetary amount with currency.

    Attributes:
        amount: Amount in minor units (e.g. cents)
        currency: ISO 4217 currency code

    Example:
        >>> Money.from_square({"amount": 2706, "currency": "USD"}).formatted
        '$27.06'
    """

    amount: int
    currency: str = "USD"

    def __post_init__(self) -> None:
        """Validate money object after initialization."""
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            try:
                object.__setattr__(self, "amount", int(self.amount))
            except (TypeError, ValueError) as e:
                raise ValueError(f"Invalid money amount: {self.amount!r}") from e

        if not self.currency or len(self.currency) != 3:
            raise ValueError(f"Invalid currency code: {self.currency}")

        object.__setattr__(self, "currency", self.currency.upper())

    def __str__(self) -> str:
        return f"{self.currency} {self.formatted}"

    @property
    def formatted(self) -> str:
        """Dollar-style representation, e.g. '$12.50'."""
        return f"${self.amount / 100:.2f}"

    @classmethod
    def zero(cls, currency: str = "USD") -> "Money":
        """Create a zero Money object."""
        return cls(amount=0, currency=currency)

    @classmethod
    def from_square(cls, data: dict[str, Any] | None, default_currency: str = "USD") -> "Money":
        """
        Create Money from a provider money object ({"amount": int, "currency": str}).

        Missing objects or amounts are treated as zero.
        """
        if not data:
            return cls.zero(default_currency)
        return cls(amount=data.get("amount") or 0, currency=data.get("currency") or default_currency)

    def to_square(self) -> dict[str, Any]:
        """Convert to the provider money object."""
        return {"amount": self.amount, "currency": self.currency}

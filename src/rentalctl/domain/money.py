"""Fixed-point money value held as integer cents.

All arithmetic stays in integers (or ``Decimal`` for scalar factors), so
``Money.of("0.10") + Money.of("0.20") == Money.of("0.30")`` holds exactly.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from rentalctl.domain.errors import InvalidMoneyError

_CENT = Decimal("0.01")


@dataclass(frozen=True, order=True)
class Money:
    """Non-negative amount of money in cents."""

    cents: int = 0

    def __post_init__(self) -> None:
        if isinstance(self.cents, bool) or not isinstance(self.cents, int):
            raise InvalidMoneyError(f"Money cents must be an integer, got {self.cents!r}")
        if self.cents < 0:
            raise InvalidMoneyError(f"Money cannot be negative: {self.cents} cents")

    # --- Constructors ---

    @classmethod
    def of(cls, amount: int | float | str | Decimal) -> Money:
        """Build from a currency amount such as ``"12.50"`` or ``12.5``.

        Amounts with sub-cent precision are rejected rather than rounded.
        """
        try:
            value = Decimal(str(amount))
        except InvalidOperation as exc:
            raise InvalidMoneyError(f"Not a money amount: {amount!r}") from exc
        if not value.is_finite():
            raise InvalidMoneyError(f"Not a money amount: {amount!r}")
        if value != value.quantize(_CENT):
            raise InvalidMoneyError(f"Money cannot have fractional cents: {amount!r}")
        return cls(int(value * 100))

    @classmethod
    def zero(cls) -> Money:
        return cls(0)

    # --- Arithmetic ---

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.cents + other.cents)

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        if other.cents > self.cents:
            raise InvalidMoneyError(f"Cannot subtract {other} from {self}: result is negative")
        return Money(self.cents - other.cents)

    def multiply(self, factor: int | float | Decimal) -> Money:
        """Scale by *factor*, rounding half up to the nearest cent."""
        scaled = (Decimal(self.cents) * Decimal(str(factor))).quantize(
            Decimal(1), rounding=ROUND_HALF_UP
        )
        if scaled < 0:
            raise InvalidMoneyError(f"Cannot multiply {self} by negative factor {factor}")
        return Money(int(scaled))

    def __mul__(self, factor: int | float | Decimal) -> Money:
        if isinstance(factor, Money):
            return NotImplemented
        return self.multiply(factor)

    __rmul__ = __mul__

    # --- Queries ---

    @property
    def amount(self) -> Decimal:
        """Currency amount with exactly two decimal places."""
        return Decimal(self.cents).scaleb(-2)

    @property
    def is_zero(self) -> bool:
        return self.cents == 0

    @property
    def is_positive(self) -> bool:
        return self.cents > 0

    def __str__(self) -> str:
        return f"${self.amount:,.2f}"

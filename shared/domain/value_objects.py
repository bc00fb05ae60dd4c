"""
Common Value Objects

Value objects used across the reservation domain:
- Money: a non-negative price in one currency
- DateRange: a stay, check-in inclusive and check-out exclusive
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from shared.domain.base import ValueObject

SUPPORTED_CURRENCIES = ('USD', 'EUR', 'CAD')


def to_minor_units(amount: Decimal) -> int:
    """Convert a major-unit Decimal into cents, truncating any fraction."""
    return int(amount * 100)


@dataclass(frozen=True)
class Money(ValueObject):
    """
    Money value object

    Amounts are Decimals, never floats. Currency codes are stored
    upper-case; the payment gateway receives them lower-case.
    """
    amount: Decimal
    currency: str = 'USD'

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, 'amount', Decimal(str(self.amount)))
        object.__setattr__(self, 'currency', self.currency.upper())
        if self.amount < 0:
            raise ValueError("Amount cannot be negative")
        if self.currency not in SUPPORTED_CURRENCIES:
            raise ValueError(f"Unsupported currency: {self.currency}")

    def __mul__(self, factor: int | Decimal) -> 'Money':
        """Nightly rate times a whole number of nights, or a Decimal factor"""
        if isinstance(factor, bool) or not isinstance(factor, (int, Decimal)):
            raise TypeError("Can only multiply Money by int or Decimal")
        return Money(self.amount * factor, self.currency)

    @property
    def minor_units(self) -> int:
        """Amount in cents, truncated toward zero"""
        return to_minor_units(self.amount)

    def __str__(self):
        return f"{self.amount:,.2f} {self.currency}"


@dataclass(frozen=True)
class DateRange(ValueObject):
    """
    Date range value object

    A stay from start_date (first night) to end_date (check-out day).
    len() is the number of nights billed.
    """
    start_date: date
    end_date: date

    def __post_init__(self):
        if self.start_date >= self.end_date:
            raise ValueError(f"Start date ({self.start_date}) must be before end date ({self.end_date})")

    def overlaps_with(self, other: 'DateRange') -> bool:
        """
        True when the two stays share at least one night.

        The same half-open test the availability queries run in SQL:
            start1 < end2 AND end1 > start2
        so a check-out and a check-in on the same day don't collide.
        """
        if not isinstance(other, DateRange):
            raise TypeError("Can only check overlap with another DateRange")
        return self.start_date < other.end_date and self.end_date > other.start_date

    def __len__(self) -> int:
        return (self.end_date - self.start_date).days

    def __str__(self):
        return f"{self.start_date.isoformat()} - {self.end_date.isoformat()}"

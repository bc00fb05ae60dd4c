"""
Booking Domain Events

Events that represent things that have happened to a booking.
These are published after successful transaction commits.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from shared.domain.base import DomainEvent


@dataclass
class BookingCreated(DomainEvent):
    """
    Event: A new PENDING booking was created

    Triggers:
    - Audit log
    - Abandoned-booking sweep picks it up if never paid
    """
    confirmation_number: str = ''
    user_id: int | None = None
    room_id: int | None = None
    check_in: date | None = None
    check_out: date | None = None
    total_price: Decimal = Decimal('0')


@dataclass
class BookingConfirmed(DomainEvent):
    """Event: Payment verified (PENDING -> CONFIRMED)"""
    confirmation_number: str = ''
    payment_intent_id: str = ''
    total_price: Decimal = Decimal('0')


@dataclass
class BookingModified(DomainEvent):
    """
    Event: Dates or party size of a CONFIRMED booking changed

    price_delta is positive for a surcharge, negative for a refund.
    """
    confirmation_number: str = ''
    check_in: date | None = None
    check_out: date | None = None
    number_of_guests: int = 0
    old_total: Decimal = Decimal('0')
    new_total: Decimal = Decimal('0')

    @property
    def price_delta(self) -> Decimal:
        return self.new_total - self.old_total


@dataclass
class BookingCancelled(DomainEvent):
    """Event: CONFIRMED booking cancelled and refunded"""
    confirmation_number: str = ''
    refunded_amount: Decimal = Decimal('0')


@dataclass
class BookingVoided(DomainEvent):
    """Event: PENDING booking abandoned without payment"""
    confirmation_number: str = ''
    reason: str = ''


@dataclass
class BookingCompleted(DomainEvent):
    """Event: Stay finished (CONFIRMED -> COMPLETED)"""
    confirmation_number: str = ''

"""Shared pytest fixtures for the reservation engine."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from itertools import count
from zoneinfo import ZoneInfo

import pytest

HOTEL_TZ = ZoneInfo("America/Los_Angeles")


class FrozenClock:
    """Clock callable whose time tests move explicitly."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, year, month, day, hour=0, minute=0):
        """Move to a hotel-local wall-clock time"""
        self.now = datetime(year, month, day, hour, minute, tzinfo=HOTEL_TZ)


@pytest.fixture
def clock():
    return FrozenClock(datetime(2025, 5, 1, 9, 0, tzinfo=HOTEL_TZ))


@pytest.fixture
def gateway():
    from apps.payments.tests.fakes import FakePaymentGateway

    return FakePaymentGateway()


@pytest.fixture
def reconciler(gateway):
    from apps.payments.reconciler import PaymentReconciler

    return PaymentReconciler(gateway=gateway, currency="usd")


@pytest.fixture
def orchestrator(reconciler, clock):
    from apps.bookings.application.orchestrator import BookingOrchestrator

    return BookingOrchestrator(reconciler=reconciler, clock=clock)


@pytest.fixture
def guest(db):
    from django.contrib.auth import get_user_model

    return get_user_model().objects.create_user(
        username="guest",
        email="guest@example.com",
        password="pass",
    )


@pytest.fixture
def other_guest(db):
    from django.contrib.auth import get_user_model

    return get_user_model().objects.create_user(
        username="other",
        email="other@example.com",
        password="pass",
    )


@pytest.fixture
def guest_auth(guest):
    from apps.bookings.application.authorization import AuthContext

    return AuthContext(caller_id=guest.pk)


@pytest.fixture
def admin_auth():
    from apps.bookings.application.authorization import AuthContext

    return AuthContext(caller_id=10_000, is_admin=True)


@pytest.fixture
def room_type(db):
    from apps.rooms.models import RoomType

    return RoomType.objects.create(
        name="Deluxe King",
        description="King bed, city view",
        base_price=Decimal("100.00"),
        max_occupancy=2,
    )


@pytest.fixture
def rooms(room_type):
    from apps.rooms.models import Room

    return [
        Room.objects.create(room_type=room_type, room_number="101", floor=1),
        Room.objects.create(room_type=room_type, room_number="102", floor=1),
    ]


@pytest.fixture
def make_booking(guest, room_type):
    """Insert a booking row directly, bypassing the orchestrator."""
    from apps.bookings.models import Booking

    numbers = count(1)

    def factory(
        room,
        check_in: date,
        check_out: date,
        status: str = Booking.Status.CONFIRMED,
        total_price: Decimal | None = None,
        user=None,
        payment_intent_id: str = "",
        number_of_guests: int = 2,
    ) -> Booking:
        if total_price is None:
            total_price = room_type.base_price * (check_out - check_in).days
        return Booking.objects.create(
            user=user or guest,
            room_type=room.room_type,
            room=room,
            confirmation_number=f"TIP-T{next(numbers):05d}",
            check_in=check_in,
            check_out=check_out,
            number_of_guests=number_of_guests,
            total_price=total_price,
            status=status,
            payment_intent_id=payment_intent_id,
        )

    return factory


@pytest.fixture
def make_payment():
    from apps.payments.models import Payment

    def factory(booking, external_reference: str, amount: Decimal, **extra) -> Payment:
        return Payment.objects.create(
            booking=booking,
            user_id=booking.user_id,
            external_reference=external_reference,
            amount=amount,
            currency="usd",
            status=extra.pop("status", Payment.Status.COMPLETED),
            **extra,
        )

    return factory

from datetime import date, timedelta
from unittest import mock

import pytest
from django.db import DatabaseError
from django.utils import timezone

from apps.bookings.application.orchestrator import BookingOrchestrator
from apps.bookings.models import Booking
from apps.bookings.tasks import complete_finished_bookings, void_abandoned_bookings


@pytest.mark.django_db
def test_stale_pending_bookings_are_voided(rooms, make_booking):
    stale = make_booking(rooms[0], date(2099, 6, 1), date(2099, 6, 4), status=Booking.Status.PENDING)
    fresh = make_booking(rooms[1], date(2099, 6, 1), date(2099, 6, 4), status=Booking.Status.PENDING)
    paid = make_booking(rooms[0], date(2099, 7, 1), date(2099, 7, 4))
    Booking.objects.filter(pk__in=[stale.pk, paid.pk]).update(
        created_at=timezone.now() - timedelta(hours=2),
    )

    assert void_abandoned_bookings() == {"voided": 1, "failed": 0}

    stale.refresh_from_db()
    fresh.refresh_from_db()
    paid.refresh_from_db()
    assert stale.status == Booking.Status.VOIDED
    assert fresh.status == Booking.Status.PENDING
    assert paid.status == Booking.Status.CONFIRMED


@pytest.mark.django_db
def test_finished_stays_are_completed(rooms, make_booking):
    past = make_booking(rooms[0], date(2025, 6, 1), date(2025, 6, 4))
    future = make_booking(rooms[1], date(2099, 6, 1), date(2099, 6, 4))
    unpaid = make_booking(rooms[1], date(2025, 6, 1), date(2025, 6, 4), status=Booking.Status.PENDING)

    assert complete_finished_bookings() == {"completed": 1, "failed": 0}

    assert Booking.objects.get(pk=past.pk).status == Booking.Status.COMPLETED
    assert Booking.objects.get(pk=future.pk).status == Booking.Status.CONFIRMED
    assert Booking.objects.get(pk=unpaid.pk).status == Booking.Status.PENDING


@pytest.mark.django_db
def test_one_failure_does_not_stop_the_sweep(rooms, make_booking):
    broken = make_booking(rooms[0], date(2025, 6, 1), date(2025, 6, 4))
    healthy = make_booking(rooms[1], date(2025, 6, 1), date(2025, 6, 4))
    real_complete = BookingOrchestrator.complete_booking

    def complete(self, auth, booking_id):
        if booking_id == broken.pk:
            raise DatabaseError("transient")
        return real_complete(self, auth, booking_id)

    with mock.patch.object(BookingOrchestrator, "complete_booking", autospec=True, side_effect=complete):
        assert complete_finished_bookings() == {"completed": 1, "failed": 1}

    assert Booking.objects.get(pk=healthy.pk).status == Booking.Status.COMPLETED
    assert Booking.objects.get(pk=broken.pk).status == Booking.Status.CONFIRMED


@pytest.mark.django_db
def test_void_sweep_counts_failures_and_carries_on(rooms, make_booking):
    broken = make_booking(rooms[0], date(2099, 6, 1), date(2099, 6, 4), status=Booking.Status.PENDING)
    healthy = make_booking(rooms[1], date(2099, 6, 1), date(2099, 6, 4), status=Booking.Status.PENDING)
    Booking.objects.filter(pk__in=[broken.pk, healthy.pk]).update(
        created_at=timezone.now() - timedelta(hours=2),
    )
    real_void = BookingOrchestrator.void_booking

    def void(self, auth, booking_id, reason):
        if booking_id == broken.pk:
            raise DatabaseError("connection reset")
        return real_void(self, auth, booking_id, reason=reason)

    with mock.patch.object(BookingOrchestrator, "void_booking", autospec=True, side_effect=void):
        assert void_abandoned_bookings() == {"voided": 1, "failed": 1}

    assert Booking.objects.get(pk=healthy.pk).status == Booking.Status.VOIDED
    assert Booking.objects.get(pk=broken.pk).status == Booking.Status.PENDING

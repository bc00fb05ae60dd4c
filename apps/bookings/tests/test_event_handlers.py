from datetime import date
from decimal import Decimal
from unittest import mock

import pytest

from apps.bookings.domain.events import BookingCreated, BookingModified
from apps.bookings.event_handlers import audit_booking_event
from shared.application.message_bus import message_bus
from shared.domain.exceptions import ValidationError


def test_audit_handler_is_registered_on_startup():
    assert audit_booking_event in message_bus._event_handlers[BookingCreated]
    assert audit_booking_event in message_bus._event_handlers[BookingModified]


def test_modification_audit_includes_price_delta():
    event = BookingModified(
        aggregate_id=3,
        confirmation_number="TIP-ABC123",
        check_in=date(2025, 6, 1),
        check_out=date(2025, 6, 6),
        number_of_guests=2,
        old_total=Decimal("300.00"),
        new_total=Decimal("500.00"),
    )

    with mock.patch("apps.bookings.event_handlers.logger") as logger:
        audit_booking_event(event)

    _, fields = logger.info.call_args
    assert logger.info.call_args[0] == ("booking.audit",)
    assert fields["event_type"] == "BookingModified"
    assert fields["confirmation_number"] == "TIP-ABC123"
    assert fields["check_out"] == "2025-06-06"
    assert fields["price_delta"] == "200.00"


@pytest.mark.django_db
def test_events_are_published_after_commit(
    orchestrator, guest, guest_auth, room_type, rooms, django_capture_on_commit_callbacks
):
    with mock.patch("apps.bookings.event_handlers.logger") as logger:
        with django_capture_on_commit_callbacks(execute=True):
            booking = orchestrator.create_booking(
                guest_auth, guest.pk, room_type.pk, date(2025, 6, 1), date(2025, 6, 4), 2
            )

    fields = logger.info.call_args.kwargs
    assert fields["event_type"] == "BookingCreated"
    assert fields["aggregate_id"] == booking.pk
    assert fields["total_price"] == "300.00"


@pytest.mark.django_db
def test_failed_operation_publishes_nothing(
    orchestrator, guest, guest_auth, room_type, rooms, django_capture_on_commit_callbacks
):
    with mock.patch("apps.bookings.event_handlers.logger") as logger:
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            with pytest.raises(ValidationError):
                orchestrator.create_booking(
                    guest_auth, guest.pk, room_type.pk, date(2025, 6, 1), date(2025, 6, 4), 9
                )

    assert callbacks == []
    logger.info.assert_not_called()

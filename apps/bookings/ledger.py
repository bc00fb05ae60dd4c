"""
Booking Ledger

Owns Booking records: creation, lookups, state transitions and
persistence. All status changes go through Booking.apply_transition so
the state machine in models.Booking.TRANSITIONS is the single source of
allowed moves.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List
from uuid import uuid4
import logging

from django.conf import settings  # type: ignore
from django.db.models import QuerySet  # type: ignore

from shared.application.retry import BoundedRetry, RetryExhausted
from shared.domain.exceptions import FatalReconciliationError, NotFoundError
from shared.domain.value_objects import DateRange

from .models import Booking

logger = logging.getLogger(__name__)

CONFIRMATION_CODE_LENGTH = 6


class BookingLedger:
    """Persistence and lifecycle of Booking records."""

    def __init__(self, save_retry: BoundedRetry | None = None):
        self.save_retry = save_retry or BoundedRetry(max_attempts=settings.BOOKING_SAVE_MAX_ATTEMPTS)

    # ===== Lookups =====

    def get(self, booking_id) -> Booking:
        try:
            return Booking.objects.get(pk=booking_id)
        except (Booking.DoesNotExist, ValueError, TypeError):
            raise NotFoundError(f"Booking not found with ID: {booking_id}")

    def get_by_confirmation_number(self, confirmation_number: str) -> Booking:
        try:
            return Booking.objects.get(confirmation_number=confirmation_number)
        except Booking.DoesNotExist:
            raise NotFoundError(f"Booking not found with confirmation number: {confirmation_number}")

    def for_user(self, user_id) -> QuerySet:
        return Booking.objects.filter(user_id=user_id).order_by("-created_at", "-id")

    def all(self) -> QuerySet:
        return Booking.objects.select_related("user").order_by("-created_at", "-id")

    # ===== Confirmation numbers =====

    def confirmation_number_exists(self, confirmation_number: str) -> bool:
        return Booking.objects.filter(confirmation_number=confirmation_number).exists()

    def generate_confirmation_number(self) -> str:
        """
        Generate a confirmation number not used by any booking.

        Format: TIP-XXXXXX, six uppercase hex characters of a random UUID.
        """
        prefix = settings.CONFIRMATION_NUMBER_PREFIX
        while True:
            candidate = f"{prefix}{uuid4().hex[:CONFIRMATION_CODE_LENGTH].upper()}"
            if not self.confirmation_number_exists(candidate):
                return candidate
            logger.debug(f"Confirmation number {candidate} already taken, regenerating")

    # ===== Lifecycle =====

    def create_pending(
        self,
        *,
        user,
        room_type,
        room,
        dates: DateRange,
        number_of_guests: int,
        total_price: Decimal,
    ) -> Booking:
        booking = Booking.objects.create(
            user=user,
            room_type=room_type,
            room=room,
            check_in=dates.start_date,
            check_out=dates.end_date,
            number_of_guests=number_of_guests,
            total_price=total_price,
            status=Booking.Status.PENDING,
            confirmation_number=self.generate_confirmation_number(),
        )
        logger.info(
            f"Booking {booking.confirmation_number} created for room {room.pk}, "
            f"{dates}, total {total_price}"
        )
        return booking

    def confirm(self, booking: Booking, payment_intent_id: str) -> Booking:
        booking.apply_transition("confirm")
        booking.payment_intent_id = payment_intent_id
        self.save(booking)
        return booking

    def void(self, booking: Booking) -> Booking:
        booking.apply_transition("void")
        self.save(booking)
        return booking

    def complete(self, booking: Booking) -> Booking:
        booking.apply_transition("complete")
        self.save(booking)
        return booking

    def save(self, booking: Booking) -> Booking:
        booking.save()
        return booking

    def save_with_retry(self, booking: Booking, failure_message: str) -> Booking:
        """
        Persist a booking whose payments were already mutated at the gateway.

        Transient storage errors are retried by the bounded policy. When
        every attempt fails the money has moved but the booking has not,
        so this raises FatalReconciliationError for manual reconciliation.
        """
        try:
            return self.save_retry.run(lambda: self.save(booking), description=f"save of {booking.confirmation_number}")
        except RetryExhausted as e:
            logger.error(
                f"Booking save failed after {e.attempts} attempts for booking "
                f"{booking.confirmation_number}: {e.last_error}"
            )
            raise FatalReconciliationError(failure_message, booking.confirmation_number) from e.last_error

    def user_ids(self, bookings: List[Booking]) -> List:
        return list(dict.fromkeys(booking.user_id for booking in bookings))

"""
Booking Command Handlers

These are the use cases for the booking domain.
They orchestrate domain operations within units of work.

Commands:
- CreateBookingCommand: Allocate a room and create a PENDING booking
- CreatePaymentIntentCommand: Start payment of a PENDING booking
- ConfirmBookingCommand: Confirm a booking after verified payment
- VoidBookingCommand: Abandon an unpaid booking
- CreateModifyPaymentIntentCommand: Start payment of a modification surcharge
- ModifyBookingCommand: Change dates/guests of a CONFIRMED booking
- CancelBookingCommand: Cancel a CONFIRMED booking with full refund
- CompleteBookingCommand: Close a booking whose stay is over

Every command carries the caller's AuthContext, checked before anything
else. Handlers never hold a database transaction across a gateway call:
modify and cancel move money first and then persist the booking with a
bounded retry, so their unit of work is not atomic.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional, Tuple
import logging

from django.conf import settings
from django.utils import timezone

from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import ConflictError, ForbiddenError, ValidationError
from shared.domain.value_objects import DateRange
from apps.bookings.application.authorization import AuthContext, ensure_admin, ensure_can_act_for
from apps.bookings.domain.events import (
    BookingCancelled,
    BookingCompleted,
    BookingConfirmed,
    BookingCreated,
    BookingModified,
    BookingVoided,
)
from apps.bookings.domain.policies import (
    calculate_total_price,
    ensure_not_started,
    ensure_outside_change_cutoff,
    hotel_today,
    validate_guest_count,
    validate_stay_dates,
)
from apps.bookings.ledger import BookingLedger
from apps.bookings.models import Booking
from apps.payments.reconciler import PaymentReconciler
from apps.rooms.availability import RoomAvailabilityIndex
from apps.rooms.catalog import RoomTypeCatalog
from apps.users.directory import UserDirectory

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


# ===== Commands =====

@dataclass
class CreateBookingCommand:
    """
    Command to create a new booking

    This is the primary entry point for creating bookings.
    """
    auth: AuthContext
    user_id: int
    room_type_id: int
    check_in: date
    check_out: date
    number_of_guests: int


@dataclass
class CreatePaymentIntentCommand:
    """Command to open a payment intent for a PENDING booking's total"""
    auth: AuthContext
    booking_id: int


@dataclass
class ConfirmBookingCommand:
    """Command to confirm a booking after successful payment"""
    auth: AuthContext
    booking_id: int
    payment_intent_id: str


@dataclass
class VoidBookingCommand:
    """Command to void a booking whose payment never completed"""
    auth: AuthContext
    booking_id: int
    reason: str = 'Payment not completed'


@dataclass
class CreateModifyPaymentIntentCommand:
    """Command to open a payment intent for a modification surcharge"""
    auth: AuthContext
    booking_id: int
    check_in: date
    check_out: date
    number_of_guests: int


@dataclass
class ModifyBookingCommand:
    """
    Command to change dates and party size of a CONFIRMED booking

    payment_intent_id is required when the new price is higher.
    """
    auth: AuthContext
    booking_id: int
    check_in: date
    check_out: date
    number_of_guests: int
    payment_intent_id: Optional[str] = None


@dataclass
class CancelBookingCommand:
    """Command to cancel a booking"""
    auth: AuthContext
    booking_id: int


@dataclass
class CompleteBookingCommand:
    """Command to complete a booking (stay over)"""
    auth: AuthContext
    booking_id: int


# ===== Shared steps =====

def _load_for_caller(ledger: BookingLedger, auth: AuthContext, booking_id) -> Booking:
    booking = ledger.get(booking_id)
    ensure_can_act_for(auth, booking.user_id)
    return booking


def price_modification(
    booking: Booking,
    check_in: date,
    check_out: date,
    number_of_guests: int,
    now: datetime,
    availability: RoomAvailabilityIndex,
) -> Tuple[DateRange, Decimal]:
    """
    Validate a modification of a CONFIRMED booking and price it.

    Returns the new stay and new total; nothing is persisted.

    Raises:
        ConflictError: If the booking is not CONFIRMED or its room is taken
            for the new dates
        ValidationError: If the change cutoff has passed, the stay has
            started, or the new dates or party size are invalid
    """
    booking.next_status('modify')
    ensure_outside_change_cutoff(booking.check_in, now, 'Modifications')
    ensure_not_started(booking.check_in, now)

    dates = validate_stay_dates(check_in, check_out, hotel_today(now))

    if booking.room_id is not None and not availability.is_room_free(
        booking.room_id, dates, exclude_booking_id=booking.pk
    ):
        raise ConflictError('The assigned room is not available for the new dates')

    room_type = booking.room_type
    validate_guest_count(number_of_guests, room_type.max_occupancy)

    new_total = calculate_total_price(room_type.base_price, dates, settings.PAYMENT_CURRENCY)
    return dates, new_total.amount


# ===== Command Handlers =====

class CreateBookingHandler:
    """
    Handler for CreateBooking command

    Allocation reads free rooms and then inserts the booking; the two are
    not one locked transaction. Two concurrent creates can both end up
    PENDING on the same room; ConfirmBookingHandler re-checks before a
    second one can become CONFIRMED.
    """

    def __init__(
        self,
        ledger: BookingLedger,
        availability: RoomAvailabilityIndex,
        users: UserDirectory,
        catalog: RoomTypeCatalog,
        clock: Clock = timezone.now,
    ):
        self.ledger = ledger
        self.availability = availability
        self.users = users
        self.catalog = catalog
        self.clock = clock

    def handle(self, command: CreateBookingCommand) -> Booking:
        """
        Handle booking creation

        Returns: Created PENDING Booking

        Raises:
            ForbiddenError: Caller is neither the user nor an admin, or the
                user account is inactive
            ValidationError: Bad dates or guest count
            NotFoundError: Unknown user or room type
            ConflictError: No room of the type is free for the stay
        """
        ensure_can_act_for(command.auth, command.user_id)

        logger.info(
            f"Creating booking for user {command.user_id}, room type {command.room_type_id}, "
            f"dates {command.check_in} - {command.check_out}"
        )

        dates = validate_stay_dates(command.check_in, command.check_out, hotel_today(self.clock()))

        user = self.users.find_by_id(command.user_id)
        if not user.is_active:
            raise ForbiddenError(f"User account {command.user_id} is inactive")

        room_type = self.catalog.find_by_id(command.room_type_id)
        validate_guest_count(command.number_of_guests, room_type.max_occupancy)

        room = self.availability.find_available_room(room_type.pk, dates)
        total = calculate_total_price(room_type.base_price, dates, settings.PAYMENT_CURRENCY)

        with DjangoUnitOfWork() as uow:
            booking = self.ledger.create_pending(
                user=user,
                room_type=room_type,
                room=room,
                dates=dates,
                number_of_guests=command.number_of_guests,
                total_price=total.amount,
            )
            uow.add_event(BookingCreated(
                aggregate_id=booking.pk,
                confirmation_number=booking.confirmation_number,
                user_id=user.pk,
                room_id=room.pk,
                check_in=dates.start_date,
                check_out=dates.end_date,
                total_price=booking.total_price,
            ))

        return booking


class CreatePaymentIntentHandler:
    """Handler for starting payment of a PENDING booking"""

    def __init__(self, ledger: BookingLedger, reconciler: PaymentReconciler):
        self.ledger = ledger
        self.reconciler = reconciler

    def handle(self, command: CreatePaymentIntentCommand) -> str:
        """Returns the client secret the guest's browser completes payment with"""
        booking = _load_for_caller(self.ledger, command.auth, command.booking_id)

        if booking.status != Booking.Status.PENDING:
            raise ConflictError(
                f"Payment can only be started for PENDING bookings. "
                f"Booking {booking.confirmation_number} is {booking.status}"
            )

        intent = self.reconciler.create_intent_for_booking(booking)
        booking.payment_intent_id = intent.id
        self.ledger.save(booking)
        return intent.client_secret


class ConfirmBookingHandler:
    """
    Handler for confirming booking after payment

    Order: state check, optimistic overlap re-check on the allocated
    room, payment verification, then status change and Payment row in
    one transaction.
    """

    def __init__(
        self,
        ledger: BookingLedger,
        availability: RoomAvailabilityIndex,
        reconciler: PaymentReconciler,
    ):
        self.ledger = ledger
        self.availability = availability
        self.reconciler = reconciler

    def handle(self, command: ConfirmBookingCommand) -> Booking:
        booking = _load_for_caller(self.ledger, command.auth, command.booking_id)
        booking.next_status('confirm')

        logger.info(
            f"Confirming booking {booking.confirmation_number} "
            f"with payment {command.payment_intent_id}"
        )

        if booking.room_id is not None:
            taken = self.availability.overlapping_bookings(
                booking.room_id,
                booking.dates,
                exclude_booking_id=booking.pk,
                statuses=(Booking.Status.CONFIRMED,),
            ).exists()
            if taken:
                raise ConflictError(
                    f"Room for booking {booking.confirmation_number} was confirmed for "
                    f"another guest during {booking.dates}"
                )

        self.reconciler.ensure_reference_unclaimed(booking, command.payment_intent_id)
        self.reconciler.verify_intent(command.payment_intent_id, booking.total_price, booking=booking)

        with DjangoUnitOfWork() as uow:
            self.ledger.confirm(booking, command.payment_intent_id)
            self.reconciler.record_payment(booking, command.payment_intent_id, booking.total_price)
            uow.add_event(BookingConfirmed(
                aggregate_id=booking.pk,
                confirmation_number=booking.confirmation_number,
                payment_intent_id=command.payment_intent_id,
                total_price=booking.total_price,
            ))

        logger.info(f"Booking {booking.confirmation_number} confirmed successfully")
        return booking


class VoidBookingHandler:
    """Handler for voiding an unpaid booking"""

    def __init__(self, ledger: BookingLedger):
        self.ledger = ledger

    def handle(self, command: VoidBookingCommand) -> Booking:
        booking = _load_for_caller(self.ledger, command.auth, command.booking_id)

        with DjangoUnitOfWork() as uow:
            self.ledger.void(booking)
            uow.add_event(BookingVoided(
                aggregate_id=booking.pk,
                confirmation_number=booking.confirmation_number,
                reason=command.reason,
            ))

        logger.info(f"Booking {booking.confirmation_number} voided: {command.reason}")
        return booking


class CreateModifyPaymentIntentHandler:
    """Handler for pricing a modification and opening a surcharge intent"""

    def __init__(
        self,
        ledger: BookingLedger,
        availability: RoomAvailabilityIndex,
        reconciler: PaymentReconciler,
        clock: Clock = timezone.now,
    ):
        self.ledger = ledger
        self.availability = availability
        self.reconciler = reconciler
        self.clock = clock

    def handle(self, command: CreateModifyPaymentIntentCommand) -> str:
        booking = _load_for_caller(self.ledger, command.auth, command.booking_id)

        _, new_total = price_modification(
            booking,
            command.check_in,
            command.check_out,
            command.number_of_guests,
            self.clock(),
            self.availability,
        )

        delta = new_total - booking.total_price
        if delta <= 0:
            raise ValidationError('No additional payment is required for the selected dates')

        intent = self.reconciler.create_surcharge_intent(booking, delta)
        return intent.client_secret


class ModifyBookingHandler:
    """
    Handler for modifying a CONFIRMED booking

    The price difference is settled at the gateway before the booking is
    saved. Once money has moved the save goes through the ledger's
    bounded retry, and a final failure is fatal.
    """

    def __init__(
        self,
        ledger: BookingLedger,
        availability: RoomAvailabilityIndex,
        reconciler: PaymentReconciler,
        clock: Clock = timezone.now,
    ):
        self.ledger = ledger
        self.availability = availability
        self.reconciler = reconciler
        self.clock = clock

    def handle(self, command: ModifyBookingCommand) -> Booking:
        booking = _load_for_caller(self.ledger, command.auth, command.booking_id)

        dates, new_total = price_modification(
            booking,
            command.check_in,
            command.check_out,
            command.number_of_guests,
            self.clock(),
            self.availability,
        )

        old_total = booking.total_price
        delta = new_total - old_total

        logger.info(
            f"Modifying booking {booking.confirmation_number} to {dates}, "
            f"{command.number_of_guests} guests, total {old_total} -> {new_total}"
        )

        with DjangoUnitOfWork(atomic=False) as uow:
            self.reconciler.apply_price_delta(booking, delta, command.payment_intent_id)

            booking.apply_transition('modify')
            booking.check_in = dates.start_date
            booking.check_out = dates.end_date
            booking.number_of_guests = command.number_of_guests
            booking.total_price = new_total

            self.ledger.save_with_retry(
                booking,
                'Failed to update booking after processing modification payments. '
                f'Please contact support with booking confirmation: {booking.confirmation_number}',
            )
            uow.add_event(BookingModified(
                aggregate_id=booking.pk,
                confirmation_number=booking.confirmation_number,
                check_in=booking.check_in,
                check_out=booking.check_out,
                number_of_guests=booking.number_of_guests,
                old_total=old_total,
                new_total=new_total,
            ))

        return booking


class CancelBookingHandler:
    """Handler for cancelling booking with a full refund"""

    def __init__(
        self,
        ledger: BookingLedger,
        reconciler: PaymentReconciler,
        clock: Clock = timezone.now,
    ):
        self.ledger = ledger
        self.reconciler = reconciler
        self.clock = clock

    def handle(self, command: CancelBookingCommand) -> Booking:
        booking = _load_for_caller(self.ledger, command.auth, command.booking_id)
        booking.next_status('cancel')
        ensure_outside_change_cutoff(booking.check_in, self.clock(), 'Cancellations')

        logger.info(f"Cancelling booking {booking.confirmation_number}")

        with DjangoUnitOfWork(atomic=False) as uow:
            refunded = self.reconciler.refund(booking, booking.total_price)

            # Releases the room: availability only counts PENDING/CONFIRMED
            booking.apply_transition('cancel')
            self.ledger.save_with_retry(
                booking,
                'Refund processed but booking cancellation could not be saved. '
                f'Please contact support with booking confirmation: {booking.confirmation_number}',
            )
            uow.add_event(BookingCancelled(
                aggregate_id=booking.pk,
                confirmation_number=booking.confirmation_number,
                refunded_amount=refunded,
            ))

        logger.info(f"Booking {booking.confirmation_number} cancelled, refunded {refunded}")
        return booking


class CompleteBookingHandler:
    """Handler for completing booking (stay over)"""

    def __init__(self, ledger: BookingLedger):
        self.ledger = ledger

    def handle(self, command: CompleteBookingCommand) -> Booking:
        ensure_admin(command.auth)
        booking = self.ledger.get(command.booking_id)

        with DjangoUnitOfWork() as uow:
            self.ledger.complete(booking)
            uow.add_event(BookingCompleted(
                aggregate_id=booking.pk,
                confirmation_number=booking.confirmation_number,
            ))

        logger.info(f"Booking {booking.confirmation_number} completed successfully")
        return booking

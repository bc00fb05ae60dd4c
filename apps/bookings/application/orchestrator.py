"""
Booking Orchestrator

Single entry point of the reservation engine. State-changing operations
are dispatched as commands through a MessageBus owned by the
orchestrator, one handler per command; read operations query the ledger
and availability index directly.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, List, Optional
import logging

from django.utils import timezone

from shared.application.message_bus import MessageBus
from shared.domain.exceptions import ValidationError
from apps.bookings.application.authorization import AuthContext, ensure_admin, ensure_can_act_for
from apps.bookings.application.command_handlers import (
    CancelBookingCommand,
    CancelBookingHandler,
    CompleteBookingCommand,
    CompleteBookingHandler,
    ConfirmBookingCommand,
    ConfirmBookingHandler,
    CreateBookingCommand,
    CreateBookingHandler,
    CreateModifyPaymentIntentCommand,
    CreateModifyPaymentIntentHandler,
    CreatePaymentIntentCommand,
    CreatePaymentIntentHandler,
    ModifyBookingCommand,
    ModifyBookingHandler,
    VoidBookingCommand,
    VoidBookingHandler,
)
from apps.bookings.domain.policies import hotel_today, validate_stay_dates
from apps.bookings.ledger import BookingLedger
from apps.bookings.models import Booking
from apps.payments.reconciler import PaymentReconciler
from apps.rooms.availability import RoomAvailabilityIndex, RoomTypeAvailability
from apps.rooms.catalog import RoomTypeCatalog
from apps.users.directory import UserDirectory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingWithOwner:
    """Admin listing row: a booking and the account that holds it"""
    booking: Booking
    user: Optional[Any]


class BookingOrchestrator:
    """
    Create, modify, cancel, void and confirm bookings.

    Collaborators default to the production ones; tests inject a fake
    payment gateway through the reconciler and a fixed clock.
    """

    def __init__(
        self,
        ledger: Optional[BookingLedger] = None,
        availability: Optional[RoomAvailabilityIndex] = None,
        reconciler: Optional[PaymentReconciler] = None,
        users: Optional[UserDirectory] = None,
        catalog: Optional[RoomTypeCatalog] = None,
        clock: Callable[[], datetime] = timezone.now,
    ):
        self.ledger = ledger or BookingLedger()
        self.availability = availability or RoomAvailabilityIndex()
        self.reconciler = reconciler or PaymentReconciler()
        self.users = users or UserDirectory()
        self.catalog = catalog or RoomTypeCatalog()
        self.clock = clock

        self.bus = MessageBus()
        self._register_handlers()

    def _register_handlers(self):
        handlers = {
            CreateBookingCommand: CreateBookingHandler(
                self.ledger, self.availability, self.users, self.catalog, clock=self.clock,
            ),
            CreatePaymentIntentCommand: CreatePaymentIntentHandler(self.ledger, self.reconciler),
            ConfirmBookingCommand: ConfirmBookingHandler(self.ledger, self.availability, self.reconciler),
            VoidBookingCommand: VoidBookingHandler(self.ledger),
            CreateModifyPaymentIntentCommand: CreateModifyPaymentIntentHandler(
                self.ledger, self.availability, self.reconciler, clock=self.clock,
            ),
            ModifyBookingCommand: ModifyBookingHandler(
                self.ledger, self.availability, self.reconciler, clock=self.clock,
            ),
            CancelBookingCommand: CancelBookingHandler(self.ledger, self.reconciler, clock=self.clock),
            CompleteBookingCommand: CompleteBookingHandler(self.ledger),
        }
        for command_type, handler in handlers.items():
            self.bus.register_command_handler(command_type, handler.handle)

    # ===== Commands =====

    def create_booking(
        self,
        auth: AuthContext,
        user_id,
        room_type_id,
        check_in: date,
        check_out: date,
        number_of_guests: int,
    ) -> Booking:
        return self.bus.handle_command(CreateBookingCommand(
            auth=auth,
            user_id=user_id,
            room_type_id=room_type_id,
            check_in=check_in,
            check_out=check_out,
            number_of_guests=number_of_guests,
        ))

    def create_payment_intent(self, auth: AuthContext, booking_id) -> str:
        return self.bus.handle_command(CreatePaymentIntentCommand(auth=auth, booking_id=booking_id))

    def confirm_booking(self, auth: AuthContext, booking_id, payment_intent_id: str) -> Booking:
        return self.bus.handle_command(ConfirmBookingCommand(
            auth=auth,
            booking_id=booking_id,
            payment_intent_id=payment_intent_id,
        ))

    def void_booking(self, auth: AuthContext, booking_id, reason: str = 'Payment not completed') -> Booking:
        return self.bus.handle_command(VoidBookingCommand(auth=auth, booking_id=booking_id, reason=reason))

    def create_modify_payment_intent(
        self,
        auth: AuthContext,
        booking_id,
        check_in: date,
        check_out: date,
        number_of_guests: int,
    ) -> str:
        return self.bus.handle_command(CreateModifyPaymentIntentCommand(
            auth=auth,
            booking_id=booking_id,
            check_in=check_in,
            check_out=check_out,
            number_of_guests=number_of_guests,
        ))

    def modify_booking(
        self,
        auth: AuthContext,
        booking_id,
        check_in: date,
        check_out: date,
        number_of_guests: int,
        payment_intent_id: Optional[str] = None,
    ) -> Booking:
        return self.bus.handle_command(ModifyBookingCommand(
            auth=auth,
            booking_id=booking_id,
            check_in=check_in,
            check_out=check_out,
            number_of_guests=number_of_guests,
            payment_intent_id=payment_intent_id,
        ))

    def cancel_booking(self, auth: AuthContext, booking_id) -> Booking:
        return self.bus.handle_command(CancelBookingCommand(auth=auth, booking_id=booking_id))

    def complete_booking(self, auth: AuthContext, booking_id) -> Booking:
        return self.bus.handle_command(CompleteBookingCommand(auth=auth, booking_id=booking_id))

    # ===== Queries =====

    def get_booking(self, auth: AuthContext, booking_id) -> Booking:
        booking = self.ledger.get(booking_id)
        ensure_can_act_for(auth, booking.user_id)
        return booking

    def get_booking_by_confirmation_number(self, auth: AuthContext, confirmation_number: str) -> Booking:
        booking = self.ledger.get_by_confirmation_number(confirmation_number)
        ensure_can_act_for(auth, booking.user_id)
        return booking

    def list_user_bookings(self, auth: AuthContext, user_id=None) -> List[Booking]:
        """Bookings of user_id (the caller when omitted), newest first"""
        if user_id is None:
            user_id = auth.caller_id
        ensure_can_act_for(auth, user_id)
        return list(self.ledger.for_user(user_id))

    def list_all_bookings(self, auth: AuthContext) -> List[BookingWithOwner]:
        ensure_admin(auth)
        bookings = list(self.ledger.all())
        owners = {user.pk: user for user in self.users.find_by_ids(self.ledger.user_ids(bookings))}
        return [BookingWithOwner(booking=b, user=owners.get(b.user_id)) for b in bookings]

    def list_available_room_types(
        self,
        check_in: date,
        check_out: date,
        number_of_guests: int,
    ) -> List[RoomTypeAvailability]:
        dates = validate_stay_dates(check_in, check_out, hotel_today(self.clock()))
        if number_of_guests is None or number_of_guests < 1:
            raise ValidationError("Number of guests must be at least 1")
        return self.availability.list_available_room_types(dates, number_of_guests)

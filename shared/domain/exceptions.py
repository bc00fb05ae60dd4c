"""
Reservation Errors

Every error raised by the reservation engine is an APIException subclass,
so it carries the HTTP status class it maps to when surfaced by an API layer.
Messages are meant to be read by a human without extra logging: amounts,
deadlines and confirmation numbers are embedded in them.
"""

from rest_framework import status
from rest_framework.exceptions import APIException


class ReservationError(APIException):
    """Base class for reservation engine errors"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Reservation request failed.'
    default_code = 'reservation_error'


class ValidationError(ReservationError):
    """Bad or missing date range, guest count, or a timing policy violation"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid booking request.'
    default_code = 'invalid'


class NotFoundError(ReservationError):
    """Booking, room, room type or user is absent"""
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found.'
    default_code = 'not_found'


class ConflictError(ReservationError):
    """No room available, overlapping booking or invalid state transition"""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Request conflicts with the current state.'
    default_code = 'conflict'


class ForbiddenError(ReservationError):
    """Inactive user, or caller acting on a booking they do not own"""
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'You do not have permission to perform this action.'
    default_code = 'forbidden'


class PaymentVerificationError(ReservationError):
    """Payment intent not succeeded, amount mismatch or gateway failure"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Payment could not be verified.'
    default_code = 'payment_verification_failed'


class FatalReconciliationError(ReservationError):
    """
    Money moved at the gateway but the local records could not follow.

    Always names the booking's confirmation number so support can
    reconcile manually. Never retried, never suppressed.
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Payment reconciliation failed.'
    default_code = 'reconciliation_failed'

    def __init__(self, message: str, confirmation_number: str):
        if confirmation_number not in message:
            message = f"{message} (booking confirmation: {confirmation_number})"
        super().__init__(detail=message)
        self.confirmation_number = confirmation_number

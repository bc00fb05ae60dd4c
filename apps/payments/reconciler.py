"""
Payment Reconciler

Keeps Payment rows in step with the payment gateway.

Verification is exact: an intent must have status "succeeded" and its
amount in cents must equal int(expected * 100). No rounding, no tolerance.

Refunds walk the booking's payments most-recent-first, taking from each
row at most what is still unrefunded, strictly one row at a time so the
refunded_amount bookkeeping stays consistent. Anything that cannot be
covered is a FatalReconciliationError: money may already have moved for
the rows processed before the failure.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, Optional, Tuple

import structlog
from django.conf import settings  # type: ignore
from django.db import DatabaseError  # type: ignore

from shared.domain.exceptions import (
    ConflictError,
    FatalReconciliationError,
    PaymentVerificationError,
)
from shared.domain.value_objects import to_minor_units

from .gateways import PaymentGateway, PaymentGatewayError, PaymentIntent, get_payment_gateway
from .models import Payment

logger = structlog.get_logger(__name__)

MODIFY_BOOKING_REASON = "MODIFY_BOOKING"
ZERO = Decimal("0.00")


class PaymentReconciler:
    """Gateway intents, verification, refunds and surcharges for bookings."""

    def __init__(self, gateway: PaymentGateway | None = None, currency: str | None = None):
        self.gateway = gateway or get_payment_gateway()
        self.currency = (currency or settings.PAYMENT_CURRENCY).lower()

    # ===== Intents =====

    @staticmethod
    def _metadata(booking, reason: str | None = None) -> Dict[str, str]:
        metadata = {
            "bookingId": str(booking.pk),
            "confirmationNumber": booking.confirmation_number,
        }
        if reason:
            metadata["reason"] = reason
        return metadata

    def _create_intent(self, booking, amount: Decimal, reason: str | None = None) -> PaymentIntent:
        try:
            intent = self.gateway.create_intent(
                to_minor_units(amount),
                self.currency,
                self._metadata(booking, reason),
            )
        except PaymentGatewayError as e:
            raise PaymentVerificationError(f"Failed to create payment intent: {e}") from e

        logger.info(
            "payment_intent.created",
            confirmation_number=booking.confirmation_number,
            intent_id=intent.id,
            amount=str(amount),
            reason=reason or "BOOKING",
        )
        return intent

    def create_intent_for_booking(self, booking) -> PaymentIntent:
        """Intent for the booking's full total (initial charge)"""
        return self._create_intent(booking, booking.total_price)

    def create_surcharge_intent(self, booking, amount: Decimal) -> PaymentIntent:
        """Intent for the extra amount a modification costs"""
        return self._create_intent(booking, amount, reason=MODIFY_BOOKING_REASON)

    def verify_intent(self, intent_id: str, expected_amount: Decimal, booking=None) -> PaymentIntent:
        """
        Check that the intent succeeded for exactly expected_amount.

        With a booking, an intent whose bookingId metadata names a
        different booking is rejected too.

        Raises:
            PaymentVerificationError: Missing id, gateway failure, status not
                succeeded, or amount mismatch (message shows both amounts)
            ConflictError: Intent was created for another booking
        """
        if not intent_id:
            raise PaymentVerificationError("A payment intent id is required to verify payment")

        try:
            intent = self.gateway.retrieve_intent(intent_id)
        except PaymentGatewayError as e:
            raise PaymentVerificationError(f"Failed to verify payment with gateway: {e}") from e

        if not intent.succeeded:
            raise PaymentVerificationError(
                f"Payment not confirmed by gateway. Payment status: {intent.status}"
            )

        expected_minor = to_minor_units(expected_amount)
        if intent.amount != expected_minor:
            raise PaymentVerificationError(
                f"Payment amount mismatch. Expected: {expected_minor} cents, "
                f"Got: {intent.amount} cents"
            )

        owner = intent.metadata.get("bookingId")
        if booking is not None and owner and owner != str(booking.pk):
            raise ConflictError(
                f"Payment intent {intent_id} was created for another booking"
            )
        return intent

    # ===== Payment rows =====

    def payment_for_reference(self, external_reference: str) -> Payment | None:
        return Payment.objects.filter(external_reference=external_reference).first()

    def ensure_reference_unclaimed(self, booking, external_reference: str):
        """
        Raises:
            ConflictError: A Payment row for the reference belongs to another booking
        """
        existing = self.payment_for_reference(external_reference)
        if existing is not None and existing.booking_id != booking.pk:
            raise ConflictError(
                f"Payment intent {external_reference} has already been applied to another booking"
            )
        return existing

    def record_payment(self, booking, external_reference: str, amount: Decimal) -> Tuple[Payment, bool]:
        """
        Insert a COMPLETED Payment row unless one exists for the reference.

        An existing row is returned only when it belongs to this booking;
        a row recorded against another booking raises ConflictError, so one
        charge never backs two bookings.

        Returns (payment, created).
        """
        existing = self.ensure_reference_unclaimed(booking, external_reference)
        if existing is not None:
            logger.info(
                "payment.duplicate_skipped",
                confirmation_number=booking.confirmation_number,
                external_reference=external_reference,
            )
            return existing, False

        payment = Payment.objects.create(
            booking=booking,
            user_id=booking.user_id,
            external_reference=external_reference,
            amount=amount,
            currency=self.currency,
            status=Payment.Status.COMPLETED,
        )
        logger.info(
            "payment.recorded",
            confirmation_number=booking.confirmation_number,
            external_reference=external_reference,
            amount=str(amount),
        )
        return payment, True

    # ===== Price changes =====

    def apply_price_delta(self, booking, delta: Decimal, intent_id: Optional[str] = None) -> Payment | None:
        """
        Settle a change in booking price.

        delta < 0 refunds |delta| across the booking's payments, delta > 0
        charges a verified surcharge, zero does nothing.
        """
        if delta < 0:
            self.refund(booking, -delta)
            return None

        if delta > 0:
            if not intent_id:
                raise PaymentVerificationError(
                    f"Additional payment of {delta} {self.currency.upper()} is required "
                    f"to extend booking {booking.confirmation_number}"
                )
            return self.apply_surcharge(booking, delta, intent_id)

        return None

    def apply_surcharge(self, booking, amount: Decimal, intent_id: str) -> Payment:
        if self.payment_for_reference(intent_id) is not None:
            raise ConflictError(
                f"Payment intent {intent_id} has already been applied to a booking"
            )

        self.verify_intent(intent_id, amount, booking=booking)
        payment, _ = self.record_payment(booking, intent_id, amount)
        return payment

    # ===== Refunds =====

    def _issue_refund(self, booking, intent_id: str, amount: Decimal) -> None:
        try:
            refund = self.gateway.create_refund(intent_id, to_minor_units(amount))
        except PaymentGatewayError as e:
            logger.error(
                "refund.gateway_failed",
                confirmation_number=booking.confirmation_number,
                intent_id=intent_id,
                amount=str(amount),
                error=str(e),
            )
            raise FatalReconciliationError(
                "Failed to process refund. Please contact support with booking confirmation: "
                f"{booking.confirmation_number}",
                booking.confirmation_number,
            ) from e

        logger.info(
            "refund.issued",
            confirmation_number=booking.confirmation_number,
            intent_id=intent_id,
            refund_id=refund.id,
            amount=str(amount),
        )

    def refund(self, booking, amount: Decimal) -> Decimal:
        """
        Refund amount across the booking's payments, newest first.

        Returns the amount refunded (always equal to amount on success).

        Raises:
            FatalReconciliationError: If the gateway fails or the payments
                cannot cover the full amount
        """
        if amount <= 0:
            return ZERO

        payments = list(Payment.objects.filter(booking=booking).order_by("-created_at", "-id"))
        remaining = amount

        for payment in payments:
            if remaining <= 0:
                break

            refundable = payment.refundable_amount
            if refundable <= 0:
                continue

            portion = min(remaining, refundable)
            self._issue_refund(booking, payment.external_reference, portion)
            try:
                payment.record_refund(portion)
            except DatabaseError as e:
                raise FatalReconciliationError(
                    f"Refund of {portion} issued for payment {payment.external_reference} but could "
                    "not be recorded. Please contact support with booking confirmation: "
                    f"{booking.confirmation_number}",
                    booking.confirmation_number,
                ) from e
            remaining -= portion

        # Bookings confirmed before payment rows existed only carry the intent id
        if remaining > 0 and not payments and booking.payment_intent_id:
            self._issue_refund(booking, booking.payment_intent_id, remaining)
            remaining = ZERO

        if remaining > 0:
            logger.error(
                "refund.uncovered",
                confirmation_number=booking.confirmation_number,
                requested=str(amount),
                uncovered=str(remaining),
            )
            raise FatalReconciliationError(
                f"Unable to process full refund: {remaining} of {amount} could not be refunded. "
                f"Please contact support with booking confirmation: {booking.confirmation_number}",
                booking.confirmation_number,
            )

        return amount

"""Payment models for Tipton Reservations."""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Payment(models.Model):
    """A charge captured at the gateway for a booking.

    A booking owns one row for its initial charge plus one per
    modification surcharge. Rows are only mutated by refunds.
    """

    class Status(models.TextChoices):
        PENDING = "PENDING", _("Pending")
        COMPLETED = "COMPLETED", _("Completed")
        PARTIALLY_REFUNDED = "PARTIALLY_REFUNDED", _("Partially refunded")
        REFUNDED = "REFUNDED", _("Refunded")
        FAILED = "FAILED", _("Failed")

    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.PROTECT,
        related_name="payments",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="payments",
    )
    external_reference = models.CharField(
        max_length=255,
        unique=True,
        help_text=_("Payment intent id at the gateway."),
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default="usd")
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    refunded_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    refunded_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Payment")
        verbose_name_plural = _("Payments")
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["booking", "created_at"], name="payment_booking_created_idx"),
        ]

    def __str__(self) -> str:
        return f"Payment {self.external_reference} for booking {self.booking_id} ({self.status})"

    @property
    def refundable_amount(self) -> Decimal:
        """What is still refundable on this row"""
        if self.status in (self.Status.REFUNDED, self.Status.FAILED):
            return Decimal("0.00")
        return max(self.amount - (self.refunded_amount or Decimal("0.00")), Decimal("0.00"))

    def record_refund(self, amount: Decimal) -> None:
        """Book a refund already issued at the gateway against this row."""
        self.refunded_amount = (self.refunded_amount or Decimal("0.00")) + amount
        self.refunded_at = timezone.now()
        if self.refunded_amount >= self.amount:
            self.status = self.Status.REFUNDED
        else:
            self.status = self.Status.PARTIALLY_REFUNDED
        self.save(update_fields=["refunded_amount", "refunded_at", "status", "updated_at"])

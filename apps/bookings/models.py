"""Booking domain models for Tipton Reservations."""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.exceptions import ConflictError
from shared.domain.value_objects import DateRange


class Booking(models.Model):
    """A guest's reservation of a room type, and once allocated, a room."""

    class Status(models.TextChoices):
        PENDING = "PENDING", _("Awaiting payment")
        CONFIRMED = "CONFIRMED", _("Confirmed")
        CANCELLED = "CANCELLED", _("Cancelled")
        VOIDED = "VOIDED", _("Voided")
        COMPLETED = "COMPLETED", _("Completed")

    # (current status, action) -> next status. Anything missing is rejected.
    TRANSITIONS = {
        (Status.PENDING, "confirm"): Status.CONFIRMED,
        (Status.PENDING, "void"): Status.VOIDED,
        (Status.CONFIRMED, "cancel"): Status.CANCELLED,
        (Status.CONFIRMED, "modify"): Status.CONFIRMED,
        (Status.CONFIRMED, "complete"): Status.COMPLETED,
    }
    TERMINAL_STATUSES = (Status.CANCELLED, Status.VOIDED, Status.COMPLETED)

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    room_type = models.ForeignKey(
        "rooms.RoomType",
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    room = models.ForeignKey(
        "rooms.Room",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="bookings",
    )
    confirmation_number = models.CharField(max_length=12, unique=True, editable=False)
    check_in = models.DateField()
    check_out = models.DateField()
    number_of_guests = models.PositiveSmallIntegerField(default=1)
    total_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
    )
    payment_intent_id = models.CharField(
        max_length=255,
        blank=True,
        help_text=_("Gateway reference of the initial charge."),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(check_out__gt=models.F("check_in")),
                name="booking_valid_dates",
            ),
        ]
        indexes = [
            models.Index(fields=["room", "check_in", "check_out"], name="booking_room_dates_idx"),
            models.Index(fields=["room_type", "status"], name="booking_type_status_idx"),
            models.Index(fields=["status"], name="booking_status_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking {self.confirmation_number} ({self.status})"

    @property
    def dates(self) -> DateRange:
        return DateRange(self.check_in, self.check_out)

    @property
    def nights(self) -> int:
        return len(self.dates)

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES

    def next_status(self, action: str) -> str:
        """
        Status the booking would move to after action.

        Raises:
            ConflictError: If the state machine has no such transition
        """
        try:
            return self.TRANSITIONS[(self.status, action)]
        except KeyError:
            raise ConflictError(
                f"Cannot {action} booking {self.confirmation_number}: "
                f"current status is {self.status}"
            )

    def apply_transition(self, action: str) -> str:
        self.status = self.next_status(action)
        return self.status

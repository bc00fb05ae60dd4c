"""Room catalog models for Tipton Reservations."""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class RoomType(models.Model):
    """A category of rooms sharing price, occupancy and amenities."""

    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    base_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text=_("Price per night."),
    )
    max_occupancy = models.PositiveSmallIntegerField(validators=[MinValueValidator(1)])
    image_urls = models.JSONField(default=list, blank=True)
    amenities = models.JSONField(
        default=list,
        blank=True,
        help_text=_("List of {name, icon_code, description} objects."),
    )
    active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Room type")
        verbose_name_plural = _("Room types")
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Room(models.Model):
    """A physical room unit of a given type."""

    class Status(models.TextChoices):
        AVAILABLE = "AVAILABLE", _("Available")
        OCCUPIED = "OCCUPIED", _("Occupied")
        MAINTENANCE = "MAINTENANCE", _("Maintenance")

    room_type = models.ForeignKey(
        RoomType,
        on_delete=models.PROTECT,
        related_name="rooms",
    )
    room_number = models.CharField(max_length=10)
    floor = models.SmallIntegerField()
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.AVAILABLE,
    )

    class Meta:
        verbose_name = _("Room")
        verbose_name_plural = _("Rooms")
        ordering = ["id"]
        constraints = [
            models.UniqueConstraint(
                fields=["room_number", "floor"],
                name="room_number_floor_unique",
            ),
        ]
        indexes = [
            models.Index(fields=["room_type", "status"], name="room_type_status_idx"),
        ]

    def __str__(self) -> str:
        return f"Room {self.room_number} ({self.room_type_id})"

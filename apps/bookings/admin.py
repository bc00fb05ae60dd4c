"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "confirmation_number",
        "user",
        "room_type",
        "room",
        "status",
        "check_in",
        "check_out",
        "number_of_guests",
        "total_price",
        "created_at",
    )
    list_filter = ("status", "room_type", "check_in", "check_out")
    search_fields = ("confirmation_number", "user__email", "user__username", "payment_intent_id")
    readonly_fields = (
        "confirmation_number",
        "payment_intent_id",
        "total_price",
        "created_at",
        "updated_at",
    )

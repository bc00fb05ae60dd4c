"""Admin registration for payments."""

from __future__ import annotations

from django.contrib import admin

from .models import Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = (
        "external_reference",
        "booking",
        "user",
        "amount",
        "refunded_amount",
        "currency",
        "status",
        "created_at",
    )
    list_filter = ("status", "currency")
    search_fields = ("external_reference", "booking__confirmation_number", "user__email")
    readonly_fields = (
        "external_reference",
        "amount",
        "refunded_amount",
        "refunded_at",
        "created_at",
        "updated_at",
    )

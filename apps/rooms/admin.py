"""Admin registrations for the room catalog."""

from __future__ import annotations

from django.contrib import admin

from .models import Room, RoomType


class RoomInline(admin.TabularInline):
    model = Room
    extra = 0
    fields = ("room_number", "floor", "status")


@admin.register(RoomType)
class RoomTypeAdmin(admin.ModelAdmin):
    list_display = ("name", "base_price", "max_occupancy", "active")
    list_filter = ("active",)
    search_fields = ("name",)
    inlines = (RoomInline,)
    readonly_fields = ("created_at", "updated_at")


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = ("room_number", "floor", "room_type", "status")
    list_filter = ("status", "room_type", "floor")
    search_fields = ("room_number", "room_type__name")

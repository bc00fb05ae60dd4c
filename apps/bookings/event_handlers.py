"""
Booking Event Handlers

Audit trail for booking state changes. Events arrive through the shared
message bus after the database commit that produced them.
"""

from __future__ import annotations

import structlog

from shared.application.message_bus import MessageBus
from shared.domain.base import DomainEvent

from .domain.events import (
    BookingCancelled,
    BookingCompleted,
    BookingConfirmed,
    BookingCreated,
    BookingModified,
    BookingVoided,
)

logger = structlog.get_logger("apps.bookings.audit")

AUDITED_EVENTS = (
    BookingCreated,
    BookingConfirmed,
    BookingModified,
    BookingCancelled,
    BookingVoided,
    BookingCompleted,
)


def audit_booking_event(event: DomainEvent) -> None:
    payload = event.to_dict()
    if isinstance(event, BookingModified):
        payload["price_delta"] = str(event.price_delta)
    logger.info("booking.audit", **payload)


def register_event_handlers(bus: MessageBus) -> None:
    for event_type in AUDITED_EVENTS:
        bus.register_event_handler(event_type, audit_booking_event)

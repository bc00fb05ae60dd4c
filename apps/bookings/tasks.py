"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging
from datetime import timedelta

from celery import shared_task  # type: ignore
from django.conf import settings  # type: ignore
from django.utils import timezone  # type: ignore

from .application.authorization import AuthContext
from .application.orchestrator import BookingOrchestrator
from .domain.policies import hotel_today
from .models import Booking

logger = logging.getLogger(__name__)

ABANDONED_REASON = "Payment not completed in time"


# ============================================================================
# PERIODIC TASKS (run by Celery beat, see config/celery.py)
# ============================================================================

@shared_task(name="bookings.void_abandoned_bookings")
def void_abandoned_bookings() -> dict[str, int]:
    """
    Void PENDING bookings whose payment was never completed.

    A booking counts as abandoned once it has been PENDING for longer
    than PENDING_BOOKING_TTL_MINUTES. Voiding releases its room.

    Returns:
        dict: {"voided": number voided, "failed": number that raised}
    """
    cutoff = timezone.now() - timedelta(minutes=settings.PENDING_BOOKING_TTL_MINUTES)
    orchestrator = BookingOrchestrator()
    auth = AuthContext.system()
    voided = failed = 0

    stale_ids = Booking.objects.filter(
        status=Booking.Status.PENDING,
        created_at__lte=cutoff,
    ).values_list("id", flat=True)

    for booking_id in list(stale_ids):
        try:
            orchestrator.void_booking(auth, booking_id, reason=ABANDONED_REASON)
            voided += 1
        except Exception as e:
            failed += 1
            logger.error(f"Error voiding abandoned booking {booking_id}: {e}", exc_info=True)

    if voided:
        logger.info(f"Voided {voided} abandoned pending bookings")

    return {"voided": voided, "failed": failed}


@shared_task(name="bookings.complete_finished_bookings")
def complete_finished_bookings() -> dict[str, int]:
    """
    Mark CONFIRMED bookings COMPLETED once the stay is over.

    A stay is over when its check-out date is before today in the
    hotel's time zone.

    Returns:
        dict: {"completed": number completed, "failed": number that raised}
    """
    today = hotel_today(timezone.now())
    orchestrator = BookingOrchestrator()
    auth = AuthContext.system()
    completed = failed = 0

    finished_ids = Booking.objects.filter(
        status=Booking.Status.CONFIRMED,
        check_out__lt=today,
    ).values_list("id", flat=True)

    for booking_id in list(finished_ids):
        try:
            orchestrator.complete_booking(auth, booking_id)
            completed += 1
        except Exception as e:
            failed += 1
            logger.error(f"Error completing booking {booking_id}: {e}", exc_info=True)

    if completed:
        logger.info(f"Completed {completed} finished bookings")

    return {"completed": completed, "failed": failed}

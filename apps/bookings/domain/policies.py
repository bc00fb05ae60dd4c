"""
Booking Policies

Pure rules for stay dates, pricing and the change cutoff.

All timing decisions are made in the hotel's own time zone
(settings.HOTEL_TIME_ZONE), never the caller's. Check-in is pinned at
settings.HOTEL_CHECK_IN_HOUR local time; cancellations and modifications
must happen at least BOOKING_CHANGE_CUTOFF_HOURS before that moment.
"""

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

from django.conf import settings

from shared.domain.exceptions import ValidationError
from shared.domain.value_objects import DateRange, Money


def hotel_zone() -> ZoneInfo:
    return ZoneInfo(settings.HOTEL_TIME_ZONE)


def hotel_today(now: datetime) -> date:
    """Calendar date at the hotel for an aware instant"""
    return now.astimezone(hotel_zone()).date()


def check_in_moment(check_in: date) -> datetime:
    """Aware datetime of check-in time on the given day, hotel-local"""
    return datetime.combine(check_in, time(hour=settings.HOTEL_CHECK_IN_HOUR), tzinfo=hotel_zone())


def format_hotel_time(moment: datetime) -> str:
    """Render like 'Jun 1, 2025 at 3:00 PM PDT'"""
    local = moment.astimezone(hotel_zone())
    hour = local.hour % 12 or 12
    return f"{local:%b} {local.day}, {local.year} at {hour}:{local:%M %p %Z}"


def validate_stay_dates(check_in: date | None, check_out: date | None, today: date) -> DateRange:
    """
    Validate a requested stay and return it as a DateRange.

    Raises:
        ValidationError: If a date is missing, check-out is not after
            check-in, or check-in is before today (hotel-local)
    """
    if check_in is None or check_out is None:
        raise ValidationError("Check-in and check-out dates are required")

    if check_out <= check_in:
        raise ValidationError("Check-out date must be after check-in date")

    if check_in < today:
        raise ValidationError(
            f"Check-in date {check_in.isoformat()} is in the past "
            f"(hotel date is {today.isoformat()})"
        )

    return DateRange(check_in, check_out)


def validate_guest_count(guests: int | None, max_occupancy: int) -> None:
    if guests is None or guests < 1:
        raise ValidationError("Number of guests must be at least 1")

    if guests > max_occupancy:
        raise ValidationError(
            f"Number of guests ({guests}) exceeds maximum occupancy "
            f"({max_occupancy}) for this room type"
        )


def calculate_total_price(base_price: Decimal, dates: DateRange, currency: str) -> Money:
    """base_price per night times whole nights; no partial-night billing"""
    return Money(base_price, currency) * len(dates)


def ensure_outside_change_cutoff(check_in: date, now: datetime, action: str) -> None:
    """
    Reject a change made too close to check-in.

    Args:
        check_in: The booking's current check-in date
        now: Aware current instant
        action: Human label for the error message ("Cancellations", "Modifications")

    Raises:
        ValidationError: If less than the cutoff remains before check-in
    """
    cutoff_hours = settings.BOOKING_CHANGE_CUTOFF_HOURS
    check_in_at = check_in_moment(check_in)

    if check_in_at - now < timedelta(hours=cutoff_hours):
        raise ValidationError(
            f"{action} must be made at least {cutoff_hours} hours before check-in time "
            f"(hotel local time). Check-in is at {format_hotel_time(check_in_at)}"
        )


def ensure_not_started(check_in: date, now: datetime) -> None:
    today = hotel_today(now)
    if check_in <= today:
        raise ValidationError("Cannot modify a booking that has already started or is starting today")

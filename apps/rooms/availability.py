"""
Room Availability Index

Decides which physical room a stay request gets. A room is free for a
stay when its status is AVAILABLE and no PENDING or CONFIRMED booking on
that room overlaps the half-open interval [check_in, check_out):

    existing.check_in < new.check_out AND existing.check_out > new.check_in

Back-to-back stays therefore don't conflict. Allocation always picks the
first qualifying room by id; there is no load balancing between rooms.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List
import logging

from django.db.models import Q, QuerySet  # type: ignore

from shared.domain.exceptions import ConflictError
from shared.domain.value_objects import DateRange

from .models import Room, RoomType

logger = logging.getLogger(__name__)


def _blocking_statuses() -> Iterable[str]:
    from apps.bookings.models import Booking  # Local import to prevent circular dependency

    return (Booking.Status.PENDING, Booking.Status.CONFIRMED)


def _overlap_filter(dates: DateRange) -> Q:
    return Q(check_in__lt=dates.end_date) & Q(check_out__gt=dates.start_date)


@dataclass(frozen=True)
class RoomTypeAvailability:
    """A room type paired with how many of its rooms are free."""
    room_type: RoomType
    available_count: int


class RoomAvailabilityIndex:
    """Finds and counts free rooms for a room type and stay."""

    def blocking_bookings(self, dates: DateRange) -> QuerySet:
        """PENDING/CONFIRMED bookings overlapping the stay, any room."""
        from apps.bookings.models import Booking

        return Booking.objects.filter(status__in=_blocking_statuses()).filter(_overlap_filter(dates))

    def overlapping_bookings(
        self,
        room_id,
        dates: DateRange,
        *,
        exclude_booking_id=None,
        statuses: Iterable[str] | None = None,
    ) -> QuerySet:
        """Bookings on one room overlapping the stay."""
        from apps.bookings.models import Booking

        queryset = Booking.objects.filter(
            room_id=room_id,
            status__in=statuses if statuses is not None else _blocking_statuses(),
        ).filter(_overlap_filter(dates))

        if exclude_booking_id is not None:
            queryset = queryset.exclude(pk=exclude_booking_id)
        return queryset

    def is_room_free(self, room_id, dates: DateRange, *, exclude_booking_id=None) -> bool:
        return not self.overlapping_bookings(
            room_id,
            dates,
            exclude_booking_id=exclude_booking_id,
        ).exists()

    def _free_rooms(self, room_type_id, dates: DateRange) -> QuerySet:
        booked_room_ids = (
            self.blocking_bookings(dates)
            .filter(room_type_id=room_type_id, room_id__isnull=False)
            .values("room_id")
        )
        return (
            Room.objects.filter(room_type_id=room_type_id, status=Room.Status.AVAILABLE)
            .exclude(pk__in=booked_room_ids)
            .order_by("id")
        )

    def find_available_room(self, room_type_id, dates: DateRange) -> Room:
        """
        Return the first free room of the type for the stay.

        Raises:
            ConflictError: If every room of the type is taken or out of service
        """
        room = self._free_rooms(room_type_id, dates).first()
        if room is None:
            logger.info(f"No free room of type {room_type_id} for {dates}")
            raise ConflictError("No rooms available for this room type during the selected dates")
        return room

    def count_available(self, room_type_id, dates: DateRange) -> int:
        return self._free_rooms(room_type_id, dates).count()

    def list_available_room_types(self, dates: DateRange, guests: int) -> List[RoomTypeAvailability]:
        """Active room types that fit the party and have at least one free room."""
        results = []
        room_types = RoomType.objects.filter(active=True, max_occupancy__gte=guests).order_by("name")
        for room_type in room_types:
            available = self.count_available(room_type.pk, dates)
            if available > 0:
                results.append(RoomTypeAvailability(room_type=room_type, available_count=available))
        return results

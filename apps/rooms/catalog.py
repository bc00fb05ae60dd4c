"""Read access to the room-type catalog."""

from __future__ import annotations

from shared.domain.exceptions import NotFoundError

from .models import RoomType


class RoomTypeCatalog:
    """Looks up room types; maintenance of the catalog happens elsewhere."""

    def find_by_id(self, room_type_id) -> RoomType:
        try:
            return RoomType.objects.get(pk=room_type_id)
        except (RoomType.DoesNotExist, ValueError, TypeError):
            raise NotFoundError(f"Room type not found with ID: {room_type_id}")

"""Rooms app package.

This app holds the hotel's room catalog (room types and the physical
rooms that belong to them) and the availability index that decides
which room a stay request is allocated to. Availability is derived from
overlap with existing PENDING/CONFIRMED bookings rather than from the
room status field alone.
"""

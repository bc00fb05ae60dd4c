"""
Shared Kernel

Value objects, errors, the unit of work and the message bus used by the
rooms, bookings and payments apps of the reservation engine.
"""

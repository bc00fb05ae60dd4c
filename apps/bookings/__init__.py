"""Bookings app package.

This app owns the booking lifecycle of the reservation engine: the
Booking model and its state machine, the ledger that persists it, the
hotel-local date and cutoff policies, and the orchestrator whose command
handlers create, confirm, modify, cancel and void bookings against the
payment gateway.
"""

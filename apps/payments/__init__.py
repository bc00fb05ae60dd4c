"""Payments app package.

This app owns the Payment rows recorded against bookings and the
reconciliation logic that keeps them in step with the external payment
gateway: verifying intents before a booking is confirmed, charging
surcharges and splitting refunds across several payment rows.
"""

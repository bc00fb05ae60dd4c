"""Users package.

Guest accounts are Django's standard auth users; registration, login and
profile CRUD are handled outside the reservation engine. This package
only exposes the read-side directory the booking workflows depend on.
"""

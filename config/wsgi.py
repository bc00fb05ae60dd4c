"""WSGI config for Tipton Reservations.

Exposes the WSGI application used by Django's runserver and production
WSGI servers (the admin is the only HTTP surface of this project).
"""

import os
from django.core.wsgi import get_wsgi_application  # type: ignore

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.dev')

application = get_wsgi_application()

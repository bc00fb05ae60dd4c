"""Test settings for Tipton Reservations.

In-memory SQLite, eager Celery and no real payment gateway: tests that
need one inject a fake through the reconciler.
"""

from .base import *  # noqa: F401,F403

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

PAYMENT_GATEWAY_CLASS = 'apps.payments.tests.fakes.FakePaymentGateway'
STRIPE_API_KEY = 'sk_test_placeholder'

HOTEL_TIME_ZONE = 'America/Los_Angeles'
HOTEL_CHECK_IN_HOUR = 15
BOOKING_CHANGE_CUTOFF_HOURS = 24
BOOKING_SAVE_MAX_ATTEMPTS = 3

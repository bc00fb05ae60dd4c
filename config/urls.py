"""URL configuration for Tipton Reservations.

The reservation engine is driven through BookingOrchestrator by the API
layer that fronts it; this project only mounts the Django admin.
"""
from django.contrib import admin  # type: ignore
from django.urls import path  # type: ignore

urlpatterns = [
    path('admin/', admin.site.urls),
]

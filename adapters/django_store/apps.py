"""
Lodging Django Store — App Configuration
=========================================
ORM-backed InventoryStore and BookingStore.

This app:
- Persists hotel room inventory and bookings
- Provides the conditional UPDATE used by reserve/release
- Provides row-locked read-modify-write for booking transitions

This app does NOT:
- Make booking decisions (engines own those)
- Publish events
"""

from django.apps import AppConfig


class DjangoStoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "adapters.django_store"
    label = "lodging_store"
    verbose_name = "Lodging Reservation Store"

"""
Lodging Django Store — ORM Models
==================================
Storage rows only. This file contains NO business logic.

RULES:
- available_units is only ever changed through ONE conditional UPDATE
  (see stores.DjangoInventoryStore), never by load-modify-save
- bookings are never deleted; terminal states are statuses
- booking reference is unique at the database level
"""

from django.db import models


# ══════════════════════════════════════════════════════════════
# INVENTORY
# ══════════════════════════════════════════════════════════════

class HotelRecord(models.Model):
    hotel_id = models.CharField(max_length=64, primary_key=True)
    owner_id = models.CharField(max_length=255)
    name = models.CharField(max_length=255, blank=True, default="")
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "lodging_hotel"

    def __str__(self):
        return f"{self.name or self.hotel_id} ({self.owner_id})"


class RoomInventoryRecord(models.Model):
    hotel = models.ForeignKey(
        HotelRecord,
        on_delete=models.CASCADE,
        related_name="rooms",
    )
    room_type = models.CharField(max_length=64)
    unit_price = models.PositiveIntegerField(
        help_text="Price per unit per night, whole currency units.",
    )
    total_units = models.PositiveIntegerField()
    available_units = models.PositiveIntegerField(
        help_text="0 <= available_units <= total_units at all times.",
    )
    max_occupancy_per_unit = models.PositiveSmallIntegerField()

    class Meta:
        db_table = "lodging_room_inventory"
        constraints = [
            models.UniqueConstraint(
                fields=("hotel", "room_type"),
                name="uq_room_hotel_type",
            ),
        ]

    def __str__(self):
        return f"{self.hotel_id}/{self.room_type} {self.available_units}/{self.total_units}"


# ══════════════════════════════════════════════════════════════
# BOOKINGS
# ══════════════════════════════════════════════════════════════

class BookingQuerySet(models.QuerySet):
    def delete(self):
        raise PermissionError("Bookings are never deleted; cancel them instead.")


class BookingRecord(models.Model):
    """
    One booking. Query columns are denormalized out of `data`;
    `data` holds the full Booking.to_dict() snapshot.
    """

    booking_id = models.CharField(max_length=64, primary_key=True)
    reference = models.CharField(max_length=64, unique=True)
    user_id = models.CharField(max_length=255)
    hotel_id = models.CharField(max_length=64)
    status = models.CharField(max_length=20)
    payment_status = models.CharField(max_length=20)
    created_at = models.DateTimeField()
    updated_at = models.DateTimeField(auto_now=True)
    data = models.JSONField()

    objects = BookingQuerySet.as_manager()

    class Meta:
        db_table = "lodging_booking"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["user_id", "created_at"],
                name="idx_booking_user_created",
            ),
            models.Index(
                fields=["hotel_id", "created_at"],
                name="idx_booking_hotel_created",
            ),
            models.Index(
                fields=["payment_status"],
                name="idx_booking_payment_status",
            ),
        ]

    def delete(self, *args, **kwargs):
        raise PermissionError("Bookings are never deleted; cancel them instead.")

    def __str__(self):
        return f"[{self.reference}] {self.booking_id} ({self.status})"

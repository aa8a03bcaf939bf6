"""
Lodging Django Store — ORM Store Implementations
=================================================
DjangoInventoryStore:
    conditional_decrement is ONE statement:

        UPDATE lodging_room_inventory
           SET available_units = available_units - :qty
         WHERE hotel_id = :hotel AND room_type = :type
           AND available_units >= :qty

    so two concurrent reserves for the last unit cannot both match.

DjangoBookingStore:
    mutate locks the booking row (select_for_update) inside
    transaction.atomic(); an exception from the mutation rolls back.

The caller owns all validation. These stores never interpret state.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from django.db import IntegrityError, transaction
from django.db.models import F
from django.db.models.functions import Least

from adapters.django_store.models import BookingRecord, HotelRecord, RoomInventoryRecord
from core.errors import DuplicateReference, NotFound
from engines.hotel_inventory.models import HotelInventory, RoomInventory
from engines.hotel_reservation.models import Booking, BookingStatus, PaymentStatus
from engines.hotel_reservation.store import Mutation

logger = logging.getLogger("lodging.adapters.django_store")


def _to_room(record: RoomInventoryRecord) -> RoomInventory:
    return RoomInventory(
        room_type=record.room_type,
        unit_price=record.unit_price,
        total_units=record.total_units,
        available_units=record.available_units,
        max_occupancy_per_unit=record.max_occupancy_per_unit,
    )


# ══════════════════════════════════════════════════════════════
# INVENTORY
# ══════════════════════════════════════════════════════════════

class DjangoInventoryStore:

    def add_hotel(self, hotel: HotelInventory) -> None:
        with transaction.atomic():
            HotelRecord.objects.update_or_create(
                hotel_id=hotel.hotel_id,
                defaults={
                    "owner_id": hotel.owner_id,
                    "name": hotel.name,
                    "is_active": hotel.is_active,
                },
            )
            for room in hotel.rooms.values():
                RoomInventoryRecord.objects.update_or_create(
                    hotel_id=hotel.hotel_id,
                    room_type=room.room_type,
                    defaults={
                        "unit_price": room.unit_price,
                        "total_units": room.total_units,
                        "available_units": room.available_units,
                        "max_occupancy_per_unit": room.max_occupancy_per_unit,
                    },
                )

    def get_hotel(self, hotel_id: str) -> Optional[HotelInventory]:
        record = (
            HotelRecord.objects.filter(hotel_id=hotel_id)
            .prefetch_related("rooms")
            .first()
        )
        if record is None:
            return None
        return HotelInventory(
            hotel_id=record.hotel_id,
            owner_id=record.owner_id,
            rooms={r.room_type: _to_room(r) for r in record.rooms.all()},
            is_active=record.is_active,
            name=record.name,
        )

    def get_room(self, hotel_id: str, room_type: str) -> Optional[RoomInventory]:
        record = self._rooms(hotel_id, room_type).first()
        return _to_room(record) if record else None

    def conditional_decrement(
        self, hotel_id: str, room_type: str, quantity: int
    ) -> Optional[int]:
        rooms = self._rooms(hotel_id, room_type)
        with transaction.atomic():
            updated = rooms.filter(available_units__gte=quantity).update(
                available_units=F("available_units") - quantity,
            )
            if updated == 0:
                if not rooms.exists():
                    raise KeyError((hotel_id, room_type))
                return None
            return rooms.values_list("available_units", flat=True).get()

    def clamped_increment(self, hotel_id: str, room_type: str, quantity: int) -> int:
        rooms = self._rooms(hotel_id, room_type)
        with transaction.atomic():
            updated = rooms.update(
                available_units=Least(F("available_units") + quantity, F("total_units")),
            )
            if updated == 0:
                raise KeyError((hotel_id, room_type))
            return rooms.values_list("available_units", flat=True).get()

    @staticmethod
    def _rooms(hotel_id: str, room_type: str):
        return RoomInventoryRecord.objects.filter(hotel_id=hotel_id, room_type=room_type)


# ══════════════════════════════════════════════════════════════
# BOOKINGS
# ══════════════════════════════════════════════════════════════

class DjangoBookingStore:

    def add(self, booking: Booking) -> None:
        try:
            with transaction.atomic():
                BookingRecord.objects.create(
                    booking_id=booking.booking_id,
                    reference=booking.reference,
                    user_id=booking.user_id,
                    hotel_id=booking.hotel_id,
                    status=booking.status.value,
                    payment_status=booking.payment_status.value,
                    created_at=booking.created_at,
                    data=booking.to_dict(),
                )
        except IntegrityError:
            if BookingRecord.objects.filter(reference=booking.reference).exists():
                raise DuplicateReference(booking.reference) from None
            raise

    def get(self, booking_id: str) -> Optional[Booking]:
        record = BookingRecord.objects.filter(booking_id=booking_id).first()
        return Booking.from_dict(record.data) if record else None

    def mutate(self, booking_id: str, fn: Mutation) -> Booking:
        with transaction.atomic():
            record = (
                BookingRecord.objects.select_for_update()
                .filter(booking_id=booking_id)
                .first()
            )
            if record is None:
                raise NotFound("Booking", booking_id)
            booking = Booking.from_dict(record.data)
            fn(booking)
            if booking.reference != record.reference:
                raise ValueError("booking reference is immutable.")
            record.status = booking.status.value
            record.payment_status = booking.payment_status.value
            record.data = booking.to_dict()
            record.save(update_fields=["status", "payment_status", "data", "updated_at"])
        logger.debug(
            f"Booking {booking_id} written: {booking.status.value}/"
            f"{booking.payment_status.value}"
        )
        return booking

    def find(
        self,
        *,
        user_id: Optional[str] = None,
        hotel_id: Optional[str] = None,
        statuses: Optional[Iterable[BookingStatus]] = None,
        payment_statuses: Optional[Iterable[PaymentStatus]] = None,
    ) -> List[Booking]:
        query = BookingRecord.objects.all()
        if user_id is not None:
            query = query.filter(user_id=user_id)
        if hotel_id is not None:
            query = query.filter(hotel_id=hotel_id)
        if statuses is not None:
            query = query.filter(status__in=[s.value for s in statuses])
        if payment_statuses is not None:
            query = query.filter(payment_status__in=[s.value for s in payment_statuses])
        return [
            Booking.from_dict(record.data)
            for record in query.order_by("-created_at", "-booking_id")
        ]

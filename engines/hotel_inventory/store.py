"""
Lodging Inventory Engine — Inventory Store
===========================================
Storage contract for room inventory plus the in-memory implementation.

The ledger never does read/validate/write itself. It asks the store
for ONE conditional update:

    conditional_decrement — apply `available -= qty` only if
                            `available >= qty`, as one indivisible step
    clamped_increment     — `available = min(total, available + qty)`

The in-memory store holds a per-(hotel_id, room_type) lock for exactly
the duration of that step. The Django store issues a single UPDATE.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from typing import Dict, Optional, Protocol

from core.concurrency import KeyedLock
from engines.hotel_inventory.models import HotelInventory, RoomInventory


class InventoryStore(Protocol):

    def add_hotel(self, hotel: HotelInventory) -> None:
        ...  # pragma: no cover

    def get_hotel(self, hotel_id: str) -> Optional[HotelInventory]:
        ...  # pragma: no cover

    def get_room(self, hotel_id: str, room_type: str) -> Optional[RoomInventory]:
        ...  # pragma: no cover

    def conditional_decrement(
        self, hotel_id: str, room_type: str, quantity: int
    ) -> Optional[int]:
        """
        Atomically decrement if enough units remain.

        Returns the new available_units, or None if the decrement was
        refused. Raises KeyError if the room type does not exist.
        """
        ...  # pragma: no cover

    def clamped_increment(self, hotel_id: str, room_type: str, quantity: int) -> int:
        """Atomically increment, clamped to total_units. Returns new value."""
        ...  # pragma: no cover


class InMemoryInventoryStore:
    """Thread-safe in-memory inventory. Used in tests and local runs."""

    def __init__(self) -> None:
        self._hotels: Dict[str, HotelInventory] = {}
        self._rooms: Dict[tuple, RoomInventory] = {}
        self._guard = threading.Lock()
        self._locks = KeyedLock()

    def add_hotel(self, hotel: HotelInventory) -> None:
        with self._guard:
            self._hotels[hotel.hotel_id] = replace(hotel, rooms={})
            for room_type, room in hotel.rooms.items():
                self._rooms[(hotel.hotel_id, room_type)] = room

    def get_hotel(self, hotel_id: str) -> Optional[HotelInventory]:
        with self._guard:
            header = self._hotels.get(hotel_id)
            if header is None:
                return None
            rooms = {
                rt: room for (hid, rt), room in self._rooms.items()
                if hid == hotel_id
            }
        return replace(header, rooms=rooms)

    def get_room(self, hotel_id: str, room_type: str) -> Optional[RoomInventory]:
        with self._guard:
            return self._rooms.get((hotel_id, room_type))

    def conditional_decrement(
        self, hotel_id: str, room_type: str, quantity: int
    ) -> Optional[int]:
        key = (hotel_id, room_type)
        with self._locks.hold(key):
            room = self._require(key)
            if room.available_units < quantity:
                return None
            return self._write(key, room.with_available(room.available_units - quantity))

    def clamped_increment(self, hotel_id: str, room_type: str, quantity: int) -> int:
        key = (hotel_id, room_type)
        with self._locks.hold(key):
            room = self._require(key)
            restored = min(room.total_units, room.available_units + quantity)
            return self._write(key, room.with_available(restored))

    # ── internals ─────────────────────────────────────────────

    def _require(self, key: tuple) -> RoomInventory:
        with self._guard:
            room = self._rooms.get(key)
        if room is None:
            raise KeyError(key)
        return room

    def _write(self, key: tuple, room: RoomInventory) -> int:
        with self._guard:
            self._rooms[key] = room
        return room.available_units

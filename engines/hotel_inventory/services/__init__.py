"""
Lodging Inventory Engine — Inventory Ledger
============================================
Per-hotel, per-room-type availability with atomic reserve/release.

reserve: one conditional decrement. Two concurrent reserves for the
         last unit cannot both succeed; the loser observes
         reserved=False with the remaining count.
release: clamped to total_units, succeeds even for an unknown or
         replayed reserve.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from core.errors import RoomTypeNotFound
from engines.hotel_inventory.models import RoomInventory
from engines.hotel_inventory.store import InventoryStore

logger = logging.getLogger("lodging.inventory")


@dataclass(frozen=True)
class ReserveResult:
    """
    Tagged result of a reserve call.

    reserved=True  → hold taken, available_units is the post-decrement count
    reserved=False → insufficient inventory, available_units is what remains
    """
    reserved: bool
    hotel_id: str
    room_type: str
    quantity: int
    available_units: int


def _validate_quantity(quantity: int) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise ValueError("quantity must be a positive integer.")


class InventoryLedger:

    def __init__(self, store: InventoryStore):
        self._store = store

    def room(self, hotel_id: str, room_type: str) -> RoomInventory:
        room = self._store.get_room(hotel_id, room_type)
        if room is None:
            raise RoomTypeNotFound(hotel_id, room_type)
        return room

    def availability(self, hotel_id: str, room_type: str) -> int:
        return self.room(hotel_id, room_type).available_units

    def reserve(self, hotel_id: str, room_type: str, quantity: int) -> ReserveResult:
        _validate_quantity(quantity)
        try:
            remaining = self._store.conditional_decrement(hotel_id, room_type, quantity)
        except KeyError:
            raise RoomTypeNotFound(hotel_id, room_type) from None

        if remaining is None:
            available = self.availability(hotel_id, room_type)
            logger.info(
                f"Reserve refused: {hotel_id}/{room_type} "
                f"requested {quantity}, available {available}"
            )
            return ReserveResult(False, hotel_id, room_type, quantity, available)

        logger.info(
            f"Reserved {quantity} × {hotel_id}/{room_type} "
            f"(available now {remaining})"
        )
        return ReserveResult(True, hotel_id, room_type, quantity, remaining)

    def release(self, hotel_id: str, room_type: str, quantity: int) -> int:
        """Return units to the pool. Returns post-release available_units."""
        _validate_quantity(quantity)
        try:
            available = self._store.clamped_increment(hotel_id, room_type, quantity)
        except KeyError:
            raise RoomTypeNotFound(hotel_id, room_type) from None
        logger.info(
            f"Released {quantity} × {hotel_id}/{room_type} "
            f"(available now {available})"
        )
        return available

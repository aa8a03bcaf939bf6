"""
Lodging Inventory Engine — Room Inventory Model
================================================
One RoomInventory per (hotel, room type).

Invariant: 0 <= available_units <= total_units, at all times,
including after any concurrent sequence of reserve/release.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Optional


@dataclass(frozen=True)
class RoomInventory:
    room_type: str
    unit_price: int
    total_units: int
    available_units: int
    max_occupancy_per_unit: int

    def __post_init__(self):
        if not self.room_type:
            raise ValueError("room_type must be non-empty.")
        if not isinstance(self.unit_price, int) or self.unit_price < 0:
            raise ValueError("unit_price must be a non-negative integer.")
        if not isinstance(self.total_units, int) or self.total_units < 1:
            raise ValueError("total_units must be >= 1.")
        if not isinstance(self.available_units, int) or not (
            0 <= self.available_units <= self.total_units
        ):
            raise ValueError("available_units must be within [0, total_units].")
        if not isinstance(self.max_occupancy_per_unit, int) or self.max_occupancy_per_unit < 1:
            raise ValueError("max_occupancy_per_unit must be >= 1.")

    def with_available(self, available_units: int) -> RoomInventory:
        return replace(self, available_units=available_units)

    def to_dict(self) -> dict:
        return {
            "room_type": self.room_type,
            "unit_price": self.unit_price,
            "total_units": self.total_units,
            "available_units": self.available_units,
            "max_occupancy_per_unit": self.max_occupancy_per_unit,
        }


@dataclass(frozen=True)
class HotelInventory:
    """Hotel header plus its room types, keyed by room type name."""
    hotel_id: str
    owner_id: str
    rooms: Dict[str, RoomInventory] = field(default_factory=dict)
    is_active: bool = True
    name: str = ""

    def __post_init__(self):
        if not self.hotel_id:
            raise ValueError("hotel_id must be non-empty.")
        if not self.owner_id:
            raise ValueError("owner_id must be non-empty.")

    def room(self, room_type: str) -> Optional[RoomInventory]:
        return self.rooms.get(room_type)

"""
Lodging Inventory Engine — Published Topics and Payload Builders
"""

from __future__ import annotations

from typing import Optional

INVENTORY_CHANGED = "hotel.inventory.changed"

ACTION_RESERVED = "reserved"
ACTION_CANCELLED = "cancelled"


def build_inventory_changed_payload(
    hotel_id: str,
    room_type: str,
    available_units: int,
    booking_id: Optional[str] = None,
    action: Optional[str] = None,
) -> dict:
    payload = {
        "hotel_id": hotel_id,
        "room_type": room_type,
        "available_units": available_units,
        "booking_id": booking_id,
    }
    if action:
        payload["action"] = action
    return payload

"""
Lodging Reservation Engine — Request Commands
==============================================
Shape validation happens here, before the lifecycle touches any
state. Rules that need the current time or stored inventory
(date ordering against now, occupancy) live in the lifecycle.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from core.time import ensure_aware
from engines.hotel_reservation.models import GuestDetails, Guests

MAX_REASON_LENGTH = 500


@dataclass(frozen=True)
class CreateBookingRequest:
    user_id:       str
    hotel_id:      str
    room_type:     str
    unit_count:    int
    guests:        Guests
    check_in:      datetime
    check_out:     datetime
    guest_details: GuestDetails
    discount:      int = 0

    def __post_init__(self):
        if not self.user_id:   raise ValueError("user_id must be non-empty.")
        if not self.hotel_id:  raise ValueError("hotel_id must be non-empty.")
        if not self.room_type: raise ValueError("room_type must be non-empty.")
        if isinstance(self.unit_count, bool) or not isinstance(self.unit_count, int) \
                or self.unit_count < 1:
            raise ValueError("Number of rooms must be at least 1.")
        if not isinstance(self.guests, Guests):
            raise ValueError("guests must be Guests.")
        if not isinstance(self.guest_details, GuestDetails):
            raise ValueError("guest_details must be GuestDetails.")
        if not isinstance(self.discount, int) or self.discount < 0:
            raise ValueError("discount must be a non-negative integer.")
        object.__setattr__(self, "check_in", ensure_aware(self.check_in, "check_in"))
        object.__setattr__(self, "check_out", ensure_aware(self.check_out, "check_out"))


@dataclass(frozen=True)
class CancelBookingRequest:
    booking_id: str
    reason:     str = ""

    def __post_init__(self):
        if not self.booking_id: raise ValueError("booking_id must be non-empty.")
        if len(self.reason) > MAX_REASON_LENGTH:
            raise ValueError("Reason too long.")

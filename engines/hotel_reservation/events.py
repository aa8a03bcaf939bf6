"""
Lodging Reservation Engine — Published Topics and Payload Builders
"""

from __future__ import annotations

from engines.hotel_reservation.models import Booking

BOOKING_CONFIRMED = "hotel.booking.confirmed"


def build_booking_confirmed_payload(booking: Booking) -> dict:
    return {
        "booking_id": booking.booking_id,
        "hotel_id": booking.hotel_id,
        "reference": booking.reference,
        "status": booking.status.value,
        "payment_status": booking.payment_status.value,
    }

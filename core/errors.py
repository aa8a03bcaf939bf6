"""
Lodging Core — Reservation Error Taxonomy
==========================================
Business errors surfaced to callers of the reservation core.

Every error carries:
- code:    Machine-readable, SCREAMING_SNAKE_CASE, stable across releases
- message: Human-readable explanation

Transport mapping (HTTP status, i18n) is the caller's concern.
Guard failures are raised BEFORE any state mutation, so catching
one of these never leaves an entity half-updated.
"""

from __future__ import annotations

from typing import Optional


class ReservationError(Exception):
    """Base error for the reservation core."""

    code = "RESERVATION_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


# ══════════════════════════════════════════════════════════════
# INVENTORY
# ══════════════════════════════════════════════════════════════

class InsufficientInventory(ReservationError):
    """Requested units exceed the units still available."""

    code = "INSUFFICIENT_INVENTORY"

    def __init__(self, hotel_id: str, room_type: str,
                 requested: int, available: int):
        self.hotel_id = hotel_id
        self.room_type = room_type
        self.requested = requested
        self.available = available
        super().__init__(
            f"Only {available} rooms available for {room_type} "
            f"(requested {requested})."
        )


class RoomTypeNotFound(ReservationError):
    code = "ROOM_TYPE_NOT_FOUND"

    def __init__(self, hotel_id: str, room_type: str):
        self.hotel_id = hotel_id
        self.room_type = room_type
        super().__init__(
            f"Room type '{room_type}' not found in hotel '{hotel_id}'."
        )


# ══════════════════════════════════════════════════════════════
# BOOKING VALIDATION
# ══════════════════════════════════════════════════════════════

class OccupancyExceeded(ReservationError):
    code = "OCCUPANCY_EXCEEDED"

    def __init__(self, guests: int, max_occupancy: int, unit_count: int):
        self.guests = guests
        self.max_occupancy = max_occupancy
        self.unit_count = unit_count
        super().__init__(
            f"Maximum occupancy exceeded. Max {max_occupancy} guests per "
            f"room, {guests} guests for {unit_count} room(s)."
        )


class InvalidDateRange(ReservationError):
    code = "INVALID_DATE_RANGE"


# ══════════════════════════════════════════════════════════════
# STATE TRANSITIONS
# ══════════════════════════════════════════════════════════════

class InvalidTransition(ReservationError):
    code = "INVALID_TRANSITION"

    def __init__(self, booking_id: str, current: str, target: str,
                 message: Optional[str] = None):
        self.booking_id = booking_id
        self.current = current
        self.target = target
        super().__init__(
            message
            or f"Booking '{booking_id}' cannot move from {current} to {target}."
        )


class AlreadyPaid(InvalidTransition):
    code = "ALREADY_PAID"

    def __init__(self, booking_id: str):
        super().__init__(
            booking_id, "paid", "pending",
            message=f"Payment already completed for booking '{booking_id}'.",
        )


class NotCancellable(ReservationError):
    code = "NOT_CANCELLABLE"

    def __init__(self, booking_id: str):
        self.booking_id = booking_id
        super().__init__(
            f"Booking '{booking_id}' cannot be cancelled. "
            f"Check cancellation policy."
        )


class CheckInWindowError(ReservationError):
    code = "CHECK_IN_WINDOW"


# ══════════════════════════════════════════════════════════════
# PAYMENT / REFUND
# ══════════════════════════════════════════════════════════════

class NothingToRefund(ReservationError):
    code = "NOTHING_TO_REFUND"

    def __init__(self, booking_id: str):
        self.booking_id = booking_id
        super().__init__(f"No payment to refund for booking '{booking_id}'.")


class AlreadyRefunded(ReservationError):
    code = "ALREADY_REFUNDED"

    def __init__(self, booking_id: str):
        self.booking_id = booking_id
        super().__init__(f"Booking '{booking_id}' is already refunded.")


class NotEligible(ReservationError):
    code = "NOT_ELIGIBLE"

    def __init__(self, booking_id: str):
        self.booking_id = booking_id
        super().__init__(f"Booking '{booking_id}' is not eligible for refund.")


class GatewayError(ReservationError):
    """The payment gateway could not be reached or rejected the call."""

    code = "GATEWAY_ERROR"

    def __init__(self, message: str, cause: Optional[Exception] = None):
        self.cause = cause
        super().__init__(message)


class SignatureError(ReservationError):
    code = "SIGNATURE_ERROR"


# ══════════════════════════════════════════════════════════════
# LOOKUP / ACCESS
# ══════════════════════════════════════════════════════════════

class NotFound(ReservationError):
    code = "NOT_FOUND"

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} '{identifier}' not found.")


class AccessDenied(ReservationError):
    code = "ACCESS_DENIED"

    def __init__(self, actor_id: str, resource: str):
        self.actor_id = actor_id
        self.resource = resource
        super().__init__(f"Access denied for '{actor_id}' on {resource}.")


class DuplicateReference(ReservationError):
    """Storage-level booking reference collision. Retried by the lifecycle."""

    code = "DUPLICATE_REFERENCE"

    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(f"Booking reference '{reference}' already exists.")

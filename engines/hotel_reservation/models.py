"""
Lodging Reservation Engine — Booking Model
===========================================
A Booking exclusively owns its pricing and payment snapshot and holds
non-owning references (ids) to the user and the hotel/room type.

Bookings are never deleted. Cancellation, check-out and no-show are
terminal states, not removals.

All monetary amounts are integers in whole currency units.
All datetimes are timezone-aware UTC.
"""

from __future__ import annotations

import copy
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional


# ══════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════

class BookingStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked-in"
    CHECKED_OUT = "checked-out"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"
    PARTIAL_REFUND = "partial-refund"


# Payment states that carry a recorded paid amount.
SETTLED_PAYMENT_STATUSES = frozenset({
    PaymentStatus.PAID, PaymentStatus.REFUNDED, PaymentStatus.PARTIAL_REFUND,
})


def night_count(check_in: datetime, check_out: datetime) -> int:
    """Nights billed: started 24h periods between check-in and check-out."""
    seconds = (check_out - check_in).total_seconds()
    return math.ceil(seconds / timedelta(hours=24).total_seconds())


# ══════════════════════════════════════════════════════════════
# VALUE OBJECTS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Guests:
    adults: int
    children: int = 0

    def __post_init__(self):
        if not isinstance(self.adults, int) or self.adults < 1:
            raise ValueError("At least 1 adult required.")
        if not isinstance(self.children, int) or self.children < 0:
            raise ValueError("children must be >= 0.")

    @property
    def total(self) -> int:
        return self.adults + self.children

    def to_dict(self) -> dict:
        return {"adults": self.adults, "children": self.children}


@dataclass(frozen=True)
class GuestDetails:
    """Primary guest contact plus free-text requests."""
    name: str
    email: str
    phone: str
    special_requests: str = ""

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("Primary guest name is required.")
        if not self.email or "@" not in self.email:
            raise ValueError("Valid email is required.")
        if not self.phone or not self.phone.strip():
            raise ValueError("Valid phone number is required.")
        if len(self.special_requests) > 500:
            raise ValueError("special_requests must be at most 500 characters.")

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "special_requests": self.special_requests,
        }


@dataclass(frozen=True)
class Pricing:
    """Snapshot of the quote taken at creation time."""
    unit_price: int
    subtotal: int
    taxes: int
    discount: int
    final_amount: int

    def __post_init__(self):
        if self.final_amount != self.subtotal + self.taxes - self.discount:
            raise ValueError(
                "final_amount must equal subtotal + taxes - discount."
            )

    def to_dict(self) -> dict:
        return {
            "unit_price": self.unit_price,
            "subtotal": self.subtotal,
            "taxes": self.taxes,
            "discount": self.discount,
            "final_amount": self.final_amount,
        }


@dataclass
class PaymentRecord:
    """
    Gateway-facing payment snapshot.

    gateway_intent_id and last_gateway_status make gateway event
    application idempotent.
    """
    gateway_intent_id: Optional[str] = None
    last_gateway_status: Optional[str] = None
    payment_method: Optional[str] = None
    paid_amount: Optional[int] = None
    refund_amount: int = 0
    transaction_id: Optional[str] = None
    refund_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "gateway_intent_id": self.gateway_intent_id,
            "last_gateway_status": self.last_gateway_status,
            "payment_method": self.payment_method,
            "paid_amount": self.paid_amount,
            "refund_amount": self.refund_amount,
            "transaction_id": self.transaction_id,
            "refund_id": self.refund_id,
        }


# ══════════════════════════════════════════════════════════════
# BOOKING
# ══════════════════════════════════════════════════════════════

@dataclass
class Booking:
    booking_id: str
    user_id: str
    hotel_id: str
    room_type: str
    unit_count: int
    guests: Guests
    check_in: datetime
    check_out: datetime
    night_count: int
    pricing: Pricing
    guest_details: GuestDetails
    reference: str
    created_at: datetime
    status: BookingStatus = BookingStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment: PaymentRecord = field(default_factory=PaymentRecord)
    cancellation_reason: str = ""
    cancelled_at: Optional[datetime] = None
    checked_in_at: Optional[datetime] = None
    checked_out_at: Optional[datetime] = None

    def copy(self) -> Booking:
        return copy.deepcopy(self)

    @property
    def is_terminal(self) -> bool:
        return self.status in (
            BookingStatus.CANCELLED,
            BookingStatus.CHECKED_OUT,
            BookingStatus.NO_SHOW,
        )

    def to_dict(self) -> dict:
        def _iso(value: Optional[datetime]) -> Optional[str]:
            return value.isoformat() if value else None

        return {
            "booking_id": self.booking_id,
            "user_id": self.user_id,
            "hotel_id": self.hotel_id,
            "room_type": self.room_type,
            "unit_count": self.unit_count,
            "guests": self.guests.to_dict(),
            "check_in": self.check_in.isoformat(),
            "check_out": self.check_out.isoformat(),
            "night_count": self.night_count,
            "pricing": self.pricing.to_dict(),
            "status": self.status.value,
            "payment_status": self.payment_status.value,
            "payment": self.payment.to_dict(),
            "guest_details": self.guest_details.to_dict(),
            "reference": self.reference,
            "cancellation_reason": self.cancellation_reason,
            "cancelled_at": _iso(self.cancelled_at),
            "checked_in_at": _iso(self.checked_in_at),
            "checked_out_at": _iso(self.checked_out_at),
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> Booking:
        def _dt(value: Optional[str]) -> Optional[datetime]:
            return datetime.fromisoformat(value) if value else None

        return cls(
            booking_id=data["booking_id"],
            user_id=data["user_id"],
            hotel_id=data["hotel_id"],
            room_type=data["room_type"],
            unit_count=data["unit_count"],
            guests=Guests(**data["guests"]),
            check_in=datetime.fromisoformat(data["check_in"]),
            check_out=datetime.fromisoformat(data["check_out"]),
            night_count=data["night_count"],
            pricing=Pricing(**data["pricing"]),
            status=BookingStatus(data["status"]),
            payment_status=PaymentStatus(data["payment_status"]),
            payment=PaymentRecord(**data.get("payment", {})),
            guest_details=GuestDetails(**data["guest_details"]),
            reference=data["reference"],
            cancellation_reason=data.get("cancellation_reason", ""),
            cancelled_at=_dt(data.get("cancelled_at")),
            checked_in_at=_dt(data.get("checked_in_at")),
            checked_out_at=_dt(data.get("checked_out_at")),
            created_at=datetime.fromisoformat(data["created_at"]),
        )

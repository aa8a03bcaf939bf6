"""
Lodging Reservation Engine — Policies
======================================
RefundPolicy: time-based cancellation eligibility and refund amount.
Access policies: who may read or act on a booking.

    lead time = check_in − now

    status not in {pending, confirmed}   → not cancellable, refund 0
    lead time <= partial_refund_hours    → not cancellable, refund 0
    lead time >  full_refund_hours       → full refund
    otherwise                            → final_amount × partial_refund_ratio
"""
from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from core.config import DEFAULT_CONFIG, ReservationConfig
from core.errors import AccessDenied
from core.primitives import Actor
from engines.hotel_pricing.pricing_engine import round_half_up
from engines.hotel_reservation.models import Booking, BookingStatus

CANCELLABLE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})


class RefundPolicy:

    def __init__(self, config: ReservationConfig = DEFAULT_CONFIG):
        self._full = timedelta(hours=config.full_refund_hours)
        self._partial = timedelta(hours=config.partial_refund_hours)
        self._ratio = Decimal(str(config.partial_refund_ratio))

    def is_cancellable(
        self, check_in: datetime, now: datetime, status: BookingStatus
    ) -> bool:
        return status in CANCELLABLE_STATUSES and (check_in - now) > self._partial

    def refund_amount(
        self,
        check_in: datetime,
        now: datetime,
        final_amount: int,
        status: BookingStatus,
    ) -> int:
        if not self.is_cancellable(check_in, now, status):
            return 0
        if (check_in - now) > self._full:
            return final_amount
        return round_half_up(Decimal(final_amount) * self._ratio)

    def for_booking(self, booking: Booking, now: datetime) -> int:
        return self.refund_amount(
            booking.check_in, now, booking.pricing.final_amount, booking.status,
        )


# ══════════════════════════════════════════════════════════════
# ACCESS POLICIES
# ══════════════════════════════════════════════════════════════

def booking_owner_policy(booking: Booking, actor: Actor) -> Optional[str]:
    """Only the guest who made the booking may act as its owner."""
    if actor.actor_id != booking.user_id:
        return f"booking '{booking.booking_id}' is not owned by '{actor.actor_id}'."
    return None


def hotel_operator_policy(hotel_owner_id: str, actor: Actor) -> Optional[str]:
    if actor.is_admin or actor.is_system:
        return None
    if actor.actor_id != hotel_owner_id:
        return f"'{actor.actor_id}' does not operate this hotel."
    return None


def booking_reader_policy(
    booking: Booking, actor: Actor, hotel_owner_id: Optional[str]
) -> Optional[str]:
    """Owner, admin, or the operator of the booked hotel may read a booking."""
    if actor.is_admin or actor.is_system or actor.actor_id == booking.user_id:
        return None
    if hotel_owner_id is not None and actor.actor_id == hotel_owner_id:
        return None
    return f"'{actor.actor_id}' may not view booking '{booking.booking_id}'."


def enforce(violation: Optional[str], actor: Actor, resource: str) -> None:
    if violation is not None:
        raise AccessDenied(actor.actor_id, resource)

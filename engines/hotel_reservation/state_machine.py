"""
Lodging Reservation Engine — Booking & Payment State Machines
==============================================================
Two explicit state machines with one orchestration rule:

    a payment reaching PAID may advance a PENDING booking to CONFIRMED;
    a booking transition never moves the payment state backwards.

Booking:
    pending   → confirmed | cancelled
    confirmed → checked-in | cancelled | no-show
    checked-in → checked-out
    cancelled, checked-out, no-show are terminal

Payment:
    pending | failed → paid | failed | refunded | partial-refund
    paid             → refunded | partial-refund
    refunded, partial-refund are terminal
"""

from __future__ import annotations

from typing import Dict, FrozenSet

from core.errors import InvalidTransition
from engines.hotel_reservation.models import Booking, BookingStatus, PaymentStatus


BOOKING_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({
        BookingStatus.CONFIRMED, BookingStatus.CANCELLED,
    }),
    BookingStatus.CONFIRMED: frozenset({
        BookingStatus.CHECKED_IN, BookingStatus.CANCELLED, BookingStatus.NO_SHOW,
    }),
    BookingStatus.CHECKED_IN: frozenset({BookingStatus.CHECKED_OUT}),
    BookingStatus.CHECKED_OUT: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.NO_SHOW: frozenset(),
}

_REFUND_TARGETS = frozenset({PaymentStatus.REFUNDED, PaymentStatus.PARTIAL_REFUND})

PAYMENT_TRANSITIONS: Dict[PaymentStatus, FrozenSet[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.PAID, PaymentStatus.FAILED}) | _REFUND_TARGETS,
    PaymentStatus.FAILED: frozenset({PaymentStatus.PAID, PaymentStatus.FAILED}) | _REFUND_TARGETS,
    PaymentStatus.PAID: _REFUND_TARGETS,
    PaymentStatus.REFUNDED: frozenset(),
    PaymentStatus.PARTIAL_REFUND: frozenset(),
}


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in BOOKING_TRANSITIONS[current]


def can_transition_payment(current: PaymentStatus, target: PaymentStatus) -> bool:
    return target in PAYMENT_TRANSITIONS[current]


def transition(booking: Booking, target: BookingStatus) -> None:
    """Move booking.status to target or raise InvalidTransition."""
    if not can_transition(booking.status, target):
        raise InvalidTransition(
            booking.booking_id, booking.status.value, target.value,
        )
    booking.status = target


def transition_payment(booking: Booking, target: PaymentStatus) -> None:
    """Move booking.payment_status to target or raise InvalidTransition."""
    if not can_transition_payment(booking.payment_status, target):
        raise InvalidTransition(
            booking.booking_id, booking.payment_status.value, target.value,
            message=(
                f"Booking '{booking.booking_id}' payment cannot move from "
                f"{booking.payment_status.value} to {target.value}."
            ),
        )
    booking.payment_status = target


def advance_on_payment(booking: Booking) -> bool:
    """
    Orchestration rule: PAID confirms a PENDING booking.
    Any other booking status is left as it is. Returns True if advanced.
    """
    if booking.status == BookingStatus.PENDING:
        transition(booking, BookingStatus.CONFIRMED)
        return True
    return False

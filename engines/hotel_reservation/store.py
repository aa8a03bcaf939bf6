"""
Lodging Reservation Engine — Booking Store
===========================================
Storage contract for bookings plus the in-memory implementation.

mutate() is the single-writer-per-booking primitive: the mutating
callable runs on a private copy while the booking's writer lock is
held, and the copy is written back only if the callable returns.
An exception leaves the stored booking untouched.

Transitions on different bookings never contend.
"""

from __future__ import annotations

import threading
from typing import Callable, Dict, Iterable, List, Optional, Protocol

from core.concurrency import KeyedLock
from core.errors import DuplicateReference, NotFound
from engines.hotel_reservation.models import Booking, BookingStatus, PaymentStatus

Mutation = Callable[[Booking], None]


class BookingStore(Protocol):

    def add(self, booking: Booking) -> None:
        """Insert a new booking. Raises DuplicateReference on collision."""
        ...  # pragma: no cover

    def get(self, booking_id: str) -> Optional[Booking]:
        ...  # pragma: no cover

    def mutate(self, booking_id: str, fn: Mutation) -> Booking:
        """Read-modify-write under the booking's writer lock."""
        ...  # pragma: no cover

    def find(
        self,
        *,
        user_id: Optional[str] = None,
        hotel_id: Optional[str] = None,
        statuses: Optional[Iterable[BookingStatus]] = None,
        payment_statuses: Optional[Iterable[PaymentStatus]] = None,
    ) -> List[Booking]:
        """Matching bookings, newest first."""
        ...  # pragma: no cover


def matches(
    booking: Booking,
    user_id: Optional[str],
    hotel_id: Optional[str],
    statuses: Optional[frozenset],
    payment_statuses: Optional[frozenset],
) -> bool:
    if user_id is not None and booking.user_id != user_id:
        return False
    if hotel_id is not None and booking.hotel_id != hotel_id:
        return False
    if statuses is not None and booking.status not in statuses:
        return False
    if payment_statuses is not None and booking.payment_status not in payment_statuses:
        return False
    return True


class InMemoryBookingStore:
    """Thread-safe in-memory booking store. Used in tests and local runs."""

    def __init__(self) -> None:
        self._bookings: Dict[str, Booking] = {}
        self._references: Dict[str, str] = {}   # reference → booking_id
        self._guard = threading.Lock()
        self._writers = KeyedLock()

    def add(self, booking: Booking) -> None:
        with self._guard:
            if booking.reference in self._references:
                raise DuplicateReference(booking.reference)
            if booking.booking_id in self._bookings:
                raise ValueError(f"booking '{booking.booking_id}' already exists.")
            self._bookings[booking.booking_id] = booking.copy()
            self._references[booking.reference] = booking.booking_id

    def get(self, booking_id: str) -> Optional[Booking]:
        with self._guard:
            booking = self._bookings.get(booking_id)
            return booking.copy() if booking else None

    def get_by_reference(self, reference: str) -> Optional[Booking]:
        with self._guard:
            booking_id = self._references.get(reference)
        return self.get(booking_id) if booking_id else None

    def mutate(self, booking_id: str, fn: Mutation) -> Booking:
        with self._writers.hold(booking_id):
            working = self.get(booking_id)
            if working is None:
                raise NotFound("Booking", booking_id)
            fn(working)
            with self._guard:
                if working.reference != self._bookings[booking_id].reference:
                    raise ValueError("booking reference is immutable.")
                self._bookings[booking_id] = working.copy()
            return working

    def find(
        self,
        *,
        user_id: Optional[str] = None,
        hotel_id: Optional[str] = None,
        statuses: Optional[Iterable[BookingStatus]] = None,
        payment_statuses: Optional[Iterable[PaymentStatus]] = None,
    ) -> List[Booking]:
        status_set = frozenset(statuses) if statuses is not None else None
        payment_set = frozenset(payment_statuses) if payment_statuses is not None else None
        with self._guard:
            found = [
                b.copy() for b in self._bookings.values()
                if matches(b, user_id, hotel_id, status_set, payment_set)
            ]
        found.sort(key=lambda b: b.created_at, reverse=True)
        return found

    def __len__(self) -> int:
        with self._guard:
            return len(self._bookings)

"""
Lodging Reservation Engine — Booking Lifecycle
===============================================
The booking state machine, orchestrating the InventoryLedger, the
PricingEngine and the RefundPolicy.

Operations:
  create     — validate → hold inventory → price → persist PENDING
  cancel     — owner only, policy-gated, refund recorded, hold released
  check_in   — CONFIRMED → CHECKED_IN inside the check-in window
  check_out  — CHECKED_IN → CHECKED_OUT
  mark_no_show — CONFIRMED → NO_SHOW (driven by an external scheduler)

Every transition on one booking runs inside BookingStore.mutate, so
concurrent cancel/check-in/payment on the SAME booking are serialized
and a failed guard leaves the stored booking untouched.
"""
from __future__ import annotations

import logging
import secrets
import string
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional, Protocol

from core.config import DEFAULT_CONFIG, ReservationConfig
from core.errors import (
    CheckInWindowError,
    DuplicateReference,
    InsufficientInventory,
    InvalidDateRange,
    InvalidTransition,
    NotCancellable,
    NotFound,
    OccupancyExceeded,
    RoomTypeNotFound,
)
from core.events import EventPublisher, NullEventPublisher
from core.pagination import Page, paginate
from core.primitives import Actor
from core.time import Clock, SystemClock
from engines.hotel_inventory.events import (
    ACTION_CANCELLED,
    ACTION_RESERVED,
    INVENTORY_CHANGED,
    build_inventory_changed_payload,
)
from engines.hotel_inventory.models import HotelInventory
from engines.hotel_inventory.services import InventoryLedger
from engines.hotel_inventory.store import InventoryStore
from engines.hotel_pricing.pricing_engine import quote
from engines.hotel_reservation.commands import CancelBookingRequest, CreateBookingRequest
from engines.hotel_reservation.models import (
    Booking,
    BookingStatus,
    PaymentStatus,
    Pricing,
    night_count,
)
from engines.hotel_reservation.policies import (
    RefundPolicy,
    booking_owner_policy,
    booking_reader_policy,
    enforce,
    hotel_operator_policy,
)
from engines.hotel_reservation.state_machine import transition, transition_payment
from engines.hotel_reservation.store import BookingStore

logger = logging.getLogger("lodging.reservation")

_REFERENCE_ALPHABET = string.ascii_uppercase + string.digits
_REFERENCE_ATTEMPTS = 5


class CancellationRefunder(Protocol):
    """Issues the gateway refund for a paid booking being cancelled."""

    def refund_for_cancellation(self, booking: Booking, amount: int, reason: str) -> str:
        ...  # pragma: no cover


@dataclass(frozen=True)
class BookingCreated:
    """New booking plus the post-hold count for the inventory-changed event."""
    booking: Booking
    available_units: int

    def inventory_changed_payload(self) -> dict:
        return build_inventory_changed_payload(
            self.booking.hotel_id, self.booking.room_type, self.available_units,
            booking_id=self.booking.booking_id, action=ACTION_RESERVED,
        )


@dataclass(frozen=True)
class BookingCancelled:
    booking: Booking
    refund_amount: int
    available_units: int


class BookingLifecycle:

    def __init__(
        self, *,
        bookings: BookingStore,
        inventory: InventoryStore,
        publisher: Optional[EventPublisher] = None,
        clock: Optional[Clock] = None,
        config: ReservationConfig = DEFAULT_CONFIG,
        refunds: Optional[CancellationRefunder] = None,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ):
        self._bookings   = bookings
        self._inventory  = inventory
        self._ledger     = InventoryLedger(inventory)
        self._publisher  = publisher or NullEventPublisher()
        self._clock      = clock or SystemClock()
        self._config     = config
        self._policy     = RefundPolicy(config)
        self._refunds    = refunds
        self._id_factory = id_factory

    @property
    def ledger(self) -> InventoryLedger:
        return self._ledger

    @property
    def refund_policy(self) -> RefundPolicy:
        return self._policy

    # ── create ────────────────────────────────────────────────

    def create(self, request: CreateBookingRequest) -> BookingCreated:
        now = self._clock.now_utc()
        if request.check_in <= now:
            raise InvalidDateRange("Check-in date must be in the future.")
        if request.check_out <= request.check_in:
            raise InvalidDateRange("Check-out date must be after check-in date.")
        nights = night_count(request.check_in, request.check_out)

        hotel = self._active_hotel(request.hotel_id)
        room = hotel.room(request.room_type)
        if room is None:
            raise RoomTypeNotFound(request.hotel_id, request.room_type)
        if request.guests.total > room.max_occupancy_per_unit * request.unit_count:
            raise OccupancyExceeded(
                request.guests.total, room.max_occupancy_per_unit, request.unit_count,
            )
        price = quote(
            room.unit_price, request.unit_count, nights,
            self._config.tax_rate, request.discount,
        )

        hold = self._ledger.reserve(request.hotel_id, request.room_type, request.unit_count)
        if not hold.reserved:
            raise InsufficientInventory(
                request.hotel_id, request.room_type,
                request.unit_count, hold.available_units,
            )

        pricing = Pricing(
            unit_price=price.unit_price, subtotal=price.subtotal,
            taxes=price.taxes, discount=price.discount,
            final_amount=price.final_amount,
        )
        try:
            booking = self._persist_new(request, pricing, nights, now)
        except Exception:
            self._ledger.release(request.hotel_id, request.room_type, request.unit_count)
            raise

        logger.info(
            f"Booking {booking.booking_id} ({booking.reference}) created: "
            f"{booking.unit_count} × {booking.hotel_id}/{booking.room_type}, "
            f"{nights} nights, final {pricing.final_amount}"
        )
        return BookingCreated(booking=booking, available_units=hold.available_units)

    def _persist_new(
        self, request: CreateBookingRequest, pricing: Pricing,
        nights: int, now: datetime,
    ) -> Booking:
        booking_id = self._id_factory()
        for _ in range(_REFERENCE_ATTEMPTS):
            booking = Booking(
                booking_id=booking_id,
                user_id=request.user_id,
                hotel_id=request.hotel_id,
                room_type=request.room_type,
                unit_count=request.unit_count,
                guests=request.guests,
                check_in=request.check_in,
                check_out=request.check_out,
                night_count=nights,
                pricing=pricing,
                guest_details=request.guest_details,
                reference=self._new_reference(now),
                created_at=now,
            )
            try:
                self._bookings.add(booking)
                return booking
            except DuplicateReference as exc:
                logger.warning(f"Reference collision on {exc.reference}, retrying")
        raise DuplicateReference(booking.reference)

    def _new_reference(self, now: datetime) -> str:
        suffix = "".join(secrets.choice(_REFERENCE_ALPHABET) for _ in range(5))
        return f"{self._config.reference_prefix}{int(now.timestamp() * 1000)}{suffix}"

    # ── cancel ────────────────────────────────────────────────

    def cancel(self, booking_id: str, reason: str = "", *, actor: Actor) -> BookingCancelled:
        request = CancelBookingRequest(booking_id=booking_id, reason=reason)
        current = self._require(request.booking_id)
        enforce(booking_owner_policy(current, actor), actor, f"booking {booking_id}")

        now = self._clock.now_utc()
        refunded = {}

        def _apply(booking: Booking) -> None:
            if not self._policy.is_cancellable(booking.check_in, now, booking.status):
                raise NotCancellable(booking.booking_id)
            amount = self._policy.for_booking(booking, now)
            if booking.payment_status in (PaymentStatus.REFUNDED, PaymentStatus.PARTIAL_REFUND):
                # money already returned through PaymentReconciler.refund
                amount = 0

            if (amount > 0 and booking.payment_status == PaymentStatus.PAID
                    and self._refunds is not None):
                booking.payment.refund_id = self._refunds.refund_for_cancellation(
                    booking, amount, request.reason,
                )
                refunded["refund_id"] = booking.payment.refund_id

            transition(booking, BookingStatus.CANCELLED)
            booking.cancelled_at = now
            booking.cancellation_reason = request.reason
            if amount > 0:
                booking.payment.refund_amount = amount
                transition_payment(
                    booking,
                    PaymentStatus.REFUNDED
                    if amount == booking.pricing.final_amount
                    else PaymentStatus.PARTIAL_REFUND,
                )
            refunded["amount"] = amount

        try:
            booking = self._bookings.mutate(request.booking_id, _apply)
        except Exception:
            if refunded.get("refund_id"):
                logger.error(
                    f"Refund {refunded['refund_id']} issued for booking "
                    f"{booking_id} but the cancellation was not saved"
                )
            raise
        available = self._ledger.release(booking.hotel_id, booking.room_type, booking.unit_count)
        self._publisher.publish(
            INVENTORY_CHANGED,
            build_inventory_changed_payload(
                booking.hotel_id, booking.room_type, available,
                booking_id=booking.booking_id, action=ACTION_CANCELLED,
            ),
        )
        logger.info(
            f"Booking {booking.booking_id} cancelled, refund {refunded['amount']}"
        )
        return BookingCancelled(
            booking=booking, refund_amount=refunded["amount"], available_units=available,
        )

    # ── check-in / check-out / no-show ────────────────────────

    def check_in(self, booking_id: str, *, actor: Optional[Actor] = None) -> Booking:
        self._authorize_operator(booking_id, actor)
        now = self._clock.now_utc()
        window = timedelta(hours=self._config.check_in_window_hours)

        def _apply(booking: Booking) -> None:
            if booking.status != BookingStatus.CONFIRMED:
                raise InvalidTransition(
                    booking.booking_id, booking.status.value,
                    BookingStatus.CHECKED_IN.value,
                    message="Booking must be confirmed to check-in.",
                )
            if now < booking.check_in - window or now > booking.check_in + window:
                raise CheckInWindowError("Check-in not allowed at this time.")
            if self._config.reject_check_in_after_check_out and now >= booking.check_out:
                raise CheckInWindowError("Check-in not allowed after check-out time.")
            transition(booking, BookingStatus.CHECKED_IN)
            booking.checked_in_at = now

        booking = self._bookings.mutate(booking_id, _apply)
        logger.info(f"Booking {booking_id} checked in")
        return booking

    def check_out(self, booking_id: str, *, actor: Optional[Actor] = None) -> Booking:
        self._authorize_operator(booking_id, actor)
        now = self._clock.now_utc()

        def _apply(booking: Booking) -> None:
            if booking.status != BookingStatus.CHECKED_IN:
                raise InvalidTransition(
                    booking.booking_id, booking.status.value,
                    BookingStatus.CHECKED_OUT.value,
                    message="Guest must be checked-in to check-out.",
                )
            transition(booking, BookingStatus.CHECKED_OUT)
            booking.checked_out_at = now

        booking = self._bookings.mutate(booking_id, _apply)
        logger.info(f"Booking {booking_id} checked out")
        return booking

    def mark_no_show(self, booking_id: str, *, actor: Optional[Actor] = None) -> Booking:
        self._authorize_operator(booking_id, actor)
        booking = self._bookings.mutate(
            booking_id, lambda b: transition(b, BookingStatus.NO_SHOW),
        )
        logger.info(f"Booking {booking_id} marked no-show")
        return booking

    # ── queries ───────────────────────────────────────────────

    def get_booking(self, booking_id: str, actor: Actor) -> Booking:
        booking = self._require(booking_id)
        hotel = self._inventory.get_hotel(booking.hotel_id)
        enforce(
            booking_reader_policy(booking, actor, hotel.owner_id if hotel else None),
            actor, f"booking {booking_id}",
        )
        return booking

    def list_user_bookings(
        self, user_id: str, status: Optional[BookingStatus] = None,
        page: int = 1, limit: int = 10,
    ) -> Page[Booking]:
        found = self._bookings.find(
            user_id=user_id, statuses=[status] if status else None,
        )
        return paginate(found, page, limit)

    def list_hotel_bookings(
        self, hotel_id: str, actor: Actor,
        status: Optional[BookingStatus] = None,
        on_date: Optional[date] = None,
        page: int = 1, limit: int = 10,
    ) -> Page[Booking]:
        hotel = self._inventory.get_hotel(hotel_id)
        if hotel is None:
            raise NotFound("Hotel", hotel_id)
        enforce(hotel_operator_policy(hotel.owner_id, actor), actor, f"hotel {hotel_id}")

        found: List[Booking] = self._bookings.find(
            hotel_id=hotel_id, statuses=[status] if status else None,
        )
        if on_date is not None:
            found = [
                b for b in found
                if b.check_in.date() == on_date or b.check_out.date() == on_date
            ]
        return paginate(found, page, limit)

    # ── internals ─────────────────────────────────────────────

    def _require(self, booking_id: str) -> Booking:
        booking = self._bookings.get(booking_id)
        if booking is None:
            raise NotFound("Booking", booking_id)
        return booking

    def _active_hotel(self, hotel_id: str) -> HotelInventory:
        hotel = self._inventory.get_hotel(hotel_id)
        if hotel is None or not hotel.is_active:
            raise NotFound("Hotel", hotel_id)
        return hotel

    def _authorize_operator(self, booking_id: str, actor: Optional[Actor]) -> None:
        booking = self._require(booking_id)
        if actor is None:
            return
        hotel = self._inventory.get_hotel(booking.hotel_id)
        if hotel is None:
            raise NotFound("Hotel", booking.hotel_id)
        enforce(
            hotel_operator_policy(hotel.owner_id, actor), actor, f"booking {booking_id}",
        )

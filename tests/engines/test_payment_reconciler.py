"""
Tests — Payment Reconciler
===========================
Idempotent gateway result application, the client confirmation and
webhook paths, and refund issuance.
"""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone

import pytest

from core.errors import (
    AccessDenied,
    AlreadyPaid,
    AlreadyRefunded,
    GatewayError,
    InvalidTransition,
    NotEligible,
    NothingToRefund,
    SignatureError,
)
from core.events import RecordingEventPublisher
from core.primitives import Actor
from core.time import FixedClock
from engines.hotel_inventory.models import HotelInventory, RoomInventory
from engines.hotel_inventory.store import InMemoryInventoryStore
from engines.hotel_payment.events import PAYMENT_INTENT_FAILED, PAYMENT_INTENT_SUCCEEDED
from engines.hotel_payment.gateway import GatewayEvent, GatewayIntent
from engines.hotel_payment.services import PaymentReconciler
from engines.hotel_reservation.commands import CreateBookingRequest
from engines.hotel_reservation.events import BOOKING_CONFIRMED
from engines.hotel_reservation.models import (
    BookingStatus,
    GuestDetails,
    Guests,
    PaymentStatus,
)
from engines.hotel_reservation.services import BookingLifecycle
from engines.hotel_reservation.store import InMemoryBookingStore


# ── Helpers ──────────────────────────────────────────────────

T0 = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
CHECK_IN = T0 + timedelta(hours=72)
GUEST = "user-1"
FINAL = 16800


class _World:
    def __init__(self, gateway):
        self.clock = FixedClock(T0)
        self.inventory = InMemoryInventoryStore()
        self.inventory.add_hotel(HotelInventory(
            hotel_id="hotel-1", owner_id="owner-1",
            rooms={"Double": RoomInventory("Double", 2500, 15, 12, 2)},
        ))
        self.bookings = InMemoryBookingStore()
        self.publisher = RecordingEventPublisher()
        self.gateway = gateway
        self.payments = PaymentReconciler(
            bookings=self.bookings, gateway=gateway, publisher=self.publisher,
            clock=self.clock, webhook_secret="whsec_test",
        )
        self.lifecycle = BookingLifecycle(
            bookings=self.bookings, inventory=self.inventory,
            publisher=self.publisher, clock=self.clock, refunds=self.payments,
        )

    def book(self, user_id: str = GUEST):
        return self.lifecycle.create(CreateBookingRequest(
            user_id=user_id,
            hotel_id="hotel-1",
            room_type="Double",
            unit_count=2,
            guests=Guests(adults=2),
            check_in=CHECK_IN,
            check_out=CHECK_IN + timedelta(days=3),
            guest_details=GuestDetails("Asha Rao", "asha@example.com", "+911234567890"),
        )).booking

    def succeed(self, booking_id: str, intent_id: str = "pi_1"):
        return self.payments.apply_gateway_result(
            booking_id, intent_id, "succeeded", FINAL, "card", intent_id,
        )


@pytest.fixture
def world(gateway) -> _World:
    return _World(gateway)


def _webhook(event_type: str, booking_id: str, intent_id: str = "pi_hook",
             status: str = "succeeded") -> GatewayEvent:
    return GatewayEvent(
        event_type=event_type,
        intent=GatewayIntent(
            intent_id=intent_id, status=status, amount=FINAL * 100,
            payment_method_types=("card",), metadata={"booking_id": booking_id},
        ),
    )


# ══════════════════════════════════════════════════════════════
# APPLY GATEWAY RESULT
# ══════════════════════════════════════════════════════════════

class TestApplyGatewayResult:
    def test_success_confirms_booking(self, world):
        booking = world.book()
        result = world.succeed(booking.booking_id)

        assert result.payment_status == PaymentStatus.PAID
        assert result.status == BookingStatus.CONFIRMED
        assert result.payment.paid_amount == FINAL
        assert result.payment.payment_method == "card"
        assert result.payment.transaction_id == "pi_1"
        assert result.payment.gateway_intent_id == "pi_1"

        confirmed = world.publisher.of_topic(BOOKING_CONFIRMED)
        assert confirmed == [{
            "booking_id": booking.booking_id,
            "hotel_id": "hotel-1",
            "reference": booking.reference,
            "status": "confirmed",
            "payment_status": "paid",
        }]

    def test_duplicate_success_is_noop(self, world):
        booking = world.book()
        first = world.succeed(booking.booking_id)
        second = world.succeed(booking.booking_id)

        assert second == first
        assert len(world.publisher.of_topic(BOOKING_CONFIRMED)) == 1

    def test_concurrent_duplicates_apply_once(self, world):
        booking = world.book()
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            world.succeed(booking.booking_id)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        stored = world.bookings.get(booking.booking_id)
        assert stored.payment_status == PaymentStatus.PAID
        assert stored.status == BookingStatus.CONFIRMED
        assert len(world.publisher.of_topic(BOOKING_CONFIRMED)) == 1

    def test_failure_keeps_reservation(self, world):
        booking = world.book()
        result = world.payments.apply_gateway_result(
            booking.booking_id, "pi_1", "requires_payment_method", 0,
        )

        assert result.payment_status == PaymentStatus.FAILED
        assert result.status == BookingStatus.PENDING
        assert world.lifecycle.ledger.availability("hotel-1", "Double") == 10
        assert world.publisher.of_topic(BOOKING_CONFIRMED) == []

    def test_retry_after_failure(self, world):
        booking = world.book()
        world.payments.apply_gateway_result(booking.booking_id, "pi_1", "canceled", 0)
        result = world.succeed(booking.booking_id, "pi_2")
        assert result.payment_status == PaymentStatus.PAID
        assert result.payment.gateway_intent_id == "pi_2"

    def test_late_failure_does_not_undo_payment(self, world):
        booking = world.book()
        world.succeed(booking.booking_id)
        result = world.payments.apply_gateway_result(
            booking.booking_id, "pi_1", "requires_payment_method", 0,
        )
        assert result.payment_status == PaymentStatus.PAID
        assert result.status == BookingStatus.CONFIRMED

    def test_other_intent_on_paid_booking_ignored(self, world):
        booking = world.book()
        world.succeed(booking.booking_id, "pi_1")
        result = world.succeed(booking.booking_id, "pi_other")
        assert result.payment.gateway_intent_id == "pi_1"
        assert len(world.publisher.of_topic(BOOKING_CONFIRMED)) == 1


# ══════════════════════════════════════════════════════════════
# CLIENT PAYMENT FLOW
# ══════════════════════════════════════════════════════════════

class TestClientFlow:
    def test_create_intent_in_minor_units(self, world):
        booking = world.book()
        created = world.payments.create_payment_intent(booking.booking_id, Actor.guest(GUEST))

        amount, currency, metadata = world.gateway.created[0]
        assert amount == 1680000
        assert currency == "inr"
        assert metadata["booking_id"] == booking.booking_id
        assert metadata["reference"] == booking.reference
        assert created.amount == FINAL
        assert created.client_secret == f"{created.intent_id}_secret"
        assert world.bookings.get(booking.booking_id).payment.gateway_intent_id == created.intent_id

    def test_create_intent_rejects_paid(self, world):
        booking = world.book()
        world.succeed(booking.booking_id)
        with pytest.raises(AlreadyPaid):
            world.payments.create_payment_intent(booking.booking_id, Actor.guest(GUEST))

    def test_create_intent_rejects_cancelled(self, world):
        booking = world.book()
        world.lifecycle.cancel(booking.booking_id, actor=Actor.guest(GUEST))
        with pytest.raises(InvalidTransition, match="cancelled booking"):
            world.payments.create_payment_intent(booking.booking_id, Actor.guest(GUEST))

    def test_create_intent_owner_only(self, world):
        booking = world.book()
        with pytest.raises(AccessDenied):
            world.payments.create_payment_intent(booking.booking_id, Actor.guest("user-2"))
        assert world.gateway.created == []

    def test_confirm_payment_succeeded(self, world):
        booking = world.book()
        created = world.payments.create_payment_intent(booking.booking_id, Actor.guest(GUEST))
        world.gateway.settle(created.intent_id, "succeeded")

        confirmation = world.payments.confirm_payment(
            booking.booking_id, created.intent_id, Actor.guest(GUEST),
        )

        assert confirmation.succeeded
        assert confirmation.booking.status == BookingStatus.CONFIRMED
        assert confirmation.booking.payment.paid_amount == FINAL
        assert confirmation.booking.payment.payment_method == "card"
        assert confirmation.booking.payment.transaction_id == created.intent_id

    def test_confirm_payment_not_completed(self, world):
        booking = world.book()
        created = world.payments.create_payment_intent(booking.booking_id, Actor.guest(GUEST))

        confirmation = world.payments.confirm_payment(
            booking.booking_id, created.intent_id, Actor.guest(GUEST),
        )

        assert not confirmation.succeeded
        assert confirmation.booking.payment_status == PaymentStatus.FAILED
        assert confirmation.booking.status == BookingStatus.PENDING

    def test_confirm_payment_for_other_booking_rejected(self, world):
        mine = world.book()
        theirs = world.book()
        created = world.payments.create_payment_intent(theirs.booking_id, Actor.guest(GUEST))
        world.gateway.settle(created.intent_id)

        with pytest.raises(AccessDenied):
            world.payments.confirm_payment(mine.booking_id, created.intent_id, Actor.guest(GUEST))
        assert world.bookings.get(mine.booking_id).payment_status == PaymentStatus.PENDING

    def test_confirm_payment_gateway_error(self, world):
        booking = world.book()
        with pytest.raises(GatewayError):
            world.payments.confirm_payment(booking.booking_id, "pi_missing", Actor.guest(GUEST))

    def test_payment_history(self, world):
        paid = world.book()
        world.succeed(paid.booking_id)
        world.book()

        history = world.payments.payment_history(GUEST)
        assert [b.booking_id for b in history.items] == [paid.booking_id]


# ══════════════════════════════════════════════════════════════
# WEBHOOKS
# ══════════════════════════════════════════════════════════════

class TestWebhook:
    def test_bad_signature_rejected(self, world):
        booking = world.book()
        world.gateway.next_event = _webhook(PAYMENT_INTENT_SUCCEEDED, booking.booking_id)
        with pytest.raises(SignatureError):
            world.payments.handle_webhook(b"{}", "forged")
        assert world.bookings.get(booking.booking_id).payment_status == PaymentStatus.PENDING

    def test_succeeded_event_confirms(self, world):
        booking = world.book()
        world.gateway.next_event = _webhook(PAYMENT_INTENT_SUCCEEDED, booking.booking_id)

        outcome = world.payments.handle_webhook(b"{}", "valid")

        assert outcome.handled
        assert outcome.booking.payment_status == PaymentStatus.PAID
        assert outcome.booking.payment.paid_amount == FINAL

    def test_failed_event(self, world):
        booking = world.book()
        world.gateway.next_event = _webhook(
            PAYMENT_INTENT_FAILED, booking.booking_id, status="requires_payment_method",
        )
        outcome = world.payments.handle_webhook(b"{}", "valid")
        assert outcome.booking.payment_status == PaymentStatus.FAILED

    def test_webhook_after_client_confirmation_is_noop(self, world):
        booking = world.book()
        world.succeed(booking.booking_id, "pi_hook")
        world.gateway.next_event = _webhook(PAYMENT_INTENT_SUCCEEDED, booking.booking_id)

        world.payments.handle_webhook(b"{}", "valid")

        assert len(world.publisher.of_topic(BOOKING_CONFIRMED)) == 1

    def test_unhandled_type_acknowledged(self, world):
        world.gateway.next_event = GatewayEvent(event_type="charge.refunded")
        outcome = world.payments.handle_webhook(b"{}", "valid")
        assert outcome.handled is False
        assert outcome.event_type == "charge.refunded"

    def test_unknown_booking_ignored(self, world):
        world.gateway.next_event = _webhook(PAYMENT_INTENT_SUCCEEDED, "ghost")
        assert world.payments.handle_webhook(b"{}", "valid").handled is False


# ══════════════════════════════════════════════════════════════
# REFUNDS
# ══════════════════════════════════════════════════════════════

class TestRefund:
    def test_unpaid_has_nothing_to_refund(self, world):
        booking = world.book()
        with pytest.raises(NothingToRefund):
            world.payments.refund(booking.booking_id)

    def test_full_refund(self, world):
        booking = world.book()
        world.succeed(booking.booking_id)

        issued = world.payments.refund(booking.booking_id, "Customer requested refund")

        assert issued.refund_amount == FINAL
        assert issued.booking.payment_status == PaymentStatus.REFUNDED
        assert issued.booking.payment.refund_id == issued.refund_id
        assert world.gateway.refunds[0][:2] == ("pi_1", 1680000)
        assert world.gateway.refunds[0][2]["refund_reason"] == "Customer requested refund"

    def test_partial_refund_evaluated_at_request_time(self, world):
        booking = world.book()
        world.succeed(booking.booking_id)
        world.clock.advance(hours=36)

        issued = world.payments.refund(booking.booking_id)

        assert issued.refund_amount == 8400
        assert issued.booking.payment_status == PaymentStatus.PARTIAL_REFUND
        with pytest.raises(NothingToRefund):
            world.payments.refund(booking.booking_id)

    def test_not_eligible_inside_final_day(self, world):
        booking = world.book()
        world.succeed(booking.booking_id)
        world.clock.advance(hours=62)
        with pytest.raises(NotEligible):
            world.payments.refund(booking.booking_id)
        assert world.gateway.refunds == []

    def test_already_refunded(self, world):
        booking = world.book()
        world.succeed(booking.booking_id)
        world.payments.refund(booking.booking_id)
        with pytest.raises(AlreadyRefunded):
            world.payments.refund(booking.booking_id)

    def test_gateway_failure_leaves_payment_state(self, world):
        booking = world.book()
        world.succeed(booking.booking_id)
        world.gateway.fail_refunds = True

        with pytest.raises(GatewayError):
            world.payments.refund(booking.booking_id)

        stored = world.bookings.get(booking.booking_id)
        assert stored.payment_status == PaymentStatus.PAID
        assert stored.payment.refund_amount == 0

    def test_rejected_refund_status_is_gateway_error(self, world):
        booking = world.book()
        world.succeed(booking.booking_id)
        world.gateway.refund_status = "failed"
        with pytest.raises(GatewayError):
            world.payments.refund(booking.booking_id)
        assert world.bookings.get(booking.booking_id).payment_status == PaymentStatus.PAID

    def test_owner_check_when_actor_given(self, world):
        booking = world.book()
        world.succeed(booking.booking_id)
        with pytest.raises(AccessDenied):
            world.payments.refund(booking.booking_id, actor=Actor.guest("user-2"))

    def test_refund_id_logged_when_booking_write_fails(self, world, monkeypatch, caplog):
        booking = world.book()
        world.succeed(booking.booking_id)
        original = world.bookings.mutate

        def failing_write(booking_id, fn):
            def _then_fail(b):
                fn(b)
                raise RuntimeError("database unavailable")
            return original(booking_id, _then_fail)

        monkeypatch.setattr(world.bookings, "mutate", failing_write)
        with caplog.at_level("ERROR", logger="lodging.payment"):
            with pytest.raises(RuntimeError):
                world.payments.refund(booking.booking_id)

        assert len(world.gateway.refunds) == 1
        assert any("re_" in r.getMessage() and "not updated" in r.getMessage()
                   for r in caplog.records)


# ══════════════════════════════════════════════════════════════
# CAPTURE AFTER AN UNPAID CANCEL
# ══════════════════════════════════════════════════════════════

class TestCaptureAfterCancel:
    def _cancel_unpaid(self, world):
        booking = world.book()
        intent = world.payments.create_payment_intent(booking.booking_id, Actor.guest(GUEST))
        world.lifecycle.cancel(booking.booking_id, actor=Actor.guest(GUEST))
        return booking, intent.intent_id

    def test_late_success_records_payment_and_refunds(self, world):
        booking, intent_id = self._cancel_unpaid(world)
        cancelled = world.bookings.get(booking.booking_id)
        assert cancelled.payment_status == PaymentStatus.REFUNDED
        assert world.gateway.refunds == []

        world.gateway.next_event = _webhook(
            PAYMENT_INTENT_SUCCEEDED, booking.booking_id, intent_id=intent_id,
        )
        outcome = world.payments.handle_webhook(b"{}", "valid")

        stored = outcome.booking
        assert stored.status == BookingStatus.CANCELLED
        assert stored.payment_status == PaymentStatus.REFUNDED
        assert stored.payment.paid_amount == FINAL
        assert stored.payment.transaction_id == intent_id
        assert stored.payment.refund_id is not None
        assert world.gateway.refunds[0][:2] == (intent_id, FINAL * 100)
        assert world.publisher.of_topic(BOOKING_CONFIRMED) == []

    def test_partial_band_refunds_recorded_amount(self, world):
        booking = world.book()
        world.clock.advance(hours=36)
        world.lifecycle.cancel(booking.booking_id, actor=Actor.guest(GUEST))

        result = world.succeed(booking.booking_id, "pi_late")

        assert result.payment_status == PaymentStatus.PARTIAL_REFUND
        assert result.payment.paid_amount == FINAL
        assert world.gateway.refunds[0][:2] == ("pi_late", 840000)

    def test_redelivery_refunds_once(self, world):
        booking, intent_id = self._cancel_unpaid(world)
        world.succeed(booking.booking_id, intent_id)
        world.succeed(booking.booking_id, intent_id)
        assert len(world.gateway.refunds) == 1

    def test_refund_failure_leaves_booking_for_retry(self, world):
        booking, intent_id = self._cancel_unpaid(world)
        world.gateway.fail_refunds = True

        with pytest.raises(GatewayError):
            world.succeed(booking.booking_id, intent_id)
        assert world.bookings.get(booking.booking_id).payment.paid_amount is None

        world.gateway.fail_refunds = False
        result = world.succeed(booking.booking_id, intent_id)
        assert result.payment.paid_amount == FINAL
        assert len(world.gateway.refunds) == 1

"""
Lodging Payment Engine — Payment Reconciler
============================================
Applies gateway outcomes to bookings and issues refunds.

Idempotency:
    paymentStatus == paid AND stored intent id == incoming intent id
        → no-op, current booking returned

The check and the write happen inside ONE BookingStore.mutate call, so
duplicate deliveries of the same event (webhook retry, or the client
confirmation racing the webhook) are serialized on the booking's writer
lock and only the first one changes anything.

Absorption:
    paid / refunded / partial-refund never move back to failed or pending.
    A success for a different intent on a settled booking is logged and
    ignored. The exception is a booking cancelled before any capture:
    a late success there records the payment and issues the refund the
    cancel already recorded.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from core.config import DEFAULT_CONFIG, ReservationConfig
from core.errors import (
    AccessDenied,
    AlreadyPaid,
    AlreadyRefunded,
    GatewayError,
    InvalidTransition,
    NotEligible,
    NotFound,
    NothingToRefund,
)
from core.events import EventPublisher, NullEventPublisher
from core.pagination import Page, paginate
from core.primitives import Actor
from core.time import Clock, SystemClock
from engines.hotel_payment.events import (
    HANDLED_WEBHOOK_TYPES,
    PAYMENT_INTENT_SUCCEEDED,
)
from engines.hotel_payment.gateway import (
    REFUND_REJECTED_STATUSES,
    SUCCEEDED,
    PaymentGateway,
    RefundReceipt,
)
from engines.hotel_pricing.pricing_engine import from_minor_units, to_minor_units
from engines.hotel_reservation.events import (
    BOOKING_CONFIRMED,
    build_booking_confirmed_payload,
)
from engines.hotel_reservation.models import (
    SETTLED_PAYMENT_STATUSES,
    Booking,
    BookingStatus,
    PaymentStatus,
)
from engines.hotel_reservation.policies import (
    RefundPolicy,
    booking_owner_policy,
    enforce,
)
from engines.hotel_reservation.state_machine import advance_on_payment, transition_payment
from engines.hotel_reservation.store import BookingStore

logger = logging.getLogger("lodging.payment")

# payment statuses a cancel of an unpaid booking leaves behind
REFUND_OWED_STATUSES = (PaymentStatus.REFUNDED, PaymentStatus.PARTIAL_REFUND)


@dataclass(frozen=True)
class PaymentIntentCreated:
    intent_id: str
    client_secret: Optional[str]
    amount: int


@dataclass(frozen=True)
class PaymentConfirmation:
    booking: Booking
    gateway_status: str

    @property
    def succeeded(self) -> bool:
        return self.gateway_status == SUCCEEDED


@dataclass(frozen=True)
class RefundIssued:
    booking: Booking
    refund_amount: int
    refund_id: str
    gateway_status: str


@dataclass(frozen=True)
class WebhookOutcome:
    event_type: str
    handled: bool
    booking: Optional[Booking] = None


class PaymentReconciler:

    def __init__(
        self, *,
        bookings: BookingStore,
        gateway: PaymentGateway,
        publisher: Optional[EventPublisher] = None,
        clock: Optional[Clock] = None,
        config: ReservationConfig = DEFAULT_CONFIG,
        webhook_secret: str = "",
    ):
        self._bookings = bookings
        self._gateway = gateway
        self._publisher = publisher or NullEventPublisher()
        self._clock = clock or SystemClock()
        self._config = config
        self._policy = RefundPolicy(config)
        self._webhook_secret = webhook_secret

    # ══════════════════════════════════════════════════════════
    # GATEWAY RESULT APPLICATION
    # ══════════════════════════════════════════════════════════

    def apply_gateway_result(
        self,
        booking_id: str,
        gateway_intent_id: str,
        gateway_status: str,
        amount_paid: int,
        payment_method: Optional[str] = None,
        transaction_id: Optional[str] = None,
    ) -> Booking:
        outcome = {"confirmed": False}

        def _apply(booking: Booking) -> None:
            payment = booking.payment
            if (booking.payment_status == PaymentStatus.PAID
                    and payment.gateway_intent_id == gateway_intent_id):
                logger.debug(
                    f"Duplicate gateway result for {booking_id} "
                    f"({gateway_intent_id}, {gateway_status}) ignored"
                )
                return
            if (gateway_status == SUCCEEDED
                    and booking.status == BookingStatus.CANCELLED
                    and payment.paid_amount is None
                    and booking.payment_status in REFUND_OWED_STATUSES):
                outcome["refund_id"] = self._settle_capture_after_cancel(
                    booking, gateway_intent_id, amount_paid, payment_method, transaction_id,
                )
                return
            if booking.payment_status in SETTLED_PAYMENT_STATUSES:
                logger.warning(
                    f"Gateway result {gateway_status} for intent {gateway_intent_id} "
                    f"ignored: booking {booking_id} payment already "
                    f"{booking.payment_status.value}"
                )
                return

            payment.last_gateway_status = gateway_status
            if gateway_status != SUCCEEDED:
                if payment.gateway_intent_id is None:
                    payment.gateway_intent_id = gateway_intent_id
                transition_payment(booking, PaymentStatus.FAILED)
                return

            transition_payment(booking, PaymentStatus.PAID)
            payment.gateway_intent_id = gateway_intent_id
            payment.paid_amount = amount_paid
            payment.payment_method = payment_method or payment.payment_method
            payment.transaction_id = transaction_id
            if not advance_on_payment(booking):
                logger.warning(
                    f"Payment captured on booking {booking_id} in status "
                    f"{booking.status.value}; status left unchanged"
                )
            outcome["confirmed"] = True

        try:
            booking = self._bookings.mutate(booking_id, _apply)
        except Exception:
            if outcome.get("refund_id"):
                logger.error(
                    f"Refund {outcome['refund_id']} issued for booking "
                    f"{booking_id} but the booking was not updated"
                )
            raise

        if outcome["confirmed"]:
            logger.info(
                f"Payment {gateway_intent_id} applied to booking {booking_id}: "
                f"paid {amount_paid}"
            )
            self._publisher.publish(
                BOOKING_CONFIRMED, build_booking_confirmed_payload(booking),
            )
        elif booking.payment_status == PaymentStatus.FAILED:
            logger.info(
                f"Payment {gateway_intent_id} for booking {booking_id} "
                f"not completed ({gateway_status})"
            )
        return booking

    # ══════════════════════════════════════════════════════════
    # CLIENT PAYMENT FLOW
    # ══════════════════════════════════════════════════════════

    def create_payment_intent(self, booking_id: str, actor: Actor) -> PaymentIntentCreated:
        booking = self._require(booking_id)
        enforce(booking_owner_policy(booking, actor), actor, f"booking {booking_id}")
        self._guard_payable(booking)

        amount = booking.pricing.final_amount
        intent = self._gateway.create_intent(
            to_minor_units(amount, self._config.minor_units_per_unit),
            self._config.currency,
            metadata={
                "booking_id": booking.booking_id,
                "user_id": booking.user_id,
                "reference": booking.reference,
            },
            description=f"Booking payment for {booking.reference}",
        )

        def _attach(current: Booking) -> None:
            self._guard_payable(current)
            current.payment.gateway_intent_id = intent.intent_id
            current.payment.last_gateway_status = intent.status

        self._bookings.mutate(booking_id, _attach)
        logger.info(f"Payment intent {intent.intent_id} created for booking {booking_id}")
        return PaymentIntentCreated(
            intent_id=intent.intent_id,
            client_secret=intent.client_secret,
            amount=amount,
        )

    def confirm_payment(
        self, booking_id: str, intent_id: str, actor: Actor
    ) -> PaymentConfirmation:
        booking = self._require(booking_id)
        enforce(booking_owner_policy(booking, actor), actor, f"booking {booking_id}")

        intent = self._gateway.retrieve_intent(intent_id)
        owner = intent.metadata.get("booking_id")
        if owner is not None and owner != booking_id:
            raise AccessDenied(actor.actor_id, f"payment intent {intent_id}")

        booking = self.apply_gateway_result(
            booking_id,
            intent.intent_id,
            intent.status,
            from_minor_units(intent.amount, self._config.minor_units_per_unit),
            payment_method=intent.payment_method,
            transaction_id=intent.intent_id,
        )
        return PaymentConfirmation(booking=booking, gateway_status=intent.status)

    def handle_webhook(self, payload: bytes, signature: str) -> WebhookOutcome:
        """Verify, then route a gateway webhook. SignatureError rejects it whole."""
        event = self._gateway.verify_webhook_signature(
            payload, signature, self._webhook_secret,
        )
        if event.event_type not in HANDLED_WEBHOOK_TYPES or event.intent is None:
            logger.info(f"Unhandled webhook event type {event.event_type}")
            return WebhookOutcome(event_type=event.event_type, handled=False)

        intent = event.intent
        booking_id = intent.metadata.get("booking_id")
        if not booking_id or self._bookings.get(booking_id) is None:
            logger.warning(
                f"Webhook {event.event_type} for intent {intent.intent_id} "
                f"references unknown booking {booking_id!r}"
            )
            return WebhookOutcome(event_type=event.event_type, handled=False)

        status = SUCCEEDED if event.event_type == PAYMENT_INTENT_SUCCEEDED else "failed"
        booking = self.apply_gateway_result(
            booking_id,
            intent.intent_id,
            status,
            from_minor_units(intent.amount, self._config.minor_units_per_unit),
            payment_method=intent.payment_method,
            transaction_id=intent.intent_id,
        )
        return WebhookOutcome(event_type=event.event_type, handled=True, booking=booking)

    # ══════════════════════════════════════════════════════════
    # REFUNDS
    # ══════════════════════════════════════════════════════════

    def refund(
        self, booking_id: str, reason: str = "Customer requested refund",
        actor: Optional[Actor] = None,
    ) -> RefundIssued:
        if actor is not None:
            current = self._require(booking_id)
            enforce(booking_owner_policy(current, actor), actor, f"booking {booking_id}")

        now = self._clock.now_utc()
        issued = {}

        def _apply(booking: Booking) -> None:
            if booking.payment_status == PaymentStatus.REFUNDED:
                raise AlreadyRefunded(booking.booking_id)
            if booking.payment_status != PaymentStatus.PAID:
                raise NothingToRefund(booking.booking_id)
            amount = self._policy.for_booking(booking, now)
            if amount <= 0:
                raise NotEligible(booking.booking_id)

            receipt = self._issue_refund(booking, amount, reason)
            issued["amount"] = amount
            issued["receipt"] = receipt
            booking.payment.refund_amount = amount
            booking.payment.refund_id = receipt.refund_id
            transition_payment(
                booking,
                PaymentStatus.REFUNDED
                if amount == booking.pricing.final_amount
                else PaymentStatus.PARTIAL_REFUND,
            )

        try:
            booking = self._bookings.mutate(booking_id, _apply)
        except Exception:
            if "receipt" in issued:
                logger.error(
                    f"Refund {issued['receipt'].refund_id} issued for booking "
                    f"{booking_id} but the booking was not updated"
                )
            raise
        receipt: RefundReceipt = issued["receipt"]
        return RefundIssued(
            booking=booking,
            refund_amount=issued["amount"],
            refund_id=receipt.refund_id,
            gateway_status=receipt.status,
        )

    def refund_for_cancellation(self, booking: Booking, amount: int, reason: str) -> str:
        """Gateway refund issued from inside BookingLifecycle.cancel."""
        return self._issue_refund(booking, amount, reason or "Booking cancelled").refund_id

    # ══════════════════════════════════════════════════════════
    # QUERIES
    # ══════════════════════════════════════════════════════════

    def payment_history(self, user_id: str, page: int = 1, limit: int = 10) -> Page[Booking]:
        found = self._bookings.find(
            user_id=user_id, payment_statuses=SETTLED_PAYMENT_STATUSES,
        )
        return paginate(found, page, limit)

    # ── internals ─────────────────────────────────────────────

    def _require(self, booking_id: str) -> Booking:
        booking = self._bookings.get(booking_id)
        if booking is None:
            raise NotFound("Booking", booking_id)
        return booking

    @staticmethod
    def _guard_payable(booking: Booking) -> None:
        if booking.status == BookingStatus.CANCELLED:
            raise InvalidTransition(
                booking.booking_id, booking.status.value, BookingStatus.CONFIRMED.value,
                message="Cannot pay for cancelled booking.",
            )
        if booking.payment_status in SETTLED_PAYMENT_STATUSES:
            raise AlreadyPaid(booking.booking_id)

    def _settle_capture_after_cancel(
        self,
        booking: Booking,
        gateway_intent_id: str,
        amount_paid: int,
        payment_method: Optional[str],
        transaction_id: Optional[str],
    ) -> Optional[str]:
        """Money captured after an unpaid cancel: return the refund recorded then."""
        payment = booking.payment
        payment.gateway_intent_id = gateway_intent_id
        payment.last_gateway_status = SUCCEEDED
        amount = min(payment.refund_amount or 0, amount_paid)
        if amount > 0:
            try:
                receipt = self._issue_refund(booking, amount, "Booking cancelled before payment")
            except GatewayError:
                logger.error(
                    f"Payment {gateway_intent_id} captured on cancelled booking "
                    f"{booking.booking_id} but refund of {amount} failed"
                )
                raise
            payment.refund_id = receipt.refund_id
        payment.paid_amount = amount_paid
        payment.payment_method = payment_method or payment.payment_method
        payment.transaction_id = transaction_id
        logger.warning(
            f"Payment {gateway_intent_id} captured on cancelled booking "
            f"{booking.booking_id}; refunded {amount} of {amount_paid}"
        )
        return payment.refund_id

    def _issue_refund(self, booking: Booking, amount: int, reason: str) -> RefundReceipt:
        intent_id = booking.payment.gateway_intent_id
        if not intent_id:
            raise GatewayError(
                f"Booking '{booking.booking_id}' has no gateway payment to refund."
            )
        receipt = self._gateway.refund(
            intent_id,
            to_minor_units(amount, self._config.minor_units_per_unit),
            metadata={"booking_id": booking.booking_id, "refund_reason": reason},
        )
        if receipt.status in REFUND_REJECTED_STATUSES:
            raise GatewayError(
                f"Refund {receipt.refund_id} for booking '{booking.booking_id}' "
                f"was {receipt.status}."
            )
        logger.info(
            f"Refund {receipt.refund_id} of {amount} issued for booking "
            f"{booking.booking_id} ({receipt.status})"
        )
        return receipt

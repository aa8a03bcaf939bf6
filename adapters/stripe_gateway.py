"""
Lodging Stripe Adapter
======================
PaymentGateway implementation on the `stripe` SDK.

Adapter-only glue:
- amounts arrive and leave in minor units, unchanged
- every SDK failure becomes GatewayError
- webhook verification failures become SignatureError
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import stripe

from core.errors import GatewayError, SignatureError
from engines.hotel_payment.gateway import GatewayEvent, GatewayIntent, RefundReceipt

logger = logging.getLogger("lodging.adapters.stripe")

_MISSING = object()


def _field(obj: Any, key: str, default: Any = None) -> Any:
    try:
        value = obj[key]
    except (KeyError, TypeError):
        return default
    return default if value is None else value


def _to_intent(obj: Any) -> GatewayIntent:
    metadata = _field(obj, "metadata", {})
    return GatewayIntent(
        intent_id=_field(obj, "id"),
        status=_field(obj, "status", ""),
        amount=int(_field(obj, "amount", 0)),
        client_secret=_field(obj, "client_secret"),
        payment_method_types=tuple(_field(obj, "payment_method_types", ())),
        metadata={str(k): str(v) for k, v in metadata.items()},
    )


class StripePaymentGateway:

    def __init__(self, api_key: str):
        if not api_key:
            raise ValueError("api_key must be non-empty.")
        self._api_key = api_key

    def create_intent(
        self, amount: int, currency: str, metadata: Dict[str, str],
        description: str = "",
    ) -> GatewayIntent:
        try:
            intent = stripe.PaymentIntent.create(
                amount=amount,
                currency=currency,
                metadata=metadata,
                description=description,
                api_key=self._api_key,
            )
        except stripe.StripeError as exc:
            raise GatewayError(f"Failed to create payment intent: {exc}", cause=exc) from exc
        return _to_intent(intent)

    def retrieve_intent(self, intent_id: str) -> GatewayIntent:
        try:
            intent = stripe.PaymentIntent.retrieve(intent_id, api_key=self._api_key)
        except stripe.StripeError as exc:
            raise GatewayError(
                f"Failed to retrieve payment intent {intent_id}: {exc}", cause=exc,
            ) from exc
        return _to_intent(intent)

    def refund(
        self, intent_id: str, amount: int, metadata: Optional[Dict[str, str]] = None,
    ) -> RefundReceipt:
        try:
            refund = stripe.Refund.create(
                payment_intent=intent_id,
                amount=amount,
                metadata=metadata or {},
                api_key=self._api_key,
            )
        except stripe.StripeError as exc:
            logger.error(f"Stripe refund failed for {intent_id}: {exc}")
            raise GatewayError(f"Refund failed for {intent_id}: {exc}", cause=exc) from exc
        return RefundReceipt(refund_id=_field(refund, "id"), status=_field(refund, "status", ""))

    def verify_webhook_signature(
        self, payload: bytes, signature: str, secret: str,
    ) -> GatewayEvent:
        try:
            event = stripe.Webhook.construct_event(payload, signature, secret)
        except stripe.SignatureVerificationError as exc:
            raise SignatureError(f"Webhook signature verification failed: {exc}") from exc
        except ValueError as exc:
            raise SignatureError(f"Invalid webhook payload: {exc}") from exc

        event_type = _field(event, "type", "")
        data_object = _field(_field(event, "data", {}), "object", _MISSING)
        if data_object is _MISSING or not event_type.startswith("payment_intent."):
            return GatewayEvent(event_type=event_type)
        return GatewayEvent(event_type=event_type, intent=_to_intent(data_object))

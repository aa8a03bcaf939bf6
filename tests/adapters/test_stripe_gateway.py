"""
Tests — Stripe Gateway Adapter
===============================
SDK calls are monkeypatched; no network.
"""

from __future__ import annotations

import pytest
import stripe

from adapters.stripe_gateway import StripePaymentGateway
from core.errors import GatewayError, SignatureError


# ── Helpers ──────────────────────────────────────────────────

INTENT = {
    "id": "pi_123",
    "status": "succeeded",
    "amount": 1680000,
    "client_secret": "pi_123_secret_abc",
    "payment_method_types": ["card"],
    "metadata": {"booking_id": "b1", "reference": "BKG1"},
}


def _raise(exc):
    def _fn(*args, **kwargs):
        raise exc
    return _fn


@pytest.fixture
def gateway() -> StripePaymentGateway:
    return StripePaymentGateway("sk_test_dummy")


class TestConstruction:
    def test_requires_api_key(self):
        with pytest.raises(ValueError):
            StripePaymentGateway("")


class TestIntents:
    def test_create_intent(self, gateway, monkeypatch):
        calls = []

        def fake_create(**kwargs):
            calls.append(kwargs)
            return dict(INTENT, status="requires_payment_method")

        monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)
        intent = gateway.create_intent(1680000, "inr", {"booking_id": "b1"}, "Booking payment")

        assert calls[0]["amount"] == 1680000
        assert calls[0]["currency"] == "inr"
        assert calls[0]["metadata"] == {"booking_id": "b1"}
        assert calls[0]["api_key"] == "sk_test_dummy"
        assert intent.intent_id == "pi_123"
        assert intent.client_secret == "pi_123_secret_abc"
        assert not intent.succeeded

    def test_retrieve_intent(self, gateway, monkeypatch):
        monkeypatch.setattr(stripe.PaymentIntent, "retrieve", lambda intent_id, **kw: INTENT)
        intent = gateway.retrieve_intent("pi_123")
        assert intent.succeeded
        assert intent.amount == 1680000
        assert intent.payment_method == "card"
        assert intent.metadata == {"booking_id": "b1", "reference": "BKG1"}

    def test_sdk_error_becomes_gateway_error(self, gateway, monkeypatch):
        monkeypatch.setattr(
            stripe.PaymentIntent, "retrieve", _raise(stripe.StripeError("No such payment_intent")),
        )
        with pytest.raises(GatewayError) as exc:
            gateway.retrieve_intent("pi_missing")
        assert isinstance(exc.value.cause, stripe.StripeError)


class TestRefunds:
    def test_refund(self, gateway, monkeypatch):
        calls = []

        def fake_refund(**kwargs):
            calls.append(kwargs)
            return {"id": "re_9", "status": "succeeded"}

        monkeypatch.setattr(stripe.Refund, "create", fake_refund)
        receipt = gateway.refund("pi_123", 840000, {"booking_id": "b1"})

        assert calls[0]["payment_intent"] == "pi_123"
        assert calls[0]["amount"] == 840000
        assert receipt.refund_id == "re_9"
        assert receipt.status == "succeeded"

    def test_refund_failure(self, gateway, monkeypatch):
        monkeypatch.setattr(stripe.Refund, "create", _raise(stripe.StripeError("card declined")))
        with pytest.raises(GatewayError):
            gateway.refund("pi_123", 100)


class TestWebhook:
    def test_payment_intent_event(self, gateway, monkeypatch):
        event = {"type": "payment_intent.succeeded", "data": {"object": INTENT}}
        monkeypatch.setattr(stripe.Webhook, "construct_event", lambda p, s, k: event)

        verified = gateway.verify_webhook_signature(b"{}", "t=1,v1=abc", "whsec_test")

        assert verified.event_type == "payment_intent.succeeded"
        assert verified.intent.intent_id == "pi_123"
        assert verified.intent.metadata["booking_id"] == "b1"

    def test_other_event_has_no_intent(self, gateway, monkeypatch):
        event = {"type": "charge.refunded", "data": {"object": {"id": "ch_1"}}}
        monkeypatch.setattr(stripe.Webhook, "construct_event", lambda p, s, k: event)
        verified = gateway.verify_webhook_signature(b"{}", "sig", "whsec_test")
        assert verified.event_type == "charge.refunded"
        assert verified.intent is None

    def test_bad_signature(self, gateway, monkeypatch):
        monkeypatch.setattr(
            stripe.Webhook, "construct_event",
            _raise(stripe.SignatureVerificationError("No signatures found", "sig")),
        )
        with pytest.raises(SignatureError):
            gateway.verify_webhook_signature(b"{}", "sig", "whsec_test")

    def test_malformed_payload(self, gateway, monkeypatch):
        monkeypatch.setattr(stripe.Webhook, "construct_event", _raise(ValueError("bad json")))
        with pytest.raises(SignatureError):
            gateway.verify_webhook_signature(b"not json", "sig", "whsec_test")

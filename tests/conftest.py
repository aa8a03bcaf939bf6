"""
Shared test doubles.

StubGateway stands in for the payment gateway: it keeps intents in a
dict, records refunds, and accepts the webhook signature "valid" only.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Optional, Tuple

import pytest

from core.errors import GatewayError, SignatureError
from engines.hotel_payment.gateway import GatewayEvent, GatewayIntent, RefundReceipt

VALID_SIGNATURE = "valid"


class StubGateway:

    def __init__(self) -> None:
        self.intents: Dict[str, GatewayIntent] = {}
        self.created: List[Tuple[int, str, dict]] = []
        self.refunds: List[Tuple[str, int, dict]] = []
        self.fail_refunds = False
        self.refund_status = "succeeded"
        self.next_event: Optional[GatewayEvent] = None
        self._seq = 0

    def _next_id(self, prefix: str) -> str:
        self._seq += 1
        return f"{prefix}_{self._seq}"

    def create_intent(self, amount, currency, metadata, description=""):
        intent_id = self._next_id("pi")
        intent = GatewayIntent(
            intent_id=intent_id,
            status="requires_payment_method",
            amount=amount,
            client_secret=f"{intent_id}_secret",
            payment_method_types=("card",),
            metadata=dict(metadata),
        )
        self.intents[intent_id] = intent
        self.created.append((amount, currency, dict(metadata)))
        return intent

    def settle(self, intent_id: str, status: str = "succeeded") -> GatewayIntent:
        self.intents[intent_id] = replace(self.intents[intent_id], status=status)
        return self.intents[intent_id]

    def retrieve_intent(self, intent_id):
        if intent_id not in self.intents:
            raise GatewayError(f"No such payment_intent: {intent_id}")
        return self.intents[intent_id]

    def refund(self, intent_id, amount, metadata=None):
        if self.fail_refunds:
            raise GatewayError("gateway unavailable")
        self.refunds.append((intent_id, amount, dict(metadata or {})))
        return RefundReceipt(refund_id=self._next_id("re"), status=self.refund_status)

    def verify_webhook_signature(self, payload, signature, secret):
        if signature != VALID_SIGNATURE:
            raise SignatureError("No signatures found matching the expected signature.")
        return self.next_event


@pytest.fixture
def gateway() -> StubGateway:
    return StubGateway()

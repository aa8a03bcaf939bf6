"""
Lodging Payment Engine — Gateway Contract
==========================================
The reconciler only consumes `{status, amount, id}` from the gateway.
Amounts crossing this boundary are in MINOR units (e.g. paise, cents).

Implementations must raise:
    GatewayError    — gateway unreachable or call rejected
    SignatureError  — webhook payload failed verification
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol, Tuple

SUCCEEDED = "succeeded"

# Refund states that mean the money will NOT move.
REFUND_REJECTED_STATUSES = frozenset({"failed", "canceled"})


@dataclass(frozen=True)
class GatewayIntent:
    intent_id: str
    status: str
    amount: int
    client_secret: Optional[str] = None
    payment_method_types: Tuple[str, ...] = ()
    metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status == SUCCEEDED

    @property
    def payment_method(self) -> Optional[str]:
        return self.payment_method_types[0] if self.payment_method_types else None


@dataclass(frozen=True)
class RefundReceipt:
    refund_id: str
    status: str


@dataclass(frozen=True)
class GatewayEvent:
    """A verified webhook event carrying the intent it refers to."""
    event_type: str
    intent: Optional[GatewayIntent] = None


class PaymentGateway(Protocol):

    def create_intent(
        self, amount: int, currency: str, metadata: Dict[str, str],
        description: str = "",
    ) -> GatewayIntent:
        ...  # pragma: no cover

    def retrieve_intent(self, intent_id: str) -> GatewayIntent:
        ...  # pragma: no cover

    def refund(
        self, intent_id: str, amount: int, metadata: Optional[Dict[str, str]] = None,
    ) -> RefundReceipt:
        ...  # pragma: no cover

    def verify_webhook_signature(
        self, payload: bytes, signature: str, secret: str,
    ) -> GatewayEvent:
        ...  # pragma: no cover

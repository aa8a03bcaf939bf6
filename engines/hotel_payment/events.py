"""
Lodging Payment Engine — Webhook Event Types
"""

PAYMENT_INTENT_SUCCEEDED = "payment_intent.succeeded"
PAYMENT_INTENT_FAILED = "payment_intent.payment_failed"

HANDLED_WEBHOOK_TYPES = frozenset({PAYMENT_INTENT_SUCCEEDED, PAYMENT_INTENT_FAILED})

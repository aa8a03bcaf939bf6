"""
Lodging Adapter Wiring
======================
Constructs the reservation services for a hosting application.

This module is adapter-only glue:
- no engine contract changes
- build_services() wires any stores/gateway (tests, local runs)
- get_services() is the lazy Django singleton: ORM stores, Stripe
  gateway, config from LODGING_* settings
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Optional

from core.config import DEFAULT_CONFIG, ReservationConfig
from core.events import LocalEventPublisher, SubscriberRegistry
from core.time import Clock
from engines.hotel_inventory.store import InventoryStore
from engines.hotel_payment.gateway import PaymentGateway
from engines.hotel_payment.services import PaymentReconciler
from engines.hotel_reservation.services import BookingLifecycle
from engines.hotel_reservation.store import BookingStore

_SERVICES_LOCK = threading.Lock()
_SERVICES: Optional["ReservationServices"] = None


@dataclass(frozen=True)
class ReservationServices:
    lifecycle: BookingLifecycle
    payments: PaymentReconciler
    registry: SubscriberRegistry


def build_services(
    *,
    bookings: BookingStore,
    inventory: InventoryStore,
    gateway: PaymentGateway,
    config: ReservationConfig = DEFAULT_CONFIG,
    clock: Optional[Clock] = None,
    webhook_secret: str = "",
    registry: Optional[SubscriberRegistry] = None,
) -> ReservationServices:
    registry = registry or SubscriberRegistry()
    publisher = LocalEventPublisher(registry)
    payments = PaymentReconciler(
        bookings=bookings,
        gateway=gateway,
        publisher=publisher,
        clock=clock,
        config=config,
        webhook_secret=webhook_secret,
    )
    lifecycle = BookingLifecycle(
        bookings=bookings,
        inventory=inventory,
        publisher=publisher,
        clock=clock,
        config=config,
        refunds=payments,
    )
    return ReservationServices(lifecycle=lifecycle, payments=payments, registry=registry)


def _create_services() -> ReservationServices:
    from django.conf import settings
    from django.core.exceptions import ImproperlyConfigured

    from adapters.django_store.stores import DjangoBookingStore, DjangoInventoryStore
    from adapters.stripe_gateway import StripePaymentGateway

    api_key = getattr(settings, "STRIPE_SECRET_KEY", "")
    if not api_key:
        raise ImproperlyConfigured("STRIPE_SECRET_KEY must be set.")

    return build_services(
        bookings=DjangoBookingStore(),
        inventory=DjangoInventoryStore(),
        gateway=StripePaymentGateway(api_key),
        config=ReservationConfig.from_settings(settings),
        webhook_secret=getattr(settings, "STRIPE_WEBHOOK_SECRET", ""),
    )


def get_services() -> ReservationServices:
    """
    Lazy singleton wiring for adapter runtime.
    """
    global _SERVICES
    with _SERVICES_LOCK:
        if _SERVICES is None:
            _SERVICES = _create_services()
        return _SERVICES


def reset_services() -> None:
    global _SERVICES
    with _SERVICES_LOCK:
        _SERVICES = None

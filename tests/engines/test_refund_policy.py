"""
Tests — Refund Policy
======================
Time-band refund table and access policies.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from core.config import ReservationConfig
from core.errors import AccessDenied
from core.primitives import Actor
from engines.hotel_reservation.models import BookingStatus
from engines.hotel_reservation.policies import (
    RefundPolicy,
    enforce,
    hotel_operator_policy,
)

T0 = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
FINAL = 1000


def _check_in_after(hours: float) -> datetime:
    return T0 + timedelta(hours=hours)


class TestRefundTable:
    @pytest.mark.parametrize("hours,expected", [
        (72, 1000),
        (48.01, 1000),
        (48, 500),
        (36, 500),
        (24.01, 500),
        (24, 0),
        (10, 0),
        (-5, 0),
    ])
    def test_bands(self, hours, expected):
        policy = RefundPolicy()
        amount = policy.refund_amount(
            _check_in_after(hours), T0, FINAL, BookingStatus.CONFIRMED,
        )
        assert amount == expected

    def test_cancellable_only_above_partial_band(self):
        policy = RefundPolicy()
        assert policy.is_cancellable(_check_in_after(36), T0, BookingStatus.PENDING)
        assert not policy.is_cancellable(_check_in_after(10), T0, BookingStatus.PENDING)

    @pytest.mark.parametrize("status", [
        BookingStatus.CHECKED_IN,
        BookingStatus.CHECKED_OUT,
        BookingStatus.CANCELLED,
        BookingStatus.NO_SHOW,
    ])
    def test_non_active_statuses_never_refund(self, status):
        policy = RefundPolicy()
        assert not policy.is_cancellable(_check_in_after(72), T0, status)
        assert policy.refund_amount(_check_in_after(72), T0, FINAL, status) == 0

    def test_half_band_rounds_half_up(self):
        policy = RefundPolicy()
        amount = policy.refund_amount(
            _check_in_after(36), T0, 16801, BookingStatus.CONFIRMED,
        )
        assert amount == 8401

    def test_configured_bands(self):
        policy = RefundPolicy(ReservationConfig(
            full_refund_hours=96, partial_refund_hours=12, partial_refund_ratio=0.25,
        ))
        assert policy.refund_amount(_check_in_after(72), T0, FINAL, BookingStatus.CONFIRMED) == 250
        assert policy.refund_amount(_check_in_after(100), T0, FINAL, BookingStatus.CONFIRMED) == 1000


class TestAccessPolicies:
    def test_operator_policy(self):
        assert hotel_operator_policy("owner-1", Actor.hotel_owner("owner-1")) is None
        assert hotel_operator_policy("owner-1", Actor.admin("root")) is None
        assert hotel_operator_policy("owner-1", Actor.system("scheduler")) is None
        assert hotel_operator_policy("owner-1", Actor.hotel_owner("owner-2")) is not None

    def test_enforce_raises(self):
        actor = Actor.guest("user-2")
        with pytest.raises(AccessDenied):
            enforce("not allowed", actor, "booking b1")
        enforce(None, actor, "booking b1")

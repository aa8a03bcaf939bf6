"""
Lodging Core Config — Reservation Policy Settings
==================================================
Tax rate, refund bands and the check-in window are configuration,
not literals scattered through engine code.

Defaults are the compatibility values: changing them changes the
observable refund and pricing behavior of every booking.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any


@dataclass(frozen=True)
class ReservationConfig:
    """
    Policy constants for pricing, refunds and the check-in window.

    Fields:
        tax_rate:                 Flat tax fraction (0.12 means 12%)
        full_refund_hours:        Lead time above which refund is full
        partial_refund_hours:     Lead time above which booking is cancellable
        partial_refund_ratio:     Fraction refunded inside the partial band
        check_in_window_hours:    Check-in allowed within ± this of check-in time
        reject_check_in_after_check_out:
                                  Refuse a check-in that lands after check-out
        currency:                 Gateway currency code (single currency)
        minor_units_per_unit:     Gateway amounts are amount × this factor
        reference_prefix:         Prefix of generated booking references
    """
    tax_rate: float = 0.12
    full_refund_hours: int = 48
    partial_refund_hours: int = 24
    partial_refund_ratio: float = 0.5
    check_in_window_hours: int = 24
    reject_check_in_after_check_out: bool = False
    currency: str = "inr"
    minor_units_per_unit: int = 100
    reference_prefix: str = "BKG"

    def __post_init__(self) -> None:
        if not 0 <= self.tax_rate <= 1:
            raise ValueError(
                f"Tax rate must be between 0 and 1, got {self.tax_rate}."
            )
        if not 0 <= self.partial_refund_ratio <= 1:
            raise ValueError("partial_refund_ratio must be between 0 and 1.")
        if self.partial_refund_hours < 0:
            raise ValueError("partial_refund_hours must be >= 0.")
        if self.full_refund_hours < self.partial_refund_hours:
            raise ValueError(
                "full_refund_hours must be >= partial_refund_hours."
            )
        if self.check_in_window_hours < 0:
            raise ValueError("check_in_window_hours must be >= 0.")
        if not isinstance(self.minor_units_per_unit, int) or self.minor_units_per_unit < 1:
            raise ValueError("minor_units_per_unit must be a positive integer.")
        if not self.currency:
            raise ValueError("currency must be non-empty.")

    @classmethod
    def from_settings(cls, settings: Any) -> ReservationConfig:
        """
        Build from a settings object exposing LODGING_<FIELD> attributes
        (Django settings, a module, a SimpleNamespace). Missing names
        keep their defaults.
        """
        overrides = {}
        for f in fields(cls):
            name = f"LODGING_{f.name.upper()}"
            if hasattr(settings, name):
                overrides[f.name] = getattr(settings, name)
        return cls(**overrides)


DEFAULT_CONFIG = ReservationConfig()

"""
Lodging Pricing Engine — Booking Quote
=======================================
Pure computation, no side effects.

    subtotal     = unit_price × unit_count × night_count
    taxes        = round_half_up(subtotal × tax_rate)
    final_amount = subtotal + taxes − discount

Amounts are integers in whole currency units. The payment gateway
works in minor units (paise/cents); conversion happens only at that
boundary via to_minor_units / from_minor_units.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _non_negative_int(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"{name} must be a non-negative integer.")


@dataclass(frozen=True)
class PriceQuote:
    unit_price: int
    unit_count: int
    night_count: int
    subtotal: int
    taxes: int
    discount: int
    final_amount: int

    def to_dict(self) -> dict:
        return {
            "unit_price": self.unit_price,
            "unit_count": self.unit_count,
            "night_count": self.night_count,
            "subtotal": self.subtotal,
            "taxes": self.taxes,
            "discount": self.discount,
            "final_amount": self.final_amount,
        }


def quote(
    unit_price: int,
    unit_count: int,
    night_count: int,
    tax_rate: float,
    discount: int = 0,
) -> PriceQuote:
    _non_negative_int("unit_price", unit_price)
    _non_negative_int("discount", discount)
    if isinstance(unit_count, bool) or not isinstance(unit_count, int) or unit_count < 1:
        raise ValueError("unit_count must be >= 1.")
    if isinstance(night_count, bool) or not isinstance(night_count, int) or night_count < 1:
        raise ValueError("night_count must be >= 1.")
    if not 0 <= tax_rate <= 1:
        raise ValueError(f"tax_rate must be between 0 and 1, got {tax_rate}.")

    subtotal = unit_price * unit_count * night_count
    taxes = round_half_up(Decimal(subtotal) * Decimal(str(tax_rate)))
    if discount > subtotal + taxes:
        raise ValueError("discount cannot exceed subtotal + taxes.")

    return PriceQuote(
        unit_price=unit_price,
        unit_count=unit_count,
        night_count=night_count,
        subtotal=subtotal,
        taxes=taxes,
        discount=discount,
        final_amount=subtotal + taxes - discount,
    )


def to_minor_units(amount: int, factor: int) -> int:
    return round_half_up(Decimal(str(amount)) * factor)


def from_minor_units(minor: int, factor: int) -> int:
    return round_half_up(Decimal(minor) / Decimal(factor))

"""
Lodging Core Time — Explicit Clock Protocol
============================================
Engine logic never calls datetime.now(). The current instant is read
from an injected Clock so that every time-window rule (cancellation,
refund bands, check-in window) is deterministic under test.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol


# ══════════════════════════════════════════════════════════════
# CLOCK PROTOCOL
# ══════════════════════════════════════════════════════════════

class Clock(Protocol):
    """Injectable time source."""

    def now_utc(self) -> datetime:
        """Return current UTC time."""
        ...  # pragma: no cover


# ══════════════════════════════════════════════════════════════
# IMPLEMENTATIONS
# ══════════════════════════════════════════════════════════════

class SystemClock:
    """Production clock — real system time."""

    def now_utc(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """
    Test clock — returns a fixed, manually advanced timestamp.

    Usage:
        clock = FixedClock(datetime(2026, 3, 1, tzinfo=timezone.utc))
        clock.advance(hours=36)
    """

    def __init__(self, fixed_dt: datetime) -> None:
        if fixed_dt.tzinfo is None:
            raise ValueError("FixedClock requires timezone-aware datetime.")
        self._fixed_dt = fixed_dt

    def now_utc(self) -> datetime:
        return self._fixed_dt

    def advance(self, **delta: float) -> None:
        """Move the clock forward by the given timedelta keywords (hours=, minutes=, ...)."""
        self._fixed_dt = self._fixed_dt + timedelta(**delta)

    def set(self, fixed_dt: datetime) -> None:
        if fixed_dt.tzinfo is None:
            raise ValueError("FixedClock requires timezone-aware datetime.")
        self._fixed_dt = fixed_dt


# ══════════════════════════════════════════════════════════════
# DEFAULT CLOCK (infrastructure use only)
# ══════════════════════════════════════════════════════════════

_default_clock: Clock = SystemClock()


def set_default_clock(clock: Clock) -> None:
    """Override the default clock (testing only)."""
    global _default_clock
    _default_clock = clock


def get_default_clock() -> Clock:
    return _default_clock


def now_utc() -> datetime:
    """Convenience: get current UTC time from default clock."""
    return _default_clock.now_utc()


def ensure_aware(value: datetime, field_name: str) -> datetime:
    """Reject naive datetimes; normalize aware ones to UTC."""
    if not isinstance(value, datetime):
        raise ValueError(f"{field_name} must be a datetime.")
    if value.tzinfo is None:
        raise ValueError(f"{field_name} must be timezone-aware.")
    return value.astimezone(timezone.utc)

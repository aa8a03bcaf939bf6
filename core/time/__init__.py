"""
Lodging Core Time — Public API
"""

from core.time.clock import (
    Clock,
    FixedClock,
    SystemClock,
    ensure_aware,
    get_default_clock,
    now_utc,
    set_default_clock,
)

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "ensure_aware",
    "get_default_clock",
    "set_default_clock",
    "now_utc",
]

"""
Lodging Core Config — Public API
"""

from core.config.reservation import DEFAULT_CONFIG, ReservationConfig

__all__ = [
    "DEFAULT_CONFIG",
    "ReservationConfig",
]

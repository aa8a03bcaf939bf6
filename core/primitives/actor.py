"""
Lodging Actor Primitive — Who Is Acting
========================================
The Actor captures WHO requests a booking operation. Ownership and
hotel-operator checks are evaluated against it.

Actor roles:
    GUEST        — A traveller; owns the bookings they created
    HOTEL_OWNER  — Operator of one or more hotels
    ADMIN        — Platform administrator; passes every access check
    SYSTEM       — Automated process (webhooks, schedulers)

This file contains NO persistence logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


# ══════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════

class ActorRole(Enum):
    GUEST = "GUEST"
    HOTEL_OWNER = "HOTEL_OWNER"
    ADMIN = "ADMIN"
    SYSTEM = "SYSTEM"


# ══════════════════════════════════════════════════════════════
# ACTOR DEFINITION
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Actor:
    """
    Identifies who performed an action.

    Fields:
        actor_id:  User or component identifier
        role:      GUEST | HOTEL_OWNER | ADMIN | SYSTEM
    """
    actor_id: str
    role: ActorRole = ActorRole.GUEST

    def __post_init__(self):
        if not self.actor_id or not isinstance(self.actor_id, str):
            raise ValueError("actor_id must be a non-empty string.")
        if not isinstance(self.role, ActorRole):
            raise ValueError("role must be ActorRole enum.")

    @property
    def is_admin(self) -> bool:
        return self.role == ActorRole.ADMIN

    @property
    def is_system(self) -> bool:
        return self.role == ActorRole.SYSTEM

    def to_dict(self) -> dict:
        return {"actor_id": self.actor_id, "role": self.role.value}

    @classmethod
    def guest(cls, user_id: str) -> Actor:
        return cls(actor_id=user_id, role=ActorRole.GUEST)

    @classmethod
    def hotel_owner(cls, user_id: str) -> Actor:
        return cls(actor_id=user_id, role=ActorRole.HOTEL_OWNER)

    @classmethod
    def admin(cls, user_id: str) -> Actor:
        return cls(actor_id=user_id, role=ActorRole.ADMIN)

    @classmethod
    def system(cls, component: str) -> Actor:
        """Factory for automated callers (gateway webhooks, schedulers)."""
        return cls(actor_id=f"system:{component}", role=ActorRole.SYSTEM)

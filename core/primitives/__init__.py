"""
Lodging Core Primitives
========================
Pure-Python, framework-free building blocks shared by the engines.

Primitives:
    actor   — who is acting (guest, hotel owner, admin, system)
"""

from core.primitives.actor import Actor, ActorRole

__all__ = ["Actor", "ActorRole"]

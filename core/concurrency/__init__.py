"""
Lodging Core Concurrency — Public API
"""

from core.concurrency.keyed_lock import KeyedLock

__all__ = ["KeyedLock"]

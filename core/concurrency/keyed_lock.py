"""
Lodging Core Concurrency — Keyed Lock
======================================
One mutex per key, created on first use.

Used for:
- (hotel_id, room_type) check-and-update in the in-memory inventory store
- single-writer-per-booking read-modify-write in the in-memory booking store

Locks are held only for the duration of the guarded block.
Different keys never contend with each other.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Hashable, Iterator


class KeyedLock:
    """Thread-safe registry of per-key locks."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[Hashable, threading.Lock] = {}

    def _lock_for(self, key: Hashable) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        lock = self._lock_for(key)
        with lock:
            yield

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

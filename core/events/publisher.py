"""
Lodging Event Publishing — Publisher Implementations
=====================================================
The reservation core only ever calls publish(topic, payload).
Transport (sockets, queues, webhooks) belongs to the hosting
application, which injects one of these or its own implementation.
"""

from __future__ import annotations

import copy
import threading
from typing import List, Optional, Protocol, Tuple

from core.events.dispatcher import dispatch
from core.events.registry import SubscriberRegistry


class EventPublisher(Protocol):
    """Fire-and-forget notification sink."""

    def publish(self, topic: str, payload: dict) -> None:
        ...  # pragma: no cover


class NullEventPublisher:
    """Discards every event."""

    def publish(self, topic: str, payload: dict) -> None:
        return None


class LocalEventPublisher:
    """In-process publisher routing through a SubscriberRegistry."""

    def __init__(self, registry: Optional[SubscriberRegistry] = None):
        self.registry = registry or SubscriberRegistry()

    def publish(self, topic: str, payload: dict) -> None:
        dispatch(topic, payload, self.registry)


class RecordingEventPublisher:
    """Keeps every published event in order. Used in tests and local runs."""

    def __init__(self) -> None:
        self._events: List[Tuple[str, dict]] = []
        self._lock = threading.Lock()

    def publish(self, topic: str, payload: dict) -> None:
        with self._lock:
            self._events.append((topic, copy.deepcopy(payload)))

    @property
    def events(self) -> List[Tuple[str, dict]]:
        with self._lock:
            return list(self._events)

    def of_topic(self, topic: str) -> List[dict]:
        return [p for t, p in self.events if t == topic]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()

"""
Lodging Event Publishing — Subscriber Registry
===============================================
Controls which handlers receive which published topics.

Rules:
- Topics follow scope.entity.action format (e.g. hotel.inventory.changed)
- Multiple subscribers per topic allowed
- Duplicate handler for the same topic forbidden
- In-memory only, thread-safe
"""

import logging
from threading import Lock
from typing import Callable

from core.events.errors import (
    DuplicateSubscriberError,
    EventBusError,
    InvalidTopicFormat,
)

logger = logging.getLogger("lodging.events")

Handler = Callable[[str, dict], None]


class SubscriberRegistry:
    """In-memory registry mapping topic → list of (handler, subscriber)."""

    def __init__(self):
        self._subscribers: dict[str, list[tuple[Handler, str]]] = {}
        self._lock = Lock()

    @staticmethod
    def _validate_topic_format(topic: str) -> None:
        if not topic or not isinstance(topic, str):
            raise InvalidTopicFormat(topic or "")
        parts = topic.strip().split(".")
        if len(parts) < 3 or not all(parts):
            raise InvalidTopicFormat(topic)

    def register_subscriber(
        self,
        topic: str,
        handler: Handler,
        subscriber: str,
    ) -> None:
        """
        Register a handler for a topic.

        Raises:
            InvalidTopicFormat:       Bad topic format
            DuplicateSubscriberError: Handler already registered
        """
        self._validate_topic_format(topic)

        if not callable(handler):
            raise EventBusError(
                f"Handler must be callable, got {type(handler)}."
            )

        handler_name = getattr(handler, "__qualname__", str(handler))

        with self._lock:
            entries = self._subscribers.setdefault(topic, [])
            for existing_handler, _ in entries:
                if existing_handler is handler:
                    raise DuplicateSubscriberError(topic, handler_name)
            entries.append((handler, subscriber))

        logger.info(
            f"Subscriber registered: {handler_name} → {topic} "
            f"(subscriber: {subscriber})"
        )

    def get_subscribers(self, topic: str) -> list[tuple[Handler, str]]:
        """Snapshot of subscribers for a topic; empty list if none."""
        with self._lock:
            return list(self._subscribers.get(topic, []))

    def subscriber_count(self, topic: str) -> int:
        with self._lock:
            return len(self._subscribers.get(topic, []))

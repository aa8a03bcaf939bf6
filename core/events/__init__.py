"""
Lodging Event Publishing — Public API
======================================
The core notifies; it never waits for delivery.
"""

from core.events.dispatcher import dispatch
from core.events.errors import (
    DuplicateSubscriberError,
    EventBusError,
    InvalidTopicFormat,
)
from core.events.publisher import (
    EventPublisher,
    LocalEventPublisher,
    NullEventPublisher,
    RecordingEventPublisher,
)
from core.events.registry import SubscriberRegistry

__all__ = [
    "dispatch",
    "EventPublisher",
    "LocalEventPublisher",
    "NullEventPublisher",
    "RecordingEventPublisher",
    "SubscriberRegistry",
    "EventBusError",
    "InvalidTopicFormat",
    "DuplicateSubscriberError",
]

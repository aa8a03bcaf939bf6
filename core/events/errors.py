"""
Lodging Event Publishing — Errors
==================================
Errors raised while wiring subscribers. Publishing itself never
raises: delivery is fire-and-forget from the core's point of view.
"""


class EventBusError(Exception):
    """Base error for event publishing."""
    pass


class InvalidTopicFormat(EventBusError):
    """Topic does not follow scope.entity.action format."""

    def __init__(self, topic: str):
        self.topic = topic
        super().__init__(
            f"Topic '{topic}' does not follow scope.entity.action format."
        )


class DuplicateSubscriberError(EventBusError):
    """Same handler already registered for this topic."""

    def __init__(self, topic: str, handler_name: str):
        self.topic = topic
        self.handler_name = handler_name
        super().__init__(
            f"Handler '{handler_name}' already registered "
            f"for topic '{topic}'."
        )

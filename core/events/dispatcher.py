"""
Lodging Event Publishing — Dispatcher
======================================
Routes a published (topic, payload) to registered subscribers.

Dispatch behavior:
1. Look up subscribers by topic
2. Execute handlers sequentially
3. Catch and log each handler failure
4. Continue to next subscriber

Subscriber failure never propagates back into the reservation core:
the booking change that triggered the event is already committed.
"""

import logging

from core.events.registry import SubscriberRegistry

logger = logging.getLogger("lodging.events")


def dispatch(topic: str, payload: dict, registry: SubscriberRegistry) -> dict:
    """
    Deliver one event to every subscriber of its topic.

    Returns:
        {
            'topic': str,
            'subscribers_notified': int,
            'subscribers_failed': int,
            'failures': list[dict]
        }

    This function NEVER raises.
    """
    subscribers = registry.get_subscribers(topic)

    result = {
        "topic": topic,
        "subscribers_notified": 0,
        "subscribers_failed": 0,
        "failures": [],
    }

    if not subscribers:
        logger.debug(f"No subscribers for topic '{topic}'")
        return result

    for handler, subscriber in subscribers:
        handler_name = getattr(handler, "__qualname__", str(handler))
        try:
            handler(topic, dict(payload))
            result["subscribers_notified"] += 1
        except Exception as exc:
            result["subscribers_failed"] += 1
            result["failures"].append({
                "handler": handler_name,
                "subscriber": subscriber,
                "error": str(exc),
                "error_type": type(exc).__name__,
            })
            logger.error(
                f"Subscriber failed: {handler_name} for {topic}: {exc}",
                exc_info=True,
            )

    logger.debug(
        f"Dispatch complete: {topic} — "
        f"{result['subscribers_notified']} notified, "
        f"{result['subscribers_failed']} failed"
    )
    return result

"""
backend/masterbook/services/events.py

Event emitter: pushes order events to a Redis list for notification
consumers (p2p, instant delivery).

Events:
- order_created
- order_status_changed
"""

import json
import logging
import time

from redis import Redis

logger = logging.getLogger(__name__)

P2P_QUEUE = "events:p2p"


def emit_event(redis: Redis | None, event_type: str, payload: dict) -> None:
    """
    Emit a p2p event.

    Skipped when Redis is not configured. Delivery failures are logged and
    never propagate into the request that caused the event.
    """
    if redis is None:
        logger.debug(f"Redis not configured, event {event_type} skipped")
        return

    event = {
        "type": event_type,
        **payload,
        "ts": int(time.time()),
    }
    try:
        redis.rpush(P2P_QUEUE, json.dumps(event))
        logger.info(f"Event emitted: {event_type} → {P2P_QUEUE}")
    except Exception as e:
        logger.error(f"Failed to emit event {event_type}: {e}")

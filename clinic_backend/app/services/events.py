"""
clinic_backend/app/services/events.py

Event emitter: pushes operator notifications to a Redis queue.

Queue events:p2p is drained by the notification consumer (email/push),
which lives outside this service. Emission is best-effort: failures
are logged and never reach the caller.
"""

import json
import time
import logging

from ..redis_client import redis_client

logger = logging.getLogger(__name__)

P2P_QUEUE = "events:p2p"


def emit_event(event_type: str, payload: dict) -> None:
    """
    Emit a p2p event (instant delivery).

    Pushed to Redis list `events:p2p` for the consumer loop.
    """
    event = {
        "type": event_type,
        **payload,
        "ts": int(time.time()),
    }
    try:
        redis_client.rpush(P2P_QUEUE, json.dumps(event, default=str))
        logger.info(f"Event emitted: {event_type} → {P2P_QUEUE}")
    except Exception as e:
        logger.error(f"Failed to emit event {event_type}: {e}")


def notify_booking_created(booking_id: int, user_id: int, starts_at: str, total_price: int) -> None:
    """Tell the clinic operator about a new booking. Runs as a background task."""
    try:
        emit_event("booking_created", {
            "booking_id": booking_id,
            "user_id": user_id,
            "starts_at": starts_at,
            "total_price": total_price,
        })
    except Exception:
        logger.exception(f"Operator notification failed for booking {booking_id}")


def notify_booking_cancelled(booking_id: int, user_id: int, reason: str | None) -> None:
    try:
        emit_event("booking_cancelled", {
            "booking_id": booking_id,
            "user_id": user_id,
            "reason": reason,
        })
    except Exception:
        logger.exception(f"Operator notification failed for cancelled booking {booking_id}")

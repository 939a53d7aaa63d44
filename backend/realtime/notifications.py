"""
Notification helpers for sending WebSocket messages to connected clients.

Every connection joins its personal group ``user_<id>`` (see
realtime.consumers), so trip events are addressed by user id:
- seat reservation changes go to the trip's driver
- trip edits and deletions go to the riders holding reservations
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from rest_framework.utils.encoders import JSONEncoder

logger = logging.getLogger(__name__)


def user_group(user_id: int) -> str:
    return f"user_{user_id}"


def notify_user_event(
    event_type: str,
    user_id: int | None,
    trip,
    message: str = "",
    extra: Dict[str, Any] = None,
) -> bool:
    """
    Send a trip event to one user through: user_<user_id>

    Args:
        event_type: Handler name in consumer (seats_reserved, reservation_cancelled,
            reservation_updated, trip_updated, trip_deleted)
        user_id: Target user's ID
        trip: Trip model instance the event is about
        message: Optional message to include
        extra: Additional payload data

    Returns:
        True if sent successfully, False otherwise
    """
    if not user_id:
        return False

    channel_layer = get_channel_layer()
    if channel_layer is None:
        return False

    from trips.serializers import TripSummarySerializer

    payload = {
        "type": event_type,
        "trip_id": trip.id,
        # Plain JSON types only: channels_redis msgpacks the event
        "trip_data": json.loads(json.dumps(TripSummarySerializer(trip).data, cls=JSONEncoder)),
        **(extra or {}),
    }

    if message:
        payload["message"] = message

    logger.debug("WS -> user_%s: %s", user_id, payload)
    try:
        async_to_sync(channel_layer.group_send)(user_group(user_id), payload)
    except Exception:
        # best-effort - the ledger write already committed
        logger.exception("Failed to send %s event to user_%s", event_type, user_id)
        return False

    return True


def notify_trip_driver(event_type: str, trip, message: str = "", extra: Dict[str, Any] = None) -> bool:
    """Send a reservation event to the driver who published the trip."""
    return notify_user_event(event_type, trip.driver_id, trip, message, extra)


def notify_trip_riders(
    event_type: str,
    trip,
    rider_ids: Iterable[int],
    message: str = "",
    extra: Dict[str, Any] = None,
) -> int:
    """Send a trip event to each rider; returns how many sends succeeded."""
    sent = 0
    for rider_id in rider_ids:
        if notify_user_event(event_type, rider_id, trip, message, extra):
            sent += 1
    return sent

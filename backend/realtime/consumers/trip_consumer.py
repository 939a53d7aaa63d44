"""Trip events WebSocket consumer for drivers and riders."""

import logging
from typing import Dict, Any

from .base import BaseConsumer

logger = logging.getLogger(__name__)


class TripEventsConsumer(BaseConsumer):
    """
    WebSocket consumer shared by drivers and riders.

    Drivers receive seat reservation changes on the trips they published;
    riders receive edits and deletions of the trips they hold seats on.
    Events arrive through the personal group joined in BaseConsumer.
    """

    async def handle_message(self, msg_type: str, data: Dict[str, Any]):
        if msg_type == "ping":
            await self.send_json({"type": "pong"})
        else:
            await self.send_error(f"Unknown message type: {msg_type}")

    async def _forward(self, event):
        """Relay a group_send event to the client as-is, minus routing noise."""
        await self.send_json({
            "type": event["type"],
            "trip_id": event.get("trip_id"),
            "trip": event.get("trip_data", {}),
            "message": event.get("message", ""),
            **{
                key: value for key, value in event.items()
                if key not in ("type", "trip_id", "trip_data", "message")
            },
        })

    # ---------------------- Driver-facing events ----------------------

    async def seats_reserved(self, event):
        await self._forward(event)

    async def reservation_cancelled(self, event):
        await self._forward(event)

    async def reservation_updated(self, event):
        await self._forward(event)

    # ---------------------- Rider-facing events ----------------------

    async def trip_updated(self, event):
        await self._forward(event)

    async def trip_deleted(self, event):
        await self._forward(event)

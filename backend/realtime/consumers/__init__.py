"""Realtime consumers for WebSocket communication."""

from .base import BaseConsumer
from .trip_consumer import TripEventsConsumer

__all__ = [
    "BaseConsumer",
    "TripEventsConsumer",
]

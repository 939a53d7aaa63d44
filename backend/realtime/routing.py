"""WebSocket URL routing for the realtime app."""

from django.urls import re_path

from .consumers.trip_consumer import TripEventsConsumer

websocket_urlpatterns = [
    # Trip events for the connected user
    # URL: ws://localhost:8000/ws/events/?token=<access>
    re_path(
        r"ws/events/$",
        TripEventsConsumer.as_asgi(),
        name="trip-events-ws"
    ),
]

"""
Realtime app for WebSocket communication.

This app provides:
- A WebSocket consumer delivering trip events to drivers and riders
- Notification helpers the trip ledger calls after a write commits
- JWT authentication middleware for WebSocket connections

Usage:
    from realtime.consumers import TripEventsConsumer
    from realtime.notifications import notify_trip_driver, notify_trip_riders
"""

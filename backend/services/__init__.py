"""
Services package - Business logic layer.

This package contains the business logic that operates on Django models
but is decoupled from the HTTP/WebSocket layer.

Modules:
    - trip_ledger: Trips, seat accounting and reservations
"""

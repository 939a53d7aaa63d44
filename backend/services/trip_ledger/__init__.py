"""
Trip ledger service - trips and the seats reserved on them.

This module handles:
    - Publishing, editing and deleting trips
    - Listing trips (public, per driver) and a rider's reservations
    - Reserving, cancelling and amending seats
"""

from .ledger import (
    LedgerResult,
    create_trip,
    list_available_trips,
    get_trip_details,
    edit_trip,
    delete_trip,
    list_driver_trips,
    reserve_seats,
    cancel_reservation,
    amend_reservation,
    list_rider_reservations,
)

from .exceptions import (
    TripLedgerError,
    InvalidInputError,
    StopCountMismatchError,
    CapacityExceededError,
    ReservationExistsError,
    NoActiveReservationError,
    ForbiddenError,
    NotDriverError,
    NotTripOwnerError,
    TripNotFoundError,
    DriverNotFoundError,
    StorageFailureError,
    TripConflictError,
)

__all__ = [
    # Trip registry
    "LedgerResult",
    "create_trip",
    "list_available_trips",
    "get_trip_details",
    "edit_trip",
    "delete_trip",
    "list_driver_trips",
    # Reservations
    "reserve_seats",
    "cancel_reservation",
    "amend_reservation",
    "list_rider_reservations",
    # Exceptions
    "TripLedgerError",
    "InvalidInputError",
    "StopCountMismatchError",
    "CapacityExceededError",
    "ReservationExistsError",
    "NoActiveReservationError",
    "ForbiddenError",
    "NotDriverError",
    "NotTripOwnerError",
    "TripNotFoundError",
    "DriverNotFoundError",
    "StorageFailureError",
    "TripConflictError",
]

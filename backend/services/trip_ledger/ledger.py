"""
Core trip ledger operations.

This module holds the business logic for trips and the seats reserved on them:
    - Publishing, listing, editing and deleting trips (driver side)
    - Reserving, cancelling and amending seats (rider side)
    - Listing a driver's trips and a rider's reservations

A reservation holds one stop per seat, so ``len(reservation.stops)`` is the
number of seats that rider holds. Every write to a trip row is a conditional
update on ``Trip.version``: if another request changed the trip after it was
loaded, the transaction is rolled back and the operation runs again on fresh
data. Two riders can therefore never spend the same seat.
"""

import logging
from dataclasses import dataclass
from functools import partial, wraps
from typing import Any, Callable, List, Optional, Tuple

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import DatabaseError, IntegrityError, OperationalError, transaction
from django.db.models import F
from django.utils import timezone
from django.utils.translation import gettext, ngettext

from realtime.notifications import notify_trip_driver, notify_trip_riders
from trips.models import Trip, Reservation
from trips.serializers import (
    TripCreateSerializer,
    TripUpdateSerializer,
    ReservationRequestSerializer,
)
from .exceptions import (
    InvalidInputError,
    StopCountMismatchError,
    CapacityExceededError,
    ReservationExistsError,
    NoActiveReservationError,
    NotDriverError,
    NotTripOwnerError,
    TripNotFoundError,
    DriverNotFoundError,
    StorageFailureError,
    TripConflictError,
)

User = get_user_model()
logger = logging.getLogger(__name__)

DEFAULT_WRITE_ATTEMPTS = 3


@dataclass
class LedgerResult:
    """Result object for trip and reservation writes."""
    trip: Trip
    message: str = ""
    reservation: Optional[Reservation] = None
    seats_released: int = 0

    @property
    def seats_remaining(self) -> int:
        return self.trip.seats


class StaleTripError(Exception):
    """The trip row changed between load and conditional write."""


# ===================== Internal helpers =====================

def _storage_guard(func):
    """Surface database failures as StorageFailureError. Nothing is retried here."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except DatabaseError as exc:
            logger.exception("Database failure in %s", func.__name__)
            raise StorageFailureError() from exc
    return wrapper


def _validated(serializer_class, data):
    serializer = serializer_class(data=data if data is not None else {})
    if not serializer.is_valid():
        raise InvalidInputError(details=serializer.errors)
    return serializer.validated_data


def _require_driver(user):
    """The caller must be an existing user with the driver role."""
    user_id = getattr(user, "pk", None)
    if user_id is None or not User.objects.filter(pk=user_id, role="driver").exists():
        raise NotDriverError()


def _load_trip(trip_id, for_update=False) -> Trip:
    queryset = Trip.objects.select_for_update() if for_update else Trip.objects
    try:
        return queryset.get(pk=trip_id)
    except Trip.DoesNotExist:
        raise TripNotFoundError()


def _ensure_owner(trip: Trip, driver):
    if trip.driver_id is None or trip.driver_id != getattr(driver, "pk", None):
        raise NotTripOwnerError()


def _find_reservation(trip: Trip, rider) -> Reservation:
    reservation = trip.passengers.filter(rider=rider).first()
    if reservation is None:
        raise NoActiveReservationError()
    return reservation


def _reservation_request(data) -> Tuple[int, List[str]]:
    """Validate a reserve/amend body; there must be one stop per seat requested."""
    validated = _validated(ReservationRequestSerializer, data)
    seats_requested = validated["seats_reserved"]
    stops = list(validated["stops"])
    if len(stops) != seats_requested:
        raise StopCountMismatchError(details={
            "seats_reserved": seats_requested,
            "stops": len(stops),
        })
    return seats_requested, stops


def _save_trip(trip: Trip, **fields):
    """
    Write ``fields`` only if the trip still has the version it was loaded with.

    Raises StaleTripError otherwise, which rolls back the enclosing
    transaction so _write_with_retries can run the operation again.
    """
    now = timezone.now()
    updated = Trip.objects.filter(pk=trip.pk, version=trip.version).update(
        version=F("version") + 1,
        updated_at=now,
        **fields,
    )
    if not updated:
        raise StaleTripError(trip.pk)

    for name, value in fields.items():
        setattr(trip, name, value)
    trip.version += 1
    trip.updated_at = now


def _write_with_retries(operation: Callable[[], Any]) -> Any:
    """Run ``operation`` in its own transaction until it commits on a fresh snapshot."""
    attempts = getattr(settings, "TRIP_LEDGER_WRITE_ATTEMPTS", DEFAULT_WRITE_ATTEMPTS)
    for attempt in range(1, attempts + 1):
        try:
            with transaction.atomic():
                return operation()
        except StaleTripError as exc:
            logger.info(
                "Trip %s changed concurrently, retrying write (attempt %d of %d)",
                exc, attempt, attempts,
            )
        except OperationalError as exc:
            # SQLite: another writer held the lock past the busy timeout
            if not _is_lock_error(exc):
                raise
            logger.info(
                "Database locked, retrying trip write (attempt %d of %d)",
                attempt, attempts,
            )

    logger.warning("Giving up trip write after %d conflicting attempts", attempts)
    raise TripConflictError()


def _is_lock_error(exc) -> bool:
    return "locked" in str(exc).lower()


def _on_commit(func, *args, **kwargs):
    transaction.on_commit(partial(func, *args, **kwargs))


# ===================== Trip Registry =====================

@_storage_guard
def create_trip(driver, data) -> LedgerResult:
    """
    Publish a new trip for ``driver``.

    Args:
        driver: User model instance (must have the driver role)
        data: Mapping with initial_point, final_point, route, hour, seats, price

    Returns:
        LedgerResult with the created trip

    Raises:
        NotDriverError: If the caller is not a driver
        InvalidInputError: If a field is missing, not numeric or not positive
    """
    _require_driver(driver)
    validated = _validated(TripCreateSerializer, data)

    trip = Trip.objects.create(driver=driver, **validated)
    logger.info("Driver %s published trip %s with %s seats", driver.pk, trip.pk, trip.seats)

    return LedgerResult(trip=trip, message=gettext("Trip registered successfully."))


@_storage_guard
def list_available_trips() -> List[Trip]:
    """All trips, full ones included (they show seats_available == 0)."""
    return list(Trip.objects.all())


@_storage_guard
def get_trip_details(trip_id) -> Trip:
    """
    Load a trip together with its driver's vehicle.

    Raises:
        TripNotFoundError: If the trip does not exist
        DriverNotFoundError: If the trip's driver was deleted
    """
    trip = Trip.objects.select_related("driver__vehicle").filter(pk=trip_id).first()
    if trip is None:
        raise TripNotFoundError()
    if trip.driver is None:
        raise DriverNotFoundError()
    return trip


@_storage_guard
def edit_trip(trip_id, driver, data) -> LedgerResult:
    """
    Apply a sparse patch to a trip owned by ``driver``.

    Only keys present in ``data`` are written. Setting ``seats`` overwrites the
    remaining capacity directly; existing reservations are kept as they are.
    """
    def edit():
        trip = _load_trip(trip_id)
        _ensure_owner(trip, driver)
        changes = _validated(TripUpdateSerializer, data)
        if changes:
            _save_trip(trip, **changes)
        return trip, changes

    trip, changes = _write_with_retries(edit)

    if changes:
        logger.info("Driver %s edited trip %s: %s", driver.pk, trip.pk, sorted(changes))
        rider_ids = list(trip.passengers.values_list("rider_id", flat=True))
        _on_commit(
            notify_trip_riders,
            "trip_updated",
            trip,
            rider_ids,
            gettext("The driver updated this trip."),
        )

    return LedgerResult(trip=trip, message=gettext("Trip updated successfully."))


@_storage_guard
def delete_trip(trip_id, driver) -> LedgerResult:
    """Delete a trip owned by ``driver`` together with its reservations."""
    def delete():
        # Row lock keeps reservations from landing between collection and delete
        trip = _load_trip(trip_id, for_update=True)
        _ensure_owner(trip, driver)
        rider_ids = list(trip.passengers.values_list("rider_id", flat=True))
        deleted, _per_model = Trip.objects.filter(pk=trip.pk, version=trip.version).delete()
        if not deleted:
            raise StaleTripError(trip.pk)
        return trip, rider_ids

    trip, rider_ids = _write_with_retries(delete)
    logger.info("Driver %s deleted trip %s (%d reservations dropped)", driver.pk, trip.pk, len(rider_ids))

    _on_commit(
        notify_trip_riders,
        "trip_deleted",
        trip,
        rider_ids,
        gettext("The driver deleted this trip. Your reservation was removed."),
    )

    return LedgerResult(trip=trip, message=gettext("Trip deleted successfully."))


@_storage_guard
def list_driver_trips(driver) -> List[Trip]:
    """Trips published by ``driver``; ``trip.reserved_seats`` uses the prefetched passengers."""
    _require_driver(driver)
    return list(Trip.objects.filter(driver=driver).prefetch_related("passengers"))


# ===================== Seat Accounting / Passenger Directory =====================

@_storage_guard
def reserve_seats(trip_id, rider, data) -> LedgerResult:
    """
    Reserve ``seats_reserved`` seats on a trip, one stop per seat.

    Args:
        trip_id: ID of the trip
        rider: User model instance making the reservation
        data: Mapping with seats_reserved and stops

    Returns:
        LedgerResult with the new reservation and the seats remaining

    Raises:
        InvalidInputError / StopCountMismatchError: Bad request body
        TripNotFoundError: If the trip does not exist
        ReservationExistsError: If the rider already holds seats on this trip
        CapacityExceededError: If fewer seats are left than requested
    """
    seats_requested, stops = _reservation_request(data)

    def reserve():
        trip = _load_trip(trip_id)
        if trip.passengers.filter(rider=rider).exists():
            raise ReservationExistsError()
        if seats_requested > trip.seats:
            raise CapacityExceededError()

        _save_trip(trip, seats=trip.seats - seats_requested)
        reservation = Reservation.objects.create(trip=trip, rider=rider, stops=stops)
        return trip, reservation

    try:
        trip, reservation = _write_with_retries(reserve)
    except IntegrityError:
        # A concurrent request by the same rider committed first
        raise ReservationExistsError()

    logger.info("Rider %s reserved %d seats on trip %s (%d left)", rider.pk, seats_requested, trip.pk, trip.seats)
    _on_commit(
        notify_trip_driver,
        "seats_reserved",
        trip,
        gettext("A rider reserved seats on your trip."),
        {"rider_id": rider.pk, "seats_reserved": seats_requested},
    )

    message = ngettext(
        "Reserved %(seats)d seat successfully: %(stops)s.",
        "Reserved %(seats)d seats successfully: %(stops)s.",
        seats_requested,
    ) % {"seats": seats_requested, "stops": ", ".join(stops)}
    return LedgerResult(trip=trip, reservation=reservation, message=message)


@_storage_guard
def cancel_reservation(trip_id, rider) -> LedgerResult:
    """
    Cancel the rider's reservation and give its seats back to the trip.

    Raises:
        TripNotFoundError: If the trip does not exist
        NoActiveReservationError: If the rider holds no reservation on the trip
    """
    def cancel():
        trip = _load_trip(trip_id)
        reservation = _find_reservation(trip, rider)
        released = reservation.seats

        reservation.delete()
        _save_trip(trip, seats=trip.seats + released)
        return trip, released

    trip, released = _write_with_retries(cancel)

    logger.info("Rider %s cancelled %d seats on trip %s (%d left)", rider.pk, released, trip.pk, trip.seats)
    _on_commit(
        notify_trip_driver,
        "reservation_cancelled",
        trip,
        gettext("A rider cancelled their reservation."),
        {"rider_id": rider.pk, "seats_released": released},
    )

    message = ngettext(
        "Reservation cancelled successfully. %(seats)d seat was released.",
        "Reservation cancelled successfully. %(seats)d seats were released.",
        released,
    ) % {"seats": released}
    return LedgerResult(trip=trip, seats_released=released, message=message)


@_storage_guard
def amend_reservation(trip_id, rider, data) -> LedgerResult:
    """
    Replace the stops (and so the seat count) of the rider's reservation.

    The rider's current seats count as available while checking capacity:
    ``available = trip.seats + len(existing.stops)``. The reservation keeps its
    position among the trip's passengers.

    The trip and the reservation are looked up before the body is checked,
    so a rider without a reservation always gets NoActiveReservationError.

    Raises:
        TripNotFoundError: If the trip does not exist
        NoActiveReservationError: If the rider holds no reservation on the trip
        InvalidInputError / StopCountMismatchError: Bad request body
        CapacityExceededError: If the new seat count exceeds what is available
    """
    def amend():
        trip = _load_trip(trip_id)
        reservation = _find_reservation(trip, rider)
        seats_requested, stops = _reservation_request(data)
        available = trip.seats + reservation.seats
        if seats_requested > available:
            raise CapacityExceededError(
                gettext("Not enough seats available to update your reservation.")
            )

        reservation.stops = stops
        reservation.save(update_fields=["stops", "updated_at"])
        _save_trip(trip, seats=available - seats_requested)
        return trip, reservation, seats_requested

    trip, reservation, seats_requested = _write_with_retries(amend)

    logger.info("Rider %s now holds %d seats on trip %s (%d left)", rider.pk, seats_requested, trip.pk, trip.seats)
    _on_commit(
        notify_trip_driver,
        "reservation_updated",
        trip,
        gettext("A rider updated their reservation."),
        {"rider_id": rider.pk, "seats_reserved": seats_requested},
    )

    return LedgerResult(
        trip=trip,
        reservation=reservation,
        message=gettext("Reservation updated successfully."),
    )


@_storage_guard
def list_rider_reservations(rider) -> List[Reservation]:
    """Reservations held by ``rider``, with their trips loaded."""
    return list(
        Reservation.objects.filter(rider=rider)
        .select_related("trip")
        .order_by("trip__created_at", "trip_id")
    )

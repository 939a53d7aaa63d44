"""Custom exceptions for the trip ledger.

Every error carries a machine-checkable ``code`` and the HTTP status the
API layer answers with.
"""

from django.utils.translation import gettext_lazy as _


class TripLedgerError(Exception):
    """Base class for all trip ledger failures."""
    code = "trip_ledger_error"
    status_code = 500
    default_message = _("Trip operation failed.")

    def __init__(self, message=None, details=None):
        self.message = message if message is not None else self.default_message
        self.details = details
        super().__init__(str(self.message))


class InvalidInputError(TripLedgerError):
    """Raised when request data is missing, malformed or out of range."""
    code = "invalid_input"
    status_code = 400
    default_message = _("Invalid trip or reservation data.")


class StopCountMismatchError(InvalidInputError):
    """Raised when the number of stops differs from the seats requested."""
    code = "stop_count_mismatch"
    default_message = _("The number of stops must match the number of seats reserved.")


class CapacityExceededError(TripLedgerError):
    """Raised when more seats are requested than the trip has available."""
    code = "capacity_exceeded"
    status_code = 400
    default_message = _("Not enough seats available.")


class ReservationExistsError(TripLedgerError):
    """Raised when a rider already holds a reservation on the trip."""
    code = "reservation_exists"
    status_code = 400
    default_message = _("You already have a reservation on this trip. Update it instead.")


class NoActiveReservationError(TripLedgerError):
    """Raised when a rider has no reservation to cancel or amend."""
    code = "no_active_reservation"
    status_code = 400
    default_message = _("You do not have an active reservation on this trip.")


class ForbiddenError(TripLedgerError):
    """Raised when the caller lacks the required role or ownership."""
    code = "forbidden"
    status_code = 403
    default_message = _("You are not allowed to perform this action.")


class NotDriverError(ForbiddenError):
    code = "not_a_driver"
    default_message = _("Only drivers can perform this action.")


class NotTripOwnerError(ForbiddenError):
    code = "not_trip_owner"
    default_message = _("Only the driver who published this trip can change it.")


class TripNotFoundError(TripLedgerError):
    """Raised when a trip cannot be found."""
    code = "trip_not_found"
    status_code = 404
    default_message = _("Trip not found.")


class DriverNotFoundError(TripLedgerError):
    """Raised when the trip's driver no longer exists."""
    code = "driver_not_found"
    status_code = 404
    default_message = _("Driver not found.")


class StorageFailureError(TripLedgerError):
    """Raised when the database rejects or fails a read or write."""
    code = "storage_failure"
    status_code = 500
    default_message = _("The trip could not be stored. Please try again later.")


class TripConflictError(StorageFailureError):
    """Raised when concurrent writes kept invalidating the trip snapshot."""
    code = "trip_conflict"
    status_code = 409
    default_message = _("The trip is being updated by other requests. Please try again.")

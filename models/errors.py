"""
Domain exceptions for the camera booking engine.

All derive from ValueError so callers that only care about "the request
was refused" can keep catching ValueError. Routes map each class to an
HTTP status through ``http_status``.
"""


class CameraBookingError(ValueError):
    """Base class for refused booking operations."""

    http_status = 400


class BookingValidationError(CameraBookingError):
    """Malformed or inconsistent input; never reaches the store."""


class BookingNotFoundError(CameraBookingError):
    http_status = 404


class UnitNotFoundError(CameraBookingError):
    http_status = 404


class PermissionDeniedError(CameraBookingError):
    http_status = 403


class InvalidStateTransitionError(CameraBookingError):
    """The booking is not in a status that allows the requested action."""

    http_status = 409


class SlotUnavailableError(CameraBookingError):
    """The requested window overlaps an existing booking on the unit."""

    http_status = 409


class UnitUnavailableError(CameraBookingError):
    """The unit is under maintenance or otherwise not bookable."""

    http_status = 409


class UnreturnedUnitError(CameraBookingError):
    """The agent still holds a unit and the request is not urgent."""

    http_status = 409


class ChecklistIncompleteError(CameraBookingError):
    """A custody checklist item was missing or false."""


class ConcurrencyConflictError(CameraBookingError):
    """A concurrent writer won the race; the caller may retry."""

    http_status = 409

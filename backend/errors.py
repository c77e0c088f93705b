"""
Error taxonomy for the booking pipeline

Every rejection carries a distinguishable ``code`` and a ``category`` so
callers (the HTTP layer, scripts) can map it to the right outcome instead
of a generic failure.
"""


class BookingError(Exception):
    """Base class for every error raised by the booking core"""
    code = "BOOKING_ERROR"
    category = "internal"
    http_status = 500

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message())
        self.message = str(self)

    @classmethod
    def default_message(cls) -> str:
        return cls.__doc__.strip().splitlines()[0] if cls.__doc__ else cls.code

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


# Client errors: malformed input

class ValidationFailure(BookingError, ValueError):
    """Invalid request data"""
    code = "VALIDATION_FAILED"
    category = "validation"
    http_status = 400


class MalformedCursor(ValidationFailure):
    """Invalid pagination cursor"""
    code = "MALFORMED_CURSOR"


class InvalidIdentifier(ValidationFailure):
    """Invalid UUID"""
    code = "INVALID_IDENTIFIER"


class UnsupportedMediaType(BookingError):
    """Request body must be application/json"""
    code = "UNSUPPORTED_MEDIA_TYPE"
    category = "validation"
    http_status = 415


# Not found

class NotFound(BookingError):
    """Resource not found"""
    code = "NOT_FOUND"
    category = "not_found"
    http_status = 404


class DestinationNotFound(NotFound):
    """Destination not found"""
    code = "DESTINATION_NOT_FOUND"


class BookingNotFound(NotFound):
    """Booking not found"""
    code = "BOOKING_NOT_FOUND"


class SiteNotFound(NotFound):
    """Launchpad not found"""
    code = "SITE_NOT_FOUND"


# Scheduling collisions: retry with different input

class Conflict(BookingError):
    """Launchpad unavailable"""
    code = "CONFLICT"
    category = "conflict"
    http_status = 409


class SiteBookedForOtherDestination(Conflict):
    """Launchpad already booked for different destination on this date"""
    code = "SITE_BOOKED_FOR_OTHER_DESTINATION"


class SiteScheduledThisWeek(Conflict):
    """Launchpad already scheduled for this destination this week"""
    code = "SITE_SCHEDULED_THIS_WEEK"


class SiteReservedExternally(Conflict):
    """Launchpad reserved by SpaceX on this date"""
    code = "SITE_RESERVED_EXTERNALLY"


class InvalidStateForDeletion(BookingError):
    """Booking cannot be deleted in its current status"""
    code = "INVALID_STATE_FOR_DELETION"
    category = "business_rule"
    http_status = 409


# Server side, safe to retry at the caller's discretion

class PersistenceFailure(BookingError):
    """Database operation failed"""
    code = "PERSISTENCE_FAILURE"
    category = "persistence"
    http_status = 500


class UpstreamFailure(BookingError):
    """Launch manifest unavailable"""
    code = "UPSTREAM_FAILURE"
    category = "upstream"
    http_status = 502


class UpstreamError(UpstreamFailure):
    """Invalid response from SpaceX"""
    code = "UPSTREAM_ERROR"


class UnknownPrecision(UpstreamFailure):
    """Invalid date precision"""
    code = "UNKNOWN_PRECISION"


class RequestTimeout(BookingError):
    """Request deadline exceeded"""
    code = "REQUEST_TIMEOUT"
    category = "timeout"
    http_status = 504

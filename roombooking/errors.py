"""Domain errors raised by the booking workflow.

Every error carries a machine readable ``code`` naming the precondition that
failed, so callers can tell "slot unavailable" from "not authorized" from
"missing fields" without parsing messages.
"""


class BookingError(Exception):
    """Base error for booking workflow failures."""

    code = "booking_error"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ValidationError(BookingError):
    """Raised when create input is missing or malformed."""

    code = "invalid_request"


class ConflictError(BookingError):
    """Raised when the requested slot overlaps an effective booking."""

    code = "slot_unavailable"

    def __init__(self, message: str, code: str | None = None, conflicts=()) -> None:
        super().__init__(message, code)
        self.conflicts = list(conflicts)


class AuthorizationError(BookingError):
    """Raised when the actor lacks the role or ownership for an operation."""

    code = "not_authorized"


class InvalidStateError(AuthorizationError):
    """Raised when the booking's state does not allow the transition."""

    code = "not_pending"


class NotFoundError(BookingError):
    """Raised when a room or booking does not exist."""

    code = "not_found"


class StoreError(BookingError):
    """Raised when the data store call itself fails."""

    code = "store_failure"


class NotificationError(BookingError):
    """Raised when the notification endpoint cannot be reached or refuses."""

    code = "notification_failure"

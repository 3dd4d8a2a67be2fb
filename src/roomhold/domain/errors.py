"""Hold engine error taxonomy.

Every expected outcome of a hold operation is a HoldError subclass with a
stable machine code and the HTTP status the API adapter maps it to.
Anything that is not a HoldError is unexpected and propagates as is.
"""


class HoldError(Exception):
    """Base class for expected hold-operation failures."""

    code = "HOLD_ERROR"
    status_code = 409
    default_message = "Hold operation failed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidRequestError(HoldError):
    """Raised when an identifier or input is malformed."""

    code = "INVALID_REQUEST"
    status_code = 400
    default_message = "Invalid request."


class NoAvailabilityError(HoldError):
    """Raised when no active room is free for the requested stay range."""

    code = "NO_AVAILABILITY"
    default_message = "No availability for requested stay range."


class IdempotencyKeyConflictError(HoldError):
    """Raised when an idempotency key is reused for a different request."""

    code = "IDEMPOTENCY_KEY_CONFLICT"
    default_message = "Idempotency key conflict: payload differs from original request."


class HoldNotFoundError(HoldError):
    """Raised when the hold does not exist."""

    code = "HOLD_NOT_FOUND"
    status_code = 404
    default_message = "Hold not found."


class HoldExpiredError(HoldError):
    """Raised when a transition targets a hold that is past its expiry."""

    code = "HOLD_EXPIRED"
    default_message = "Hold has expired."


class HoldStatusConflictError(HoldError):
    """Raised when the current status does not allow the transition."""

    code = "HOLD_STATUS_CONFLICT"
    default_message = "Hold status does not allow this transition."

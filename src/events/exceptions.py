"""Domain errors of the participation engine.

Each error carries the HTTP status it maps to; ``api.exception_handlers`` renders
them as ``{"detail": ..., "code": ..., "field": ...}``.
"""


class FestError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 400
    default_code: str | None = None

    def __init__(self, message: str, *, code: str | None = None, field: str | None = None) -> None:
        """Initialize the error with a message and optional machine-readable code and field."""
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.field = field


class FestValidationError(FestError):
    """Raised when a request payload or state transition input is invalid."""

    status_code = 400


class PermissionDeniedError(FestError):
    """Raised when the caller may not perform the operation in the current state."""

    status_code = 403


class NotFoundError(FestError):
    """Raised when a referenced record does not exist or is not visible to the caller."""

    status_code = 404


class ConflictError(FestError):
    """Raised when the operation conflicts with the current state of a record."""

    status_code = 409


class DeliveryFailedError(FestError):
    """Raised when an outbound notification (email, webhook) could not be delivered."""

    status_code = 502
    default_code = "DELIVERY_FAILED"


class StorageError(FestError):
    """Raised when the record or blob store cannot complete a write."""

    status_code = 500
    default_code = "STORAGE_ERROR"

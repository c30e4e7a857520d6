"""Domain error kinds raised by services and translated once at the HTTP boundary."""

from enum import Enum


class ErrorKind(str, Enum):
    """Categories of failure surfaced to API clients."""

    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    STORAGE = "storage_error"
    UPSTREAM = "upstream_error"


class ApiError(Exception):
    """Base class for errors that map onto an HTTP status and message."""

    kind: ErrorKind = ErrorKind.BAD_REQUEST
    status_code: int = 400
    default_message: str = "Something went wrong"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequestError(ApiError):
    kind = ErrorKind.BAD_REQUEST
    status_code = 400
    default_message = "Bad request"


class UnauthorizedError(ApiError):
    kind = ErrorKind.UNAUTHORIZED
    status_code = 401
    default_message = "Unauthorized request"


class ForbiddenError(ApiError):
    kind = ErrorKind.FORBIDDEN
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(ApiError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404
    default_message = "Not found"


class ConflictError(ApiError):
    kind = ErrorKind.CONFLICT
    status_code = 409
    default_message = "Resource already exists"


class StorageError(ApiError):
    """Database failure."""

    kind = ErrorKind.STORAGE
    status_code = 500
    default_message = "Database operation failed"


class UpstreamError(ApiError):
    """Media provider failure."""

    kind = ErrorKind.UPSTREAM
    status_code = 502
    default_message = "Media provider request failed"


class InvalidTokenError(Exception):
    """Raised by the token service when a JWT cannot be trusted.

    Not an ApiError: callers decide how to surface it (always as 401).
    """

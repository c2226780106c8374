"""Exception taxonomy and HTTP error classification."""

from enum import Enum

from pydantic import BaseModel


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCode:
    """Error codes for specific error conditions."""

    # Request errors
    ERR_AUTHENTICATION_REQUIRED = "ERR_AUTHENTICATION_REQUIRED"
    ERR_VALIDATION = "ERR_VALIDATION"
    ERR_STORE = "ERR_STORE"
    ERR_NOT_FOUND = "ERR_NOT_FOUND"

    # Google integration errors
    ERR_CALENDAR_NOT_LINKED = "ERR_CALENDAR_NOT_LINKED"
    ERR_AUTH_EXCHANGE = "ERR_AUTH_EXCHANGE"
    ERR_AUTH_REFRESH = "ERR_AUTH_REFRESH"
    ERR_PROVIDER = "ERR_PROVIDER"

    # Side channel errors
    ERR_NOTIFICATION = "ERR_NOTIFICATION"

    # Generic errors
    ERR_UNEXPECTED = "ERR_UNEXPECTED"


class ErrorResponse(BaseModel):
    """Structured error body returned to API clients."""

    error: str
    code: str
    suggestion: str | None = None


class TasukunError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 500
    code: str = ErrorCode.ERR_UNEXPECTED
    severity: ErrorSeverity = ErrorSeverity.MEDIUM
    suggestion: str | None = None

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class AuthenticationRequired(TasukunError):
    """Raised when a request carries no valid user session."""

    status_code = 401
    code = ErrorCode.ERR_AUTHENTICATION_REQUIRED
    severity = ErrorSeverity.LOW
    suggestion = "Sign in again and retry."


class ValidationError(TasukunError):
    """Raised when input is malformed before reaching the store."""

    status_code = 400
    code = ErrorCode.ERR_VALIDATION
    severity = ErrorSeverity.LOW


class DatabaseError(TasukunError):
    """Raised when the store rejects a query or a constraint fails."""

    status_code = 400
    code = ErrorCode.ERR_STORE


class RecordNotFoundError(DatabaseError):
    """Raised when a record does not exist or is not visible to the caller."""

    status_code = 404
    code = ErrorCode.ERR_NOT_FOUND
    severity = ErrorSeverity.LOW


class TokenUnavailableError(TasukunError):
    """Raised when no usable Google credential exists for a user."""

    status_code = 403
    code = ErrorCode.ERR_CALENDAR_NOT_LINKED
    suggestion = "Connect Google Calendar again via /google/auth."


class NoTokenError(TokenUnavailableError):
    """No token record is stored for the user."""


class NoRefreshTokenError(TokenUnavailableError):
    """The stored token record has no refresh token."""


class AuthExchangeError(TasukunError):
    """Raised when the provider rejects an authorization code."""

    status_code = 400
    code = ErrorCode.ERR_AUTH_EXCHANGE
    suggestion = "Authorization codes are single use. Restart the Google authorization flow."


class AuthRefreshError(TasukunError):
    """Raised when the provider rejects a refresh token."""

    status_code = 403
    code = ErrorCode.ERR_AUTH_REFRESH
    severity = ErrorSeverity.HIGH
    suggestion = "Calendar access was revoked or expired. Restart the Google authorization flow."


class ProviderError(TasukunError):
    """Raised when a remote provider rejects a request or cannot be reached."""

    status_code = 502
    code = ErrorCode.ERR_PROVIDER

    def __init__(self, message: str, *, provider_status: int | None = None) -> None:
        self.provider_status = provider_status
        super().__init__(message)


class NotificationError(TasukunError):
    """Raised by notification senders; always absorbed by the dispatcher."""

    code = ErrorCode.ERR_NOTIFICATION
    severity = ErrorSeverity.LOW


def classify_error_with_response(exception: Exception) -> tuple[int, ErrorResponse]:
    """Classify an exception into an HTTP status and a structured error body.

    Args:
        exception: The exception raised while handling a request

    Returns:
        Tuple of (http_status_code, ErrorResponse)
    """
    if isinstance(exception, TasukunError):
        return (
            exception.status_code,
            ErrorResponse(error=exception.message, code=exception.code, suggestion=exception.suggestion),
        )

    return (
        500,
        ErrorResponse(
            error=str(exception) or type(exception).__name__,
            code=ErrorCode.ERR_UNEXPECTED,
            suggestion="Please try again later. If the problem persists, contact support.",
        ),
    )

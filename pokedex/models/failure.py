"""
Failure classification for API responses.

Every error that reaches a client is a KnownError subclass. The exception
handlers in pokedex.main turn them into an ErrorResponse body with the
status code carried by the exception.

Error taxonomy:
- ValidationError: bad client input (400)
- AuthError: missing, unknown or expired bearer token (401)
- NotFoundError: upstream reported 404 on a direct lookup (404)
- UpstreamError: any other upstream or network failure (500)

Anything else that escapes a route is rendered as UNKNOWN (500) by the
catch-all handler in pokedex.main.
"""

from enum import Enum

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Input validation failures
    INVALID_INPUT = "invalid_input"
    MISSING_REQUIRED = "missing_required"

    # Access failures
    UNAUTHORIZED = "unauthorized"

    # Resource failures
    NOT_FOUND = "not_found"

    # Service failures
    EXTERNAL_API_ERROR = "external_api_error"

    # Unknown
    UNKNOWN = "unknown"


class ErrorResponse(BaseModel):
    """Body returned for every failed request."""

    error: str = Field(
        ...,
        description="User-appropriate explanation of what went wrong",
    )
    kind: FailureKind = Field(
        ...,
        description="Classification of the failure",
    )


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to an ErrorResponse."""
        return ErrorResponse(error=self.message, kind=self.kind)


class ValidationError(KnownError):
    """Client input violates a constraint. Raised before any upstream call."""

    def __init__(self, message: str, kind: FailureKind = FailureKind.INVALID_INPUT):
        super().__init__(kind=kind, message=message, status_code=400)


class AuthError(KnownError):
    """Request lacks a valid bearer token."""

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(kind=FailureKind.UNAUTHORIZED, message=message, status_code=401)


class NotFoundError(KnownError):
    """
    Upstream reported 404 for a direct lookup.

    The message is shown to the client verbatim.
    """

    def __init__(self, message: str):
        super().__init__(kind=FailureKind.NOT_FOUND, message=message, status_code=404)


class UpstreamError(KnownError):
    """
    Upstream call failed for any reason other than a 404.

    The message is generic. The cause is logged server-side and kept in
    ``detail``, never sent to the client.
    """

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            kind=FailureKind.EXTERNAL_API_ERROR,
            message=message,
            detail=detail,
            status_code=500,
        )

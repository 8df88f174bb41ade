"""
Errors raised by the backoffice API client.

Every failure the client reports is an ApiError. Callers that only need to
show a message can catch ApiError; callers that react per category can catch
the subclasses.
"""

from typing import Optional

TRANSPORT_ERROR_MESSAGE = "The backoffice API could not be reached. Please try again."


class ApiError(Exception):
    """Base class for client errors, also used for unexpected HTTP statuses."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ValidationError(ApiError):
    """
    Request rejected because one or more fields are invalid.

    Raised before sending when the client's own validation fails, and for
    HTTP 422 responses from the server.
    """

    def __init__(
        self,
        field_errors: dict[str, str],
        status_code: Optional[int] = None,
    ):
        self.field_errors = field_errors
        summary = "; ".join(f"{k}: {v}" for k, v in field_errors.items())
        super().__init__(f"Validation failed: {summary}", status_code)


class NotFoundError(ApiError):
    """The requested entity does not exist (HTTP 404)."""


class ConflictError(ApiError):
    """The request conflicts with stored data (HTTP 409), e.g. a duplicate key."""


class TransportError(ApiError):
    """Network failure, timeout or server error. The message is generic."""

    def __init__(
        self,
        status_code: Optional[int] = None,
        retryable: bool = True,
        cause: Optional[str] = None,
    ):
        super().__init__(TRANSPORT_ERROR_MESSAGE, status_code)
        self.retryable = retryable
        self.cause = cause


class ResponseError(ApiError):
    """A success response whose body is not JSON or does not match the model."""

    def __init__(self, detail: str, status_code: Optional[int] = None):
        super().__init__(
            "The backoffice API returned an unexpected response.", status_code
        )
        self.detail = detail

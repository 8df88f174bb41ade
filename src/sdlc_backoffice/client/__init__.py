"""
SDLC Backoffice API client.

Usage:
    from sdlc_backoffice.client import BackofficeClient, ConflictError

    with BackofficeClient("http://localhost:8081/api") as client:
        try:
            project = client.create_project({...})
        except ConflictError as e:
            print(e.message)
"""

from sdlc_backoffice.client.client import BackofficeClient
from sdlc_backoffice.client.errors import (
    ApiError,
    ConflictError,
    NotFoundError,
    ResponseError,
    TransportError,
    ValidationError,
)
from sdlc_backoffice.client.retry import RetryConfig

__all__ = [
    # Client
    "BackofficeClient",
    # Configuration
    "RetryConfig",
    # Errors
    "ApiError",
    "ConflictError",
    "NotFoundError",
    "ResponseError",
    "TransportError",
    "ValidationError",
]

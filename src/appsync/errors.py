"""Error types for the AppSync client.

Every failure surfaced to callers is an AppSyncError subclass naming the
layer that failed:
- ConnectivityError: the endpoint could not be reached at all
- HttpError: a response arrived with a non-success status
- DecodeError: the response body was not the expected JSON envelope
- CacheError: the local cache database failed
- InvalidRequestError: the request could not be sent as given
"""

from enum import Enum
from typing import Optional

from appsync.utils.text import to_repr


class ErrorType(Enum):
    """Classification of client errors."""

    # Eligible for cache fallback under network-first priority
    NETWORK_ERROR = "network_error"

    # Never masked by cache
    HTTP_ERROR = "http_error"
    DECODE_ERROR = "decode_error"
    CACHE_ERROR = "cache_error"
    INVALID_REQUEST = "invalid_request"


class AppSyncError(Exception):
    """Base exception for AppSync client errors."""

    def __init__(
        self,
        error_type: ErrorType,
        message: str,
        original_error: Optional[BaseException] = None,
        context: Optional[dict] = None,
    ):
        self.error_type = error_type
        self.message = message
        self.original_error = original_error
        self.context = context or {}
        super().__init__(message)

    def __str__(self) -> str:
        return f"[{self.error_type.value}] {self.message}"

    def to_dict(self) -> dict:
        """Convert to dictionary for logging or serialization."""
        return {
            "type": self.error_type.value,
            "message": self.message,
            "context": self.context,
        }


class ConnectivityError(AppSyncError):
    """Raised when the transport could not reach the endpoint."""

    def __init__(self, message: str = "Endpoint unreachable", **kwargs):
        super().__init__(ErrorType.NETWORK_ERROR, message, **kwargs)


class HttpError(AppSyncError):
    """Raised when the endpoint answers with a non-success status."""

    def __init__(self, status: int, body: str, **kwargs):
        self.status = status
        self.body = body
        super().__init__(ErrorType.HTTP_ERROR, f"HTTP {status} - {to_repr(body)}", **kwargs)

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["status"] = self.status
        result["body"] = self.body
        return result


class DecodeError(AppSyncError):
    """Raised when a success response does not hold a JSON data envelope."""

    def __init__(self, message: str = "Invalid response body", **kwargs):
        super().__init__(ErrorType.DECODE_ERROR, message, **kwargs)


class CacheError(AppSyncError):
    """Raised when the cache database fails."""

    def __init__(self, message: str = "Cache database error", **kwargs):
        super().__init__(ErrorType.CACHE_ERROR, message, **kwargs)


class InvalidRequestError(AppSyncError):
    """Raised when a request is malformed, e.g. an unparsable endpoint URL."""

    def __init__(self, message: str = "Invalid request", **kwargs):
        super().__init__(ErrorType.INVALID_REQUEST, message, **kwargs)


__all__ = [
    "ErrorType",
    "AppSyncError",
    "ConnectivityError",
    "HttpError",
    "DecodeError",
    "CacheError",
    "InvalidRequestError",
]

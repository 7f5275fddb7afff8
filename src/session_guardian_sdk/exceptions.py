"""Exceptions raised by the session guardian SDK."""

from typing import Any, Dict, Optional


class APIError(Exception):
    """Base exception for API errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_data: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response_data = response_data or {}

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.status_code}: {self.message}"
        return self.message


class AuthenticationError(APIError):
    """Raised when no valid credential is available or the server rejects it."""


class ValidationError(APIError):
    """Raised when the request is rejected as invalid (400)."""


class NotFoundError(APIError):
    """Raised when the requested resource does not exist (404)."""


class RateLimitError(APIError):
    """Raised when the rate limit is exceeded (429)."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = 429,
        retry_after: Optional[int] = None,
        response_data: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, status_code, response_data)
        self.retry_after = retry_after


class ServerError(APIError):
    """Raised on 5xx responses."""


class RenewalError(APIError):
    """Raised when the renewal endpoint answers without a usable credential."""

"""
Errors raised by the API gateway.
"""

from typing import Any, Optional


class ApiError(Exception):
    """
    A failed call to the Event Poster service.

    Attributes:
        status: HTTP status code, or None when the request never got a response.
        message: Server-provided message when available, otherwise a generic one.
        payload: Decoded JSON error body, if any.
    """

    def __init__(self, status: Optional[int], message: str, payload: Any = None) -> None:
        super().__init__(message)
        self.status = status
        self.message = message
        self.payload = payload

    @property
    def is_unauthorized(self) -> bool:
        return self.status == 401

    @property
    def is_not_found(self) -> bool:
        return self.status == 404

    @property
    def http_status(self) -> int:
        """Status to answer the browser with when showing this error."""
        if self.status is None or self.status < 400:
            return 502
        return self.status

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        return f"{self.status}: {self.message}"

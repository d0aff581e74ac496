# core/errors.py
"""
Error types surfaced by the closure service.

Only transport-level failures of the upstream feed are fatal; malformed
records are absorbed by the parser and never show up here.
"""
from typing import Optional


class FeedError(Exception):
    """Base exception for upstream feed errors."""

    def __init__(self, message: str, url: Optional[str] = None,
                 original_error: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.message = message
        self.url = url
        self.original_error = original_error

    def __str__(self) -> str:
        parts = [self.message]
        if self.url:
            parts.append(f"[url={self.url}]")
        if self.original_error:
            parts.append(f"(caused by: {self.original_error})")
        return " ".join(parts)


class FeedUnavailableError(FeedError):
    """Upstream unreachable, timed out, or answered with a non-success status."""

    def __init__(self, message: str, url: Optional[str] = None,
                 status_code: Optional[int] = None,
                 original_error: Optional[Exception] = None) -> None:
        super().__init__(message, url=url, original_error=original_error)
        self.status_code = status_code


class RequestNotFoundError(LookupError):
    """No pickup request with the given id."""

    def __init__(self, request_id: int) -> None:
        super().__init__(f"pickup request {request_id} not found")
        self.request_id = request_id

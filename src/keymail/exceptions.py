"""
Error types raised by the service layer.

Each error carries the HTTP status a web handler should answer with.
"""

from typing import Optional


class KeymailError(Exception):
    """Base error for the application."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvalidRequestError(KeymailError):
    """Missing or malformed input."""

    status_code = 400


class ForbiddenError(KeymailError):
    """The record belongs to another agent."""

    status_code = 403


class NotFoundError(KeymailError):
    """The requested record does not exist."""

    status_code = 404


class EmailGenerationError(KeymailError):
    """The LLM provider failed to produce an email."""

    status_code = 502

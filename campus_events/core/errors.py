"""
Client-side error taxonomy.

Every failure the views present to the user is one of these. None of them
is fatal: views catch them, expose the message and offer a retry.
"""

from typing import Optional


class ClientError(Exception):
    """Base class for errors surfaced to the user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ApiError(ClientError):
    """
    Backend call failed (non-2xx response or transport failure).

    `message` is the server-provided explanation when the response carried
    one, otherwise the fixed default for the operation.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, operation: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.operation = operation


class AuthenticationRequired(ClientError):
    """A protected view or command was used without a session token."""

    def __init__(self, message: str = "Please login to continue"):
        super().__init__(message)


class PermissionDenied(ClientError):
    """Role/ownership hint says no. The server remains the enforcement point."""


class FormValidationError(ClientError):
    """Local form rules failed; nothing was sent to the server."""

    def __init__(self, errors: dict[str, str]):
        super().__init__("; ".join(f"{field}: {msg}" for field, msg in errors.items()))
        self.errors = errors

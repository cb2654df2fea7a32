"""
core/errors.py -- Domain exception taxonomy for StudyHub.

Stores and services raise these; api/main.py registers one exception handler
that turns any StudyHubError into the standard error envelope using the
class-level status_code and code. Domain code therefore never imports
fastapi to report a failure.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/ or materials/.
"""

from __future__ import annotations


class StudyHubError(Exception):
    """Base class for every failure that is reported to the client."""

    status_code: int = 500
    code: str = "internal_error"
    default_message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(StudyHubError):
    """Missing or malformed request fields. Never retried."""

    status_code = 400
    code = "invalid_input"
    default_message = "Missing or invalid input."


class InvalidCredentials(StudyHubError):
    """Login failed.

    The message is deliberately identical for an unknown email and a wrong
    password so the response does not reveal which field was incorrect.
    """

    status_code = 401
    code = "invalid_credentials"
    default_message = "Invalid email or password."


class TokenMissing(StudyHubError):
    status_code = 401
    code = "unauthorized"
    default_message = "Access token missing."


class TokenInvalid(StudyHubError):
    """Bad signature, malformed token, missing claims, or expired."""

    status_code = 403
    code = "forbidden"
    default_message = "Invalid or expired token."


class NotFound(StudyHubError):
    status_code = 404
    code = "not_found"
    default_message = "Resource not found."


class Conflict(StudyHubError):
    status_code = 409
    code = "conflict"
    default_message = "Username or email already exists."

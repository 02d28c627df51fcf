"""
TaskHub Backend — Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions, one per error class the API reports.
How:   Each exception carries a user-facing message, an HTTP status code and
       an optional context dict (logged, never returned). Handlers registered
       in main.py turn any TaskHubError into the JSON error envelope:

           {"success": false, "message": "...", ["errors": [...]], ["stack": "..."]}

Exception Hierarchy:
    TaskHubError (base)
    ├── ValidationError          → 400 Bad Request
    ├── AuthenticationError      → 401 Unauthorized
    │   └── InvalidCredentialsError
    ├── AuthorizationError       → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── RateLimitExceededError   → 429 Too Many Requests
    └── DatabaseError            → 500 Internal Server Error
"""

import uuid
from typing import Any, Dict, List, Optional


class TaskHubError(Exception):
    """
    Base exception for all TaskHub application errors.

    Attributes:
        message:     User-facing error description (safe to return)
        status_code: HTTP status the terminal handler responds with
        context:     Debug info for the logs (NOT returned to the client)
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(TaskHubError):
    """
    Raised when request input breaks one or more validation rules.

    `errors` lists every violation found, in rule order:
        [{"field": "title", "location": "body", "message": "Title is required"}, ...]
    A business-rule rejection (e.g. email already registered) has no field
    list and only a message.
    """

    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        errors: Optional[List[Dict[str, str]]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.errors = errors or []


class AuthenticationError(TaskHubError):
    """
    Raised when the caller's identity cannot be established.

    Missing, malformed, expired or badly signed bearer tokens, and wrong
    login credentials.
    """

    status_code = 401

    def __init__(
        self,
        message: str = "Not authorized",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidCredentialsError(AuthenticationError):
    """
    Wrong email or password at login.

    `user_id` is set when the email matched an account (wrong password) so the
    failed attempt can be attributed in the audit trail.
    """

    def __init__(self, user_id: Optional[uuid.UUID] = None):
        super().__init__(message="Invalid credentials")
        self.user_id = user_id


class AuthorizationError(TaskHubError):
    """Raised when a known caller is not allowed to do something (role or ownership)."""

    status_code = 403

    def __init__(
        self,
        message: str = "Forbidden",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(TaskHubError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; services convert that into
    this exception so the handler can answer 404.
    """

    status_code = 404

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=f"{resource} not found", context=ctx)


class RateLimitExceededError(TaskHubError):
    """
    Raised when a client exceeds its request budget for the current window.

    `retry_after` is the number of seconds until the window resets; it is
    sent back in the Retry-After header.
    """

    status_code = 429

    def __init__(
        self,
        retry_after: int = 60,
        message: str = "Too many requests, try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class DatabaseError(TaskHubError):
    """
    Raised when a database operation fails unexpectedly.

    The message returned to the client is always generic; driver details go
    to the log only.
    """

    status_code = 500

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)

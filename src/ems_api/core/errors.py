"""Application error taxonomy.

Every authentication or authorization failure is raised as one of these
exceptions and converted to a JSON envelope by the handlers registered in
``ems_api.main``. Identity not established maps to 401; identity established
but refused maps to 403.
"""

import enum

from fastapi import status


class AuthFailure(enum.StrEnum):
    """Machine-readable reason attached to auth failures."""

    NO_TOKEN = "no_token"
    INVALID_TOKEN = "invalid_token"
    EXPIRED_TOKEN = "expired_token"
    UNKNOWN_USER = "unknown_user"
    PASSWORD_CHANGED = "password_changed"
    INVALID_CREDENTIALS = "invalid_credentials"
    ACCOUNT_DEACTIVATED = "account_deactivated"
    INSUFFICIENT_ROLE = "insufficient_role"
    NOT_SELF = "not_self"


_DEFAULT_MESSAGES: dict[AuthFailure, str] = {
    AuthFailure.NO_TOKEN: "Access denied. No token provided.",
    AuthFailure.INVALID_TOKEN: "Invalid token.",
    AuthFailure.EXPIRED_TOKEN: "Token expired.",
    AuthFailure.UNKNOWN_USER: "User no longer exists.",
    AuthFailure.PASSWORD_CHANGED: "User recently changed password. Please log in again.",
    AuthFailure.INVALID_CREDENTIALS: "Invalid email or password.",
    AuthFailure.ACCOUNT_DEACTIVATED: "User account is deactivated.",
    AuthFailure.INSUFFICIENT_ROLE: "Access denied. Insufficient permissions.",
    AuthFailure.NOT_SELF: "Access denied. You can only access your own data.",
}


class AppError(Exception):
    """Base class for errors surfaced to API callers with a fixed status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, reason: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.reason = reason


class Unauthenticated(AppError):
    """The caller's identity could not be established."""

    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, reason: AuthFailure, message: str | None = None) -> None:
        super().__init__(message or _DEFAULT_MESSAGES[reason], reason=reason.value)
        self.failure = reason


class Forbidden(AppError):
    """The caller is known but not allowed to perform the request."""

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, reason: AuthFailure, message: str | None = None) -> None:
        super().__init__(message or _DEFAULT_MESSAGES[reason], reason=reason.value)
        self.failure = reason


class BadRequestError(AppError):
    """The request is well-formed but cannot be applied to the current state."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT


class ServerError(AppError):
    """Unexpected internal fault, distinct from authentication failures."""

    def __init__(self, message: str = "Server error during authentication.") -> None:
        super().__init__(message, reason="server_error")

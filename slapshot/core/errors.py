"""
Error taxonomy for the action API.

Every domain failure is an ``HTTPException`` subclass carrying a fixed status
code, so services raise them the same way they raise any ``HTTPException``
and the app-level handler renders them into the ``{"ok": false, "error": ...}``
envelope.
"""
from fastapi import HTTPException, status


class AppError(HTTPException):
    """Base class for failures that map onto one HTTP status."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Request failed."

    def __init__(self, detail: str | None = None):
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail)


class ValidationError(AppError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "Invalid input."


class AuthenticationRequired(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Authentication required."


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Team access denied."


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflicting request."


class Gone(AppError):
    status_code = status.HTTP_410_GONE
    default_detail = "This link has expired."


class RateLimited(AppError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_detail = "Too many requests. Try again later."


class InternalError(AppError):
    default_detail = "Internal server error."


class MigrationRequired(InternalError):
    """A feature's table is missing: the named migration has not been applied."""

    def __init__(self, feature: str, revision: str):
        super().__init__(
            f"{feature} is unavailable because database migration {revision} has not been "
            f"applied. Run 'alembic upgrade head' and retry."
        )


class MethodNotAllowed(AppError):
    status_code = status.HTTP_405_METHOD_NOT_ALLOWED
    default_detail = "Method not allowed."

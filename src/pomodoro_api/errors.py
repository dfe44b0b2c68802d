from __future__ import annotations

from fastapi import status


# PUBLIC_INTERFACE
class ApiError(Exception):
    """
    Base class for errors that map onto an HTTP status code.

    The exception handler registered in main renders these as {"detail": message},
    the same body FastAPI produces for HTTPException.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(ApiError):
    """A referenced task or session does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ApiError):
    """The request collides with current state (active session, double completion)."""

    status_code = status.HTTP_409_CONFLICT


class BadRequestError(ApiError):
    """A query parameter or field combination is invalid."""

    status_code = status.HTTP_400_BAD_REQUEST

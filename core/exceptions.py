"""
Application error hierarchy.

Every error a service raises on purpose is an ``AppError``. The class decides
the HTTP status, so the mapping from error kind to status code lives here and
nowhere else:

    BadRequestError   400  malformed input that slipped past the schemas
    DomainError       400  a business rule refused the operation
    UnauthorizedError 401  missing, invalid or expired credentials
    ForbiddenError    403  authenticated, but not allowed
    NotFoundError     404  unknown id (or not visible to the caller)
    ConflictError     409  duplicate or still-referenced resource
    PersistenceError  500  the database refused a write

``AppError`` extends FastAPI's ``HTTPException`` so the exception handlers in
``main.py`` serialise every one of them into the same error envelope.
"""

from typing import Any, Optional
from fastapi import HTTPException, status


class AppError(HTTPException):
    default_status: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, status_code: Optional[int] = None,
                 errors: Optional[list[Any]] = None):
        super().__init__(status_code=status_code or self.default_status, detail=message)
        self.errors = errors

    @property
    def message(self) -> str:
        return self.detail


class BadRequestError(AppError):
    default_status = status.HTTP_400_BAD_REQUEST


class DomainError(AppError):
    default_status = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(AppError):
    default_status = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Could not validate credentials."):
        super().__init__(message)
        self.headers = {"WWW-Authenticate": "Bearer"}


class ForbiddenError(AppError):
    default_status = status.HTTP_403_FORBIDDEN


class NotFoundError(AppError):
    default_status = status.HTTP_404_NOT_FOUND


class ConflictError(AppError):
    default_status = status.HTTP_409_CONFLICT


class PersistenceError(AppError):
    default_status = status.HTTP_500_INTERNAL_SERVER_ERROR

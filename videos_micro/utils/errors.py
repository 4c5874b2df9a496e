"""
API error taxonomy

Every failure a handler reports to a client is one of these. They render as
{"error": ..., "details": ...} through the HTTPException handler in main.py.
"""

from typing import Any, Optional
from fastapi import HTTPException, status

from utils.settings import get_settings


class APIError(HTTPException):
    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, error: str, details: Any = None, headers: Optional[dict] = None):
        self.error = error
        self.details = details
        super().__init__(
            status_code=self.status_code_default,
            detail={"error": error, "details": details},
            headers=headers,
        )


class BadRequest(APIError):
    status_code_default = status.HTTP_400_BAD_REQUEST


class Unauthorized(APIError):
    status_code_default = status.HTTP_401_UNAUTHORIZED

    def __init__(self, error: str, details: Any = None):
        super().__init__(error, details, headers={"WWW-Authenticate": "Bearer"})


class Forbidden(APIError):
    status_code_default = status.HTTP_403_FORBIDDEN


class NotFound(APIError):
    status_code_default = status.HTTP_404_NOT_FOUND


class Conflict(APIError):
    status_code_default = status.HTTP_409_CONFLICT


class Internal(APIError):
    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR

    @classmethod
    def from_exception(cls, error: str, exc: Exception) -> "Internal":
        """Wrap an unexpected exception, hiding its message in production"""
        details = None if get_settings().is_production else str(exc)
        return cls(error, details)


class StorageError(Exception):
    """Blob store call failed or the store is not configured"""


class ThumbnailError(Exception):
    """A thumbnail could not be derived from the uploaded video"""

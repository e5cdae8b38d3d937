"""
Shared API utility functions.
"""

import math

from fastapi import HTTPException, status

from core.exceptions import (
    AlreadyExistsError,
    CategoryInUseError,
    ConflictError,
    ContentError,
    ContentValidationError,
    NotFoundError,
)

_STATUS_BY_ERROR = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (AlreadyExistsError, status.HTTP_409_CONFLICT),
    (ContentValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (CategoryInUseError, status.HTTP_400_BAD_REQUEST),
)


def http_error(exc: ContentError, prefix: str | None = None) -> HTTPException:
    """Translate a domain error into an HTTPException."""
    status_code = status.HTTP_400_BAD_REQUEST
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status_code = code
            break
    detail = f"{prefix}: {exc}" if prefix else str(exc)
    return HTTPException(status_code=status_code, detail=detail)


def page_count(total: int, page_size: int) -> int:
    return math.ceil(total / page_size) if total > 0 else 0

"""
Utilities module: Exceptions, schemas.
"""

from shared.utils.exceptions import (
    AppException,
    ErrorKind,
    NotFoundError,
    NotPrivilegedError,
    ValidationError,
    ConflictError,
    StoreUnavailableError,
)
from shared.utils.schemas import ErrorOutput

__all__ = [
    # exceptions
    "AppException",
    "ErrorKind",
    "NotFoundError",
    "NotPrivilegedError",
    "ValidationError",
    "ConflictError",
    "StoreUnavailableError",
    # schemas
    "ErrorOutput",
]

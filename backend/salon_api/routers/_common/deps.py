"""
Router dependencies.

The acting staff member is identified by the ``X-Staff-Id`` header.
Authenticating that header belongs to the gateway in front of this service.
"""

from typing import TypeVar

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from salon_api.services.engine import OperationResult, SalonEngine
from shared.infrastructure.db import get_db

T = TypeVar("T")


def get_engine(db: Session = Depends(get_db)) -> SalonEngine:
    return SalonEngine(db)


def require_staff_id(x_staff_id: int = Header(alias="X-Staff-Id")) -> int:
    return x_staff_id


def optional_staff_id(x_staff_id: int | None = Header(default=None, alias="X-Staff-Id")) -> int | None:
    return x_staff_id


def unwrap(result: OperationResult[T]) -> T:
    """
    Return the result value, or re-raise its error.

    The app-level AppException handler renders it as ErrorOutput with the
    error's status code.
    """
    return result.unwrap()

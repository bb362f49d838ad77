"""
Common utilities shared across routers.
"""

from .deps import get_engine, optional_staff_id, require_staff_id, unwrap
from .pagination import Pagination, get_pagination

__all__ = [
    # Dependencies
    "get_engine",
    "optional_staff_id",
    "require_staff_id",
    "unwrap",
    # Pagination
    "Pagination",
    "get_pagination",
]
